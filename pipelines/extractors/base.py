"""
Base Extractor

Interface of a scoreboard source: raw events for a league and day, and a
normalized boxscore for one event.
"""

from abc import ABC, abstractmethod
from typing import Optional

from core.logging import get_logger
from core.resilience import ResilientHTTPClient, RateLimiter, create_circuit_breaker
from core.settings import settings
from pipelines.transformers.espn import BoxscoreRecord
from utils.constants import League


def build_http_client(name: str) -> ResilientHTTPClient:
    """HTTP client with its own pacing and circuit breaker, from settings."""
    return ResilientHTTPClient(
        max_retries=settings.retry_max_attempts,
        backoff_unit=settings.retry_backoff_unit,
        timeout=settings.http_timeout,
        rate_limiter=RateLimiter(
            settings.request_min_interval,
            settings.request_max_interval,
        ),
        circuit_breaker=create_circuit_breaker(
            f"{name}_api",
            failure_threshold=settings.circuit_breaker_threshold,
            recovery_timeout=settings.circuit_breaker_timeout,
        ),
    )


class BaseExtractor(ABC):
    """
    A scoreboard source.

    Every request goes through the extractor's ResilientHTTPClient, so
    exhausted retries surface as FetchError. Raw events are returned
    unparsed; callers normalize them one at a time so a single malformed
    event cannot sink a whole day.
    """

    def __init__(self, name: str, client: Optional[ResilientHTTPClient] = None):
        self.name = name
        self.log = get_logger(f"extractor.{name}")
        self.client = client or build_http_client(name)

    @abstractmethod
    def fetch_raw_events(self, league: League | str, date_str: str) -> list[dict]:
        """Every event of a league on one day (YYYYMMDD), unparsed."""

    @abstractmethod
    def fetch_boxscore(self, league: League | str, event_id: str) -> Optional[BoxscoreRecord]:
        """Shooting lines for one event, or None when there is no boxscore."""
