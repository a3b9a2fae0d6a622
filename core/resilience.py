"""
Resilience Patterns

Request pacing, retry with backoff, and circuit breaking for calls to the
upstream scoreboard provider. Every outbound request goes through a
ResilientHTTPClient so the retry policy and the pacing state live in one
place per client instance.
"""

import random
import threading
import time
from typing import Any, Callable, Optional

import requests
from circuitbreaker import CircuitBreaker, CircuitBreakerError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_incrementing,
    retry_if_exception_type,
)

from core.logging import get_logger


# -----------------------------------------------------------------------------
# Custom Exceptions
# -----------------------------------------------------------------------------


class RetryableError(Exception):
    """Base class for errors that should trigger retries."""

    pass


class RateLimitError(RetryableError):
    """Raised when rate limited (HTTP 429)."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class NetworkError(RetryableError):
    """Raised on network/timeout errors."""

    pass


class ServerError(RetryableError):
    """Raised on server errors (5xx)."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ClientError(RetryableError):
    """
    Raised on any other non-2xx response.

    The scoreboard provider returns sporadic 4xx for valid dates under load,
    so these are retried like server errors.
    """

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(RetryableError):
    """Raised when a 2xx response body is not valid JSON."""

    pass


class FetchError(Exception):
    """
    Raised once a request has exhausted its retries (or the circuit is open).

    Callers treat this as a per-date or per-game failure, never as a reason
    to abort the whole run.
    """

    def __init__(self, message: str, url: str, attempts: int = 0):
        super().__init__(message)
        self.url = url
        self.attempts = attempts


# -----------------------------------------------------------------------------
# Request Pacing
# -----------------------------------------------------------------------------


class RateLimiter:
    """
    Enforces a jittered minimum interval between consecutive requests.

    One instance is owned by one client; concurrent clients (and tests) keep
    independent pacing state.

    Example:
        limiter = RateLimiter(min_interval=0.25, max_interval=0.55)
        limiter.wait()  # sleeps only if the previous request was too recent
    """

    def __init__(
        self,
        min_interval: float,
        max_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
    ):
        if max_interval < min_interval:
            raise ValueError("max_interval must be >= min_interval")
        self.min_interval = min_interval
        self.max_interval = max_interval
        self._clock = clock
        self._sleep = sleep
        self._jitter = jitter
        self._last_request_at: Optional[float] = None
        self._lock = threading.Lock()

    def wait(self) -> float:
        """
        Block until the next request may be sent.

        Returns:
            Seconds slept (0.0 when no pacing was needed)
        """
        with self._lock:
            slept = 0.0
            if self._last_request_at is not None:
                interval = self._jitter(self.min_interval, self.max_interval)
                elapsed = self._clock() - self._last_request_at
                if elapsed < interval:
                    slept = interval - elapsed
                    self._sleep(slept)
            self._last_request_at = self._clock()
            return slept


# -----------------------------------------------------------------------------
# Circuit Breakers
# -----------------------------------------------------------------------------


def create_circuit_breaker(
    name: str,
    failure_threshold: int = 5,
    recovery_timeout: int = 60,
) -> CircuitBreaker:
    """
    Create a circuit breaker that trips on exhausted retryable failures.

    Args:
        name: Name of the circuit breaker for identification
        failure_threshold: Number of failures before opening circuit
        recovery_timeout: Seconds to wait before attempting recovery
    """
    return CircuitBreaker(
        failure_threshold=failure_threshold,
        recovery_timeout=recovery_timeout,
        expected_exception=RetryableError,
        name=name,
    )


# -----------------------------------------------------------------------------
# Resilient HTTP Client
# -----------------------------------------------------------------------------


def classify_response_error(response: requests.Response) -> None:
    """
    Raise the matching retryable error for any non-2xx response.

    Raises:
        RateLimitError: For 429 responses
        ServerError: For 5xx responses
        ClientError: For every other non-2xx response
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    if status == 429:
        retry_after = response.headers.get("Retry-After")
        retry_seconds = int(retry_after) if retry_after and retry_after.isdigit() else None
        raise RateLimitError("Rate limited by upstream", retry_after=retry_seconds)

    if status >= 500:
        raise ServerError(f"Server error: {status}", status_code=status)

    raise ClientError(
        f"HTTP {status} - {response.text[:200]}",
        status_code=status,
    )


class ResilientHTTPClient:
    """
    JSON-over-HTTP client with pacing, bounded retries and a circuit breaker.

    Each attempt waits on the rate limiter, then issues one GET with a
    per-attempt timeout. Timeouts, connection failures, non-2xx responses
    and malformed bodies are retried with linear backoff
    (attempt * backoff_unit). Once retries are exhausted a FetchError
    is raised.

    Example:
        client = ResilientHTTPClient(
            rate_limiter=RateLimiter(0.25, 0.55),
            circuit_breaker=create_circuit_breaker("espn"),
        )
        payload = client.get_json("https://site.api.espn.com/...", params={"dates": "20251104"})
    """

    def __init__(
        self,
        max_retries: int = 3,
        backoff_unit: float = 1.0,
        timeout: int = 10,
        rate_limiter: Optional[RateLimiter] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_retries = max_retries
        self.backoff_unit = backoff_unit
        self.timeout = timeout
        self.rate_limiter = rate_limiter
        self.circuit_breaker = circuit_breaker
        self.session = session or requests.Session()
        self._sleep = sleep
        self.log = get_logger("http_client")

    def _attempt(self, url: str, params: Optional[dict]) -> Any:
        """Single paced request; raises a RetryableError on any failure."""
        if self.rate_limiter:
            self.rate_limiter.wait()

        try:
            self.log.debug("http_request", url=url, params=params)
            response = self.session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            self.log.warning("http_timeout", url=url, timeout=self.timeout)
            raise NetworkError(f"Request timed out after {self.timeout}s: {url}")
        except requests.exceptions.ConnectionError as e:
            self.log.warning("http_connection_error", url=url, error=str(e))
            raise NetworkError(f"Connection failed: {url}")
        except requests.exceptions.RequestException as e:
            self.log.warning("http_error", url=url, error=str(e))
            raise NetworkError(f"Request failed: {url} - {e}")

        classify_response_error(response)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON from {url}: {e}")

    def _request_with_retry(self, url: str, params: Optional[dict]) -> Any:
        """Run _attempt under the retry policy."""

        def _log_retry(retry_state) -> None:
            self.log.warning(
                "retry_attempt",
                url=url,
                attempt=retry_state.attempt_number,
                max_attempts=self.max_retries,
                error=str(retry_state.outcome.exception()),
            )

        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_incrementing(start=self.backoff_unit, increment=self.backoff_unit),
            retry=retry_if_exception_type(RetryableError),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        def _do_request() -> Any:
            return self._attempt(url, params)

        return _do_request()

    def get_json(self, url: str, params: Optional[dict] = None) -> Any:
        """
        GET a URL and decode the JSON body.

        Raises:
            FetchError: When every attempt failed or the circuit is open
        """
        try:
            if self.circuit_breaker:
                return self.circuit_breaker.call(self._request_with_retry, url, params)
            return self._request_with_retry(url, params)
        except CircuitBreakerError as e:
            raise FetchError(f"Circuit open, skipped {url}: {e}", url=url) from e
        except RetryableError as e:
            self.log.error("http_retries_exhausted", url=url, error=str(e))
            raise FetchError(
                f"Giving up on {url} after {self.max_retries} attempts: {e}",
                url=url,
                attempts=self.max_retries,
            ) from e


__all__ = [
    "RetryableError",
    "RateLimitError",
    "NetworkError",
    "ServerError",
    "ClientError",
    "MalformedResponseError",
    "FetchError",
    "CircuitBreakerError",
    "RateLimiter",
    "create_circuit_breaker",
    "classify_response_error",
    "ResilientHTTPClient",
]
