"""
ESPN Extractor

Fetches college basketball scoreboards and game summaries from the ESPN
site API.
"""

from typing import Optional

from core.resilience import ResilientHTTPClient
from core.settings import settings
from pipelines.extractors.base import BaseExtractor
from pipelines.transformers.espn import (
    BoxscoreRecord,
    EventRecord,
    MalformedEventError,
    parse_boxscore,
    parse_event,
)
from utils.constants import ESPN_SPORT_PATHS, League


class ESPNScoreboardExtractor(BaseExtractor):
    """
    Extractor for the ESPN site API (scoreboard + summary endpoints).

    Owns one ResilientHTTPClient, and through it one rate limiter and one
    circuit breaker, so separate extractor instances pace independently.

    Provides methods to fetch:
    - Raw and normalized scoreboard events for a league and day
    - Normalized boxscores for a single event
    """

    def __init__(self, client: Optional[ResilientHTTPClient] = None):
        super().__init__("espn", client)

    def _league_url(self, league: League | str, endpoint: str) -> str:
        sport_path = ESPN_SPORT_PATHS[League(league)]
        return f"{settings.espn_site_api_base}/{sport_path}/{endpoint}"

    def fetch_raw_events(self, league: League | str, date_str: str) -> list[dict]:
        """
        Fetch every Division I scoreboard event for one day.

        Pages with limit/offset until an empty or short page, stopping at
        a safety cap on the offset if the provider ignores paging.

        Args:
            league: League to fetch
            date_str: Day in YYYYMMDD format

        Raises:
            FetchError: A page could not be fetched after retries
        """
        url = self._league_url(league, "scoreboard")
        page_limit = settings.espn_page_limit
        events: list[dict] = []
        offset = 0

        while True:
            payload = self.client.get_json(
                url,
                params={
                    "dates": date_str,
                    "groups": settings.espn_group_id,
                    "limit": page_limit,
                    "offset": offset,
                },
            )
            page = (payload or {}).get("events") or []
            if not page:
                break

            events.extend(page)
            if len(page) < page_limit:
                break

            offset += page_limit
            if offset > settings.espn_max_offset:
                self.log.warning(
                    "pagination_cap_hit",
                    league=str(League(league).value),
                    date=date_str,
                    events=len(events),
                )
                break

        self.log.debug(
            "scoreboard_fetched",
            league=League(league).value,
            date=date_str,
            events=len(events),
        )
        return events

    def fetch_daily_events(self, league: League | str, date_str: str) -> list[EventRecord]:
        """
        Fetch and normalize a day's events.

        Events that cannot be normalized are logged and left out.

        Raises:
            FetchError: The scoreboard could not be fetched after retries
        """
        records = []
        for raw in self.fetch_raw_events(league, date_str):
            try:
                records.append(parse_event(raw))
            except MalformedEventError as e:
                self.log.warning("event_skipped", event_id=raw.get("id"), error=str(e))
        return records

    def fetch_boxscore(self, league: League | str, event_id: str) -> Optional[BoxscoreRecord]:
        """
        Fetch and normalize the boxscore for one event.

        Returns:
            BoxscoreRecord, or None when the summary carries no boxscore

        Raises:
            FetchError: The summary could not be fetched after retries
        """
        payload = self.client.get_json(
            self._league_url(league, "summary"),
            params={"event": event_id, "groups": settings.espn_group_id},
        )
        record = parse_boxscore(payload or {}, event_id)
        if record is not None and not record.matched_by_role:
            self.log.warning("boxscore_positional_fallback", event_id=event_id)
        return record
