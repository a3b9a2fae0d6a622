"""
Schedule Sync Pipeline

Walks a date range for both leagues, fetching each day's ESPN scoreboard
and upserting teams and games keyed by their natural identity. Safe to
re-run over overlapping ranges: unchanged upstream data produces no
inserts and no updates.
"""

from datetime import date, datetime, timedelta
from typing import Iterator, Optional

import pytz

from core.logging import get_logger
from core.settings import settings
from db.base import db
from db.models.ncaab import Game, Team, TeamSeasonRollup
from pipelines.base import BasePipeline
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from pipelines.extractors import ESPNScoreboardExtractor
from pipelines.transformers.espn import EventTeam, parse_event
from schemas.pipeline import LeagueSyncResult, SyncSchedulesResult
from utils.constants import LEAGUES, GameStatus, League, SEASON_TIMEZONE
from utils.season import event_local_date, parse_season, season_for_date, season_window


# Scores are only trusted once a game has tipped off
SCORED_STATUSES = (GameStatus.IN_PROGRESS, GameStatus.FINAL)


def date_range(start: date, end: date) -> Iterator[date]:
    """Every date from start to end, inclusive."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def _today() -> date:
    return datetime.now(pytz.timezone(SEASON_TIMEZONE)).date()


class ScheduleSyncPipeline(BasePipeline):
    """
    Sync schedules and scores for a date range, both leagues.

    This pipeline:
    1. Fetches each day's scoreboard per league
    2. Derives each event's season from its own US/Eastern date, unless a
       season override is given
    3. Upserts home team, away team, then the game
    4. Records per-date and per-event failures without stopping the run
    """

    config = PipelineConfig(
        name="schedule_sync",
        display_name="Schedule Sync",
        description="Syncs college basketball schedules and scores from ESPN",
        target_table="games",
        lock_group="schedule_sync",
    )

    def __init__(
        self,
        start: date,
        end: date,
        season: Optional[str] = None,
        extractor: Optional[ESPNScoreboardExtractor] = None,
    ):
        super().__init__()
        if end < start:
            raise ValueError(f"end date {end} is before start date {start}")
        if season is not None:
            parse_season(season)

        self.start = start
        self.end = end
        self.season = season
        self.extractor = extractor or ESPNScoreboardExtractor()
        self.log = get_logger("schedule_sync")

    @classmethod
    def for_days(
        cls,
        days: Optional[int] = None,
        today: Optional[date] = None,
        extractor: Optional[ESPNScoreboardExtractor] = None,
    ) -> "ScheduleSyncPipeline":
        """Sync today through today + days - 1."""
        days = settings.default_sync_days if days is None else days
        if not 1 <= days <= settings.max_sync_days:
            raise ValueError(f"days must be between 1 and {settings.max_sync_days}, got {days}")

        start = today or _today()
        return cls(start, start + timedelta(days=days - 1), extractor=extractor)

    def execute(self, ctx: PipelineContext) -> None:
        result = self.sync_all(log=ctx.log)
        for league_result in (result.mens, result.womens):
            ctx.increment_records(league_result.games_inserted + league_result.games_updated)
        ctx.data = result.model_dump()

    def sync_all(self, log=None) -> SyncSchedulesResult:
        """Sync the configured range for every league."""
        results = {
            league.result_key: self.sync_range(league, self.start, self.end, self.season, log=log)
            for league in LEAGUES
        }
        return SyncSchedulesResult(
            start_date=self.start.isoformat(),
            end_date=self.end.isoformat(),
            season=self.season,
            **results,
        )

    def sync_range(
        self,
        league: League | str,
        start: date,
        end: date,
        season_override: Optional[str] = None,
        log=None,
    ) -> LeagueSyncResult:
        """
        Sync one league over [start, end].

        A failed date or event is appended to the result's errors and the
        walk continues with the next one.
        """
        log = (log or self.log).bind(league=League(league).value)
        league = League(league).value
        result = LeagueSyncResult()

        for day in date_range(start, end):
            date_str = day.strftime("%Y%m%d")
            try:
                raw_events = self.extractor.fetch_raw_events(league, date_str)
            except Exception as e:
                result.errors.append(f"{date_str}: {type(e).__name__}: {e}")
                log.warning("date_fetch_failed", date=date_str, error=str(e))
                continue

            for raw in raw_events:
                try:
                    self._sync_event(league, raw, season_override, result)
                except Exception as e:
                    event_id = raw.get("id") if isinstance(raw, dict) else None
                    result.errors.append(f"{date_str} event {event_id}: {type(e).__name__}: {e}")
                    log.warning("event_sync_failed", date=date_str, event_id=event_id, error=str(e))

            log.debug("date_synced", date=date_str, events=len(raw_events))

        log.info(
            "league_synced",
            start=start.isoformat(),
            end=end.isoformat(),
            teams_inserted=result.teams_inserted,
            teams_updated=result.teams_updated,
            games_inserted=result.games_inserted,
            games_updated=result.games_updated,
            errors=len(result.errors),
        )
        return result

    def _sync_event(
        self,
        league: str,
        raw: dict,
        season_override: Optional[str],
        result: LeagueSyncResult,
    ) -> None:
        event = parse_event(raw)
        season = season_override or season_for_date(event_local_date(event.scheduled_at))

        with db.atomic():
            home_team, home_created, home_changed = self._upsert_team(league, season, event.home)
            away_team, away_created, away_changed = self._upsert_team(league, season, event.away)

            scored = event.status in SCORED_STATUSES
            _, game_created, game_changed = Game.upsert_game(
                league,
                season,
                event.provider_game_id,
                {
                    "scheduled_at": event.scheduled_at.replace(tzinfo=None),
                    "neutral_site": event.neutral_site,
                    "status": event.status.value,
                    "home_team": home_team,
                    "away_team": away_team,
                    "home_score": event.home.score if scored else None,
                    "away_score": event.away.score if scored else None,
                },
            )

        # Counted only once the event's writes have committed
        result.teams_inserted += home_created + away_created
        result.teams_updated += home_changed + away_changed
        result.games_inserted += game_created
        result.games_updated += game_changed

    def _upsert_team(
        self,
        league: str,
        season: str,
        event_team: EventTeam,
    ) -> tuple[Team, bool, bool]:
        team, created, changed = Team.upsert_team(
            league,
            season,
            event_team.provider_team_id,
            event_team.name,
            abbreviation=event_team.abbreviation,
            conference=event_team.conference,
        )
        if created:
            TeamSeasonRollup.ensure_for_team(team)
        return team, created, changed


class SeasonSyncPipeline(ScheduleSyncPipeline):
    """
    Backfill a whole season (default window Nov 1 - Apr 15), both leagues.

    Shares its run lock with the schedule sync so the two never overlap.
    """

    config = PipelineConfig(
        name="season_sync",
        display_name="Season Sync",
        description="Backfills a full season of schedules and scores from ESPN",
        target_table="games",
        lock_group="schedule_sync",
    )

    def __init__(
        self,
        season: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        extractor: Optional[ESPNScoreboardExtractor] = None,
    ):
        window_start, window_end = season_window(season)
        super().__init__(
            start or window_start,
            end or window_end,
            season=season,
            extractor=extractor,
        )


def sync_schedules(
    days: Optional[int] = None,
    today: Optional[date] = None,
    extractor: Optional[ESPNScoreboardExtractor] = None,
) -> SyncSchedulesResult:
    """
    Sync the next `days` days (today included) for both leagues.

    Runs under the schedule lock and records a pipeline run, like the
    HTTP triggers.

    Raises:
        PipelineConflictError: A schedule or season sync is already running
        PipelineRunError: The sync failed
    """
    data = ScheduleSyncPipeline.for_days(days, today=today, extractor=extractor).run_for_data()
    return SyncSchedulesResult.model_validate(data)


def sync_schedules_range(
    start: date,
    end: date,
    season: Optional[str] = None,
    extractor: Optional[ESPNScoreboardExtractor] = None,
) -> SyncSchedulesResult:
    """Sync an explicit inclusive date range for both leagues."""
    data = ScheduleSyncPipeline(start, end, season=season, extractor=extractor).run_for_data()
    return SyncSchedulesResult.model_validate(data)


def sync_season(
    season: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    extractor: Optional[ESPNScoreboardExtractor] = None,
) -> SyncSchedulesResult:
    """Sync a season's default window (or the given sub-range) for both leagues."""
    data = SeasonSyncPipeline(season, start=start, end=end, extractor=extractor).run_for_data()
    return SyncSchedulesResult.model_validate(data)
