"""
Team Rollups Pipeline

Rebuilds team season totals from team_game_stats. Every recompute is a
full SUM/COUNT aggregation that overwrites the rollup row, so it can be
repeated any number of times without double counting.
"""

from typing import Optional

from peewee import fn

from core.logging import get_logger
from db.models.ncaab import (
    ROLLUP_TOTAL_COLUMNS,
    Team,
    TeamGameStats,
    TeamSeasonRollup,
)
from pipelines.base import BasePipeline
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from utils.constants import LEAGUES
from utils.season import current_season, parse_season


log = get_logger("team_rollups")


def recompute_rollup(team_id: int, league: str, season: str) -> TeamSeasonRollup:
    """
    Recompute one team's season totals from its game rows.

    games_played is the row count of the aggregation.
    """
    aggregates = [fn.COUNT(TeamGameStats.id).alias("games_played")]
    for column, source in ROLLUP_TOTAL_COLUMNS.items():
        aggregates.append(
            fn.COALESCE(fn.SUM(getattr(TeamGameStats, source)), 0).alias(column)
        )

    totals = (
        TeamGameStats.select(*aggregates)
        .where(
            (TeamGameStats.team == team_id)
            & (TeamGameStats.league == league)
            & (TeamGameStats.season == season)
        )
        .dicts()
        .get()
    )
    values = {key: int(value or 0) for key, value in totals.items()}

    rollup, created = TeamSeasonRollup.get_or_create(
        team=team_id,
        defaults={"league": league, "season": season, **values},
    )
    if not created:
        rollup.league = league
        rollup.season = season
        for key, value in values.items():
            setattr(rollup, key, value)
        rollup.save()

    log.debug(
        "rollup_recomputed",
        team_id=team_id,
        league=league,
        season=season,
        games_played=values["games_played"],
    )
    return rollup


def recompute_all(league: str, season: str) -> int:
    """Recompute the rollup of every team in a league season. Returns the team count."""
    teams = Team.select(Team.id).where(
        (Team.league == league) & (Team.season == season)
    )
    count = 0
    for team in teams:
        recompute_rollup(team.id, league, season)
        count += 1
    return count


class TeamRollupsPipeline(BasePipeline):
    """
    Rebuild every team rollup for a season, both leagues.

    The game processor already recomputes the two teams of each game it
    processes; this pipeline repairs a whole season at once.
    """

    config = PipelineConfig(
        name="team_rollups",
        display_name="Team Season Rollups",
        description="Recomputes team season totals from per-game shooting stats",
        target_table="team_season_rollups",
    )

    def __init__(self, season: Optional[str] = None):
        super().__init__()
        if season is not None:
            parse_season(season)
        self.season = season

    def execute(self, ctx: PipelineContext) -> None:
        season = self.season or current_season()
        counts = {}
        for league in LEAGUES:
            counts[league.result_key] = recompute_all(league.value, season)
            ctx.increment_records(counts[league.result_key])
            ctx.log.info("league_rollups_rebuilt", league=league.value, teams=counts[league.result_key])
        ctx.data = {"season": season, "teams": counts}
