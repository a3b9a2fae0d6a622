"""
National Averages Pipeline

Computes games-played-weighted per-game league averages from team rollups.
"""

from typing import Optional

from peewee import fn

from core.logging import get_logger
from db.models.ncaab import NationalAverages, ROLLUP_TOTAL_COLUMNS, TeamSeasonRollup
from pipelines.base import BasePipeline
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from schemas.pipeline import BuildNationalAveragesResult, LeagueAveragesResult
from utils.constants import LEAGUES, POINT_VALUES
from utils.season import current_season, parse_season


def points_per_team_per_game(averages: dict[str, float]) -> float:
    """2 * 2pt made + 3 * 3pt made + 1 * ft made, per game."""
    return (
        POINT_VALUES["two_point"] * averages["off_2pt_made"]
        + POINT_VALUES["three_point"] * averages["off_3pt_made"]
        + POINT_VALUES["free_throw"] * averages["off_ft_made"]
    )


def compute_league_averages(league: str, season: str) -> Optional[dict]:
    """
    Weighted averages across every team with at least one game.

    Each category is sum(team totals) / sum(games played), so a team with
    30 games weighs 30 times a team with one. Returns None when no team
    has played.
    """
    aggregates = [
        fn.COUNT(TeamSeasonRollup.id).alias("team_count"),
        fn.SUM(TeamSeasonRollup.games_played).alias("total_games"),
    ]
    for column, source in ROLLUP_TOTAL_COLUMNS.items():
        aggregates.append(fn.SUM(getattr(TeamSeasonRollup, column)).alias(source))

    sums = (
        TeamSeasonRollup.select(*aggregates)
        .where(
            (TeamSeasonRollup.league == league)
            & (TeamSeasonRollup.season == season)
            & (TeamSeasonRollup.games_played > 0)
        )
        .dicts()
        .get()
    )

    team_count = int(sums.pop("team_count") or 0)
    total_games = int(sums.pop("total_games") or 0)
    if team_count == 0 or total_games == 0:
        return None

    averages = {key: int(value or 0) / total_games for key, value in sums.items()}
    return {
        "team_count": team_count,
        "total_games": total_games,
        **averages,
        "points_per_team_per_game": points_per_team_per_game(averages),
    }


class NationalAveragesPipeline(BasePipeline):
    """
    Rebuild national averages for both leagues.

    A league with no played games keeps whatever row it had before; its
    result is left absent.
    """

    config = PipelineConfig(
        name="national_averages",
        display_name="National Averages",
        description="Builds games-played-weighted league averages from team rollups",
        target_table="national_averages",
        depends_on=("game_processor",),
    )

    def __init__(self, season: Optional[str] = None):
        super().__init__()
        if season is not None:
            parse_season(season)
        self.season = season
        self.log = get_logger("national_averages")

    def execute(self, ctx: PipelineContext) -> None:
        result = self.build_averages(log=ctx.log)
        ctx.increment_records(sum(1 for r in (result.mens, result.womens) if r))
        ctx.data = result.model_dump()

    def build_averages(self, log=None) -> BuildNationalAveragesResult:
        """Build and upsert averages for each league; failures are per league."""
        log = log or self.log
        season = self.season or current_season()
        results: dict[str, LeagueAveragesResult] = {}

        for league in LEAGUES:
            try:
                data = compute_league_averages(league.value, season)
                if data is None:
                    log.info("averages_skipped_no_games", league=league.value, season=season)
                    continue

                NationalAverages.upsert_averages(league.value, season, data)
                results[league.result_key] = LeagueAveragesResult(
                    season=season,
                    team_count=data["team_count"],
                    total_games=data["total_games"],
                    points_per_team_per_game=data["points_per_team_per_game"],
                )
                log.info(
                    "averages_built",
                    league=league.value,
                    season=season,
                    teams=data["team_count"],
                    ppg=round(data["points_per_team_per_game"], 2),
                )
            except Exception as e:
                log.error("averages_failed", league=league.value, season=season, error=str(e))

        return BuildNationalAveragesResult(**results)
