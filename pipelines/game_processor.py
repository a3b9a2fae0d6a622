"""
Game Processor Pipeline

Turns FINAL games into per-team shooting rows exactly once.
"""

from typing import Optional

from core.logging import get_logger
from db.base import db
from db.models.ncaab import Game, TeamGameStats
from pipelines.base import BasePipeline
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from pipelines.extractors import ESPNScoreboardExtractor
from pipelines.team_rollups import recompute_rollup
from pipelines.transformers.espn import ShootingLine
from schemas.pipeline import ProcessCompletedGamesResult
from services.projection import derive_two_point


def build_stat_row(team_line: ShootingLine, opponent_line: ShootingLine) -> dict[str, int]:
    """Offensive figures from the team's line, allowed figures from the opponent's."""
    off_2pt_made, off_2pt_att = derive_two_point(
        team_line.fgm, team_line.fga, team_line.tpm, team_line.tpa
    )
    def_2pt_made, def_2pt_att = derive_two_point(
        opponent_line.fgm, opponent_line.fga, opponent_line.tpm, opponent_line.tpa
    )
    return {
        "off_2pt_made": off_2pt_made,
        "off_2pt_att": off_2pt_att,
        "off_3pt_made": team_line.tpm,
        "off_3pt_att": team_line.tpa,
        "off_ft_made": team_line.ftm,
        "off_ft_att": team_line.fta,
        "def_2pt_made_allowed": def_2pt_made,
        "def_2pt_att_allowed": def_2pt_att,
        "def_3pt_made_allowed": opponent_line.tpm,
        "def_3pt_att_allowed": opponent_line.tpa,
        "def_ft_made_allowed": opponent_line.ftm,
        "def_ft_att_allowed": opponent_line.fta,
    }


class GameProcessorPipeline(BasePipeline):
    """
    Process completed games into team_game_stats.

    This pipeline:
    1. Selects FINAL games with stats_processed = False, oldest first
    2. Fetches each game's boxscore
    3. Skips games whose boxscore or either side's stats are missing
       (they are picked up again on the next run)
    4. In one transaction: upserts both teams' rows, recomputes both
       rollups, fills missing scores and sets stats_processed
    """

    config = PipelineConfig(
        name="game_processor",
        display_name="Process Completed Games",
        description="Extracts shooting splits for completed games and updates rollups",
        target_table="team_game_stats",
        depends_on=("schedule_sync",),
    )

    def __init__(self, extractor: Optional[ESPNScoreboardExtractor] = None):
        super().__init__()
        self.extractor = extractor or ESPNScoreboardExtractor()
        self.log = get_logger("game_processor")

    def execute(self, ctx: PipelineContext) -> None:
        result = self.process_completed_games(log=ctx.log)
        ctx.increment_records(result.games_processed)
        ctx.data = result.model_dump()

    def process_completed_games(self, log=None) -> ProcessCompletedGamesResult:
        """Process every FINAL, unprocessed game; per-game failures are collected."""
        log = log or self.log
        result = ProcessCompletedGamesResult()

        games = Game.get_unprocessed_final()
        result.games_found = len(games)
        log.info("unprocessed_games_found", count=len(games))

        for game in games:
            try:
                processed = self.process_game(game, log=log)
            except Exception as e:
                message = f"game {game.provider_game_id}: {type(e).__name__}: {e}"
                result.errors.append(message)
                log.error("game_processing_failed", game_id=game.provider_game_id, error=str(e))
                continue

            if processed:
                result.games_processed += 1
            else:
                result.games_skipped += 1

        log.info(
            "completed_games_processed",
            found=result.games_found,
            processed=result.games_processed,
            skipped=result.games_skipped,
            errors=len(result.errors),
        )
        return result

    def process_game(self, game: Game, log=None) -> bool:
        """
        Process one game. Returns False when it was skipped for missing data.

        Raises:
            FetchError: The boxscore could not be fetched
        """
        log = log or self.log
        boxscore = self.extractor.fetch_boxscore(game.league, game.provider_game_id)

        if boxscore is None:
            log.info("game_skipped_no_boxscore", game_id=game.provider_game_id)
            return False

        home_line = boxscore.home.shooting
        away_line = boxscore.away.shooting
        if home_line is None or away_line is None:
            log.info(
                "game_skipped_missing_stats",
                game_id=game.provider_game_id,
                home=home_line is not None,
                away=away_line is not None,
            )
            return False

        with db.atomic():
            TeamGameStats.upsert_stats(
                game, game.home_team_id, game.away_team_id,
                build_stat_row(home_line, away_line),
            )
            TeamGameStats.upsert_stats(
                game, game.away_team_id, game.home_team_id,
                build_stat_row(away_line, home_line),
            )

            recompute_rollup(game.home_team_id, game.league, game.season)
            recompute_rollup(game.away_team_id, game.league, game.season)

            if game.home_score is None and home_line.points is not None:
                game.home_score = home_line.points
            if game.away_score is None and away_line.points is not None:
                game.away_score = away_line.points
            game.stats_processed = True
            game.save()

        log.debug("game_processed", game_id=game.provider_game_id)
        return True
