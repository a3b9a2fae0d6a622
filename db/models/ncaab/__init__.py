"""
NCAA Basketball Schema Models

Normalized models for college basketball schedules, per-game shooting
splits, season rollups and national averages.
"""

from db.models.ncaab.teams import Team
from db.models.ncaab.games import Game
from db.models.ncaab.team_game_stats import TeamGameStats, STAT_COLUMNS
from db.models.ncaab.team_season_rollups import TeamSeasonRollup, ROLLUP_TOTAL_COLUMNS
from db.models.ncaab.national_averages import NationalAverages, AVERAGE_COLUMNS

__all__ = [
    "Team",
    "Game",
    "TeamGameStats",
    "TeamSeasonRollup",
    "NationalAverages",
    "STAT_COLUMNS",
    "ROLLUP_TOTAL_COLUMNS",
    "AVERAGE_COLUMNS",
]
