"""
Data Transformers

Pure functions for transforming extracted data.
"""

from pipelines.transformers.espn import (
    BoxscoreRecord,
    BoxscoreTeam,
    EventRecord,
    EventTeam,
    MalformedEventError,
    ShootingLine,
    map_game_status,
    parse_boxscore,
    parse_event,
    parse_shooting_line,
)

__all__ = [
    "BoxscoreRecord",
    "BoxscoreTeam",
    "EventRecord",
    "EventTeam",
    "MalformedEventError",
    "ShootingLine",
    "map_game_status",
    "parse_boxscore",
    "parse_event",
    "parse_shooting_line",
]
