from enum import Enum


# ------------------------------- Leagues ------------------------------- #
class League(str, Enum):
    """The two parallel competitions, with fully separate namespaces."""
    MENS = "MENS"
    WOMENS = "WOMENS"

    @property
    def result_key(self) -> str:
        """Key used for this league in combined results ("mens" / "womens")."""
        return self.value.lower()


LEAGUES: tuple[League, ...] = (League.MENS, League.WOMENS)

ESPN_SPORT_PATHS = {
    League.MENS: "mens-college-basketball",
    League.WOMENS: "womens-college-basketball",
}


# ------------------------------- Game Status ------------------------------- #
class GameStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    FINAL = "FINAL"
    POSTPONED = "POSTPONED"
    CANCELLED = "CANCELLED"


# ESPN competition.status.type.state -> GameStatus
ESPN_STATE_STATUS_MAP = {
    "pre": GameStatus.SCHEDULED,
    "in": GameStatus.IN_PROGRESS,
    "post": GameStatus.FINAL,
}

# Checked against the upper-cased free-text status name, in order
ESPN_STATUS_NAME_OVERRIDES: tuple[tuple[str, GameStatus], ...] = (
    ("POSTPONED", GameStatus.POSTPONED),
    ("CANCEL", GameStatus.CANCELLED),
)


# ------------------------------- Season ------------------------------- #
# Seasons start in November; May-October is off-season and maps to the
# upcoming season.
SEASON_START_MONTH = 11
SEASON_END_MONTH = 4
SEASON_WINDOW_START = (11, 1)   # (month, day) in the start year
SEASON_WINDOW_END = (4, 15)     # (month, day) in the end year
SEASON_TIMEZONE = "US/Eastern"


# ------------------------------- Projection ------------------------------- #
SHOT_TYPES: tuple[str, ...] = ("two_point", "three_point", "free_throw")

PROJECTION_WEIGHTS = {
    "two_point": 1.0,
    "three_point": 1.5,
    "free_throw": 0.5,
}

POINT_VALUES = {
    "two_point": 2,
    "three_point": 3,
    "free_throw": 1,
}
