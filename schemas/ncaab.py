from pydantic import BaseModel
from typing import Optional


# ---------------------- Teams ---------------------- #


class TeamRef(BaseModel):
    id: int
    name: str
    provider_team_id: str


class TeamSummary(TeamRef):
    """A team in the season listing."""

    abbreviation: Optional[str] = None
    conference: Optional[str] = None
    games_played: int = 0


class ShootingSplits(BaseModel):
    """Per-game figures grouped by side of the ball, keyed like TeamGameStats columns."""

    offense: dict[str, float]
    defense: dict[str, float]


class TeamDetail(TeamSummary):
    """
    A team with its per-game shooting and its differentials against the
    national averages. stats is None before the first processed game;
    differentials is None until averages exist for the season.
    """

    stats: Optional[ShootingSplits] = None
    differentials: Optional[ShootingSplits] = None


class NationalAveragesData(BaseModel):
    league: str
    season: str
    team_count: int
    total_games: int
    averages: ShootingSplits
    points_per_team_per_game: float
    updated_at: str


# ---------------------- Games ---------------------- #


class GameSummary(BaseModel):
    """
    A stored game. local_date is the US/Eastern calendar day of tip-off,
    which can differ from the UTC date of scheduled_at for late games.
    """

    id: int
    provider_game_id: str
    scheduled_at: str
    local_date: str
    home_team: TeamRef
    away_team: TeamRef
    neutral_site: bool
    status: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    stats_processed: bool
