"""
Projection Engine

Pure scoring-projection math. No I/O: callers pass per-game team stats
and national averages as plain dicts keyed like TeamGameStats columns
(off_2pt_made, def_3pt_att_allowed, ...).

A team's differential in a shot category is its combined makes plus
attempts per game minus the national combined makes plus attempts. Each
team's expected points are the national points-per-team baseline plus a
weighted average of its offensive differential and the opponent's
defensive differential, per shot category.
"""

from dataclasses import dataclass, asdict
from typing import Literal, Optional

from utils.constants import PROJECTION_WEIGHTS, SHOT_TYPES


BetOutcome = Literal["win", "loss", "push"]

# Shot type -> column infix
SHOT_COLUMN_KEYS = {
    "two_point": "2pt",
    "three_point": "3pt",
    "free_throw": "ft",
}


@dataclass(frozen=True)
class Differentials:
    offense: dict[str, float]
    defense: dict[str, float]


@dataclass(frozen=True)
class TeamExpectation:
    adjustments: dict[str, float]
    expected_points: float


@dataclass(frozen=True)
class TeamProjection:
    name: str
    expected_points: float
    adjustments: dict[str, float]
    differentials: Differentials


@dataclass(frozen=True)
class GameTotalBreakdown:
    team1: TeamProjection
    team2: TeamProjection
    expected_total: float
    national_points_per_team: float

    def to_dict(self) -> dict:
        return asdict(self)


def derive_two_point(fgm: int, fga: int, tpm: int, tpa: int) -> tuple[int, int]:
    """
    Two-point makes/attempts from field-goal and three-point figures.

    derive_two_point(30, 60, 8, 20) -> (22, 40)
    """
    return fgm - tpm, fga - tpa


def per_game_from_totals(totals: dict[str, int], games_played: int) -> Optional[dict[str, float]]:
    """Divide season totals by games played; None for a team with no games."""
    if not games_played:
        return None
    return {key: value / games_played for key, value in totals.items()}


def _volume(stats: dict[str, float], side: str, shot_type: str) -> float:
    infix = SHOT_COLUMN_KEYS[shot_type]
    if side == "off":
        return stats[f"off_{infix}_made"] + stats[f"off_{infix}_att"]
    return stats[f"def_{infix}_made_allowed"] + stats[f"def_{infix}_att_allowed"]


def differentials(team_per_game: dict[str, float], national: dict[str, float]) -> Differentials:
    """Offensive and defensive differentials for every shot type."""
    return Differentials(
        offense={
            shot: _volume(team_per_game, "off", shot) - _volume(national, "off", shot)
            for shot in SHOT_TYPES
        },
        defense={
            shot: _volume(team_per_game, "def", shot) - _volume(national, "def", shot)
            for shot in SHOT_TYPES
        },
    )


def expected_points(
    team_diffs: Differentials,
    opponent_diffs: Differentials,
    national_points_per_team: float,
) -> TeamExpectation:
    """
    Expected points for a team against an opponent.

    adjustment = weight * avg(team offense diff, opponent defense diff)
    expected = national points per team + sum(adjustments)
    """
    adjustments = {
        shot: PROJECTION_WEIGHTS[shot]
        * (team_diffs.offense[shot] + opponent_diffs.defense[shot]) / 2
        for shot in SHOT_TYPES
    }
    return TeamExpectation(
        adjustments=adjustments,
        expected_points=national_points_per_team + sum(adjustments.values()),
    )


def game_total(
    team1_per_game: dict[str, float],
    team2_per_game: dict[str, float],
    national: dict[str, float],
    national_points_per_team: float,
    team1_name: str = "team1",
    team2_name: str = "team2",
) -> GameTotalBreakdown:
    """Symmetric projection for both teams plus the expected game total."""
    team1_diffs = differentials(team1_per_game, national)
    team2_diffs = differentials(team2_per_game, national)

    team1_expected = expected_points(team1_diffs, team2_diffs, national_points_per_team)
    team2_expected = expected_points(team2_diffs, team1_diffs, national_points_per_team)

    return GameTotalBreakdown(
        team1=TeamProjection(
            name=team1_name,
            expected_points=team1_expected.expected_points,
            adjustments=team1_expected.adjustments,
            differentials=team1_diffs,
        ),
        team2=TeamProjection(
            name=team2_name,
            expected_points=team2_expected.expected_points,
            adjustments=team2_expected.adjustments,
            differentials=team2_diffs,
        ),
        expected_total=team1_expected.expected_points + team2_expected.expected_points,
        national_points_per_team=national_points_per_team,
    )


def bet_profit(stake: float, american_odds: float, outcome: BetOutcome) -> float:
    """
    Profit on a settled bet at American odds.

    push -> 0, loss -> -stake, win -> stake * odds / 100 for positive odds
    or stake * 100 / |odds| for negative odds.
    """
    if outcome == "push":
        return 0.0
    if outcome == "loss":
        return -stake
    if outcome != "win":
        raise ValueError(f"Unknown bet outcome {outcome!r}")
    if american_odds == 0:
        raise ValueError("American odds cannot be 0")

    if american_odds > 0:
        return stake * (american_odds / 100)
    return stake * (100 / abs(american_odds))
