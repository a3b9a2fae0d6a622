"""
ESPN Transformer

Normalizes ESPN site-API scoreboard events and game summaries into strict
internal records. Every fallback is an ordered rule list; the first rule
that yields a value wins.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import pytz

from utils.constants import (
    ESPN_STATE_STATUS_MAP,
    ESPN_STATUS_NAME_OVERRIDES,
    GameStatus,
)


class MalformedEventError(ValueError):
    """Raised when a provider event cannot be normalized."""

    pass


# ------------------------------- Records ------------------------------- #


@dataclass(frozen=True)
class EventTeam:
    provider_team_id: str
    name: str
    abbreviation: Optional[str]
    conference: Optional[str]
    score: Optional[int]


@dataclass(frozen=True)
class EventRecord:
    """One scoreboard event with home/away resolved by declared role."""

    provider_game_id: str
    scheduled_at: datetime  # tz-aware UTC
    neutral_site: bool
    status: GameStatus
    status_name: str
    home: EventTeam
    away: EventTeam


@dataclass(frozen=True)
class ShootingLine:
    fgm: int
    fga: int
    tpm: int
    tpa: int
    ftm: int
    fta: int
    points: Optional[int] = None


@dataclass(frozen=True)
class BoxscoreTeam:
    provider_team_id: str
    shooting: Optional[ShootingLine]


@dataclass(frozen=True)
class BoxscoreRecord:
    """
    Shooting lines for both sides of a game.

    matched_by_role is False when the boxscore teams could not be matched
    to the header's home/away competitors and the positional fallback
    (index 1 = home, index 0 = away) was used.
    """

    provider_game_id: str
    home: BoxscoreTeam
    away: BoxscoreTeam
    matched_by_role: bool


# ------------------------------- Rules ------------------------------- #

# ESPN timestamps, most specific first
EVENT_DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%MZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
)

# Team display name: team.displayName, then "location name", then name
TEAM_NAME_RULES = (
    lambda team, competitor: team.get("displayName"),
    lambda team, competitor: " ".join(
        part for part in (team.get("location"), team.get("name")) if part
    ),
    lambda team, competitor: team.get("name") or competitor.get("name"),
)

# Shooting fields: (stat name, part index) where part index None means the
# stat is a split field, else the index into a combined "made-attempted"
SHOOTING_FIELD_RULES: dict[str, tuple[tuple[str, Optional[int]], ...]] = {
    "fgm": (
        ("fieldGoalsMade", None),
        ("fieldGoalsMade-fieldGoalsAttempted", 0),
        ("fieldGoals", 0),
    ),
    "fga": (
        ("fieldGoalsAttempted", None),
        ("fieldGoalsMade-fieldGoalsAttempted", 1),
        ("fieldGoals", 1),
    ),
    "tpm": (
        ("threePointFieldGoalsMade", None),
        ("threePointFieldGoalsMade-threePointFieldGoalsAttempted", 0),
        ("threePointFieldGoals", 0),
    ),
    "tpa": (
        ("threePointFieldGoalsAttempted", None),
        ("threePointFieldGoalsMade-threePointFieldGoalsAttempted", 1),
        ("threePointFieldGoals", 1),
    ),
    "ftm": (
        ("freeThrowsMade", None),
        ("freeThrowsMade-freeThrowsAttempted", 0),
        ("freeThrows", 0),
    ),
    "fta": (
        ("freeThrowsAttempted", None),
        ("freeThrowsMade-freeThrowsAttempted", 1),
        ("freeThrows", 1),
    ),
    "points": (
        ("points", None),
        ("totalPoints", None),
    ),
}


# ------------------------------- Helpers ------------------------------- #


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_event_datetime(value: str) -> datetime:
    """Parse an ESPN event timestamp into an aware UTC datetime."""
    for fmt in EVENT_DATE_FORMATS:
        try:
            return pytz.utc.localize(datetime.strptime(value, fmt))
        except (TypeError, ValueError):
            continue
    raise MalformedEventError(f"Unrecognized event date {value!r}")


def map_game_status(
    state: Optional[str],
    name: Optional[str],
    completed: bool = False,
) -> GameStatus:
    """
    Map an ESPN status to a GameStatus.

    Rules, in order:
        1. status name contains POSTPONED -> POSTPONED
        2. status name contains CANCEL -> CANCELLED
        3. provider says completed -> FINAL
        4. state table (pre / in / post)
        5. SCHEDULED
    """
    upper_name = (name or "").upper()
    for needle, status in ESPN_STATUS_NAME_OVERRIDES:
        if needle in upper_name:
            return status

    if completed:
        return GameStatus.FINAL

    return ESPN_STATE_STATUS_MAP.get((state or "").lower(), GameStatus.SCHEDULED)


def _competitor_by_role(competitors: list[dict], role: str) -> Optional[dict]:
    for competitor in competitors:
        if competitor.get("homeAway") == role:
            return competitor
    return None


def _competitor_team_id(competitor: dict) -> Optional[str]:
    team_id = (competitor.get("team") or {}).get("id") or competitor.get("id")
    return str(team_id) if team_id is not None else None


def _parse_event_team(competitor: dict, event_id: str) -> EventTeam:
    team = competitor.get("team") or {}
    team_id = _competitor_team_id(competitor)
    if not team_id:
        raise MalformedEventError(f"Competitor without team id in event {event_id}")

    name = None
    for rule in TEAM_NAME_RULES:
        name = rule(team, competitor)
        if name:
            break

    conference = team.get("conferenceId")
    return EventTeam(
        provider_team_id=team_id,
        name=name or "Unknown",
        abbreviation=team.get("abbreviation") or competitor.get("abbreviation"),
        conference=str(conference) if conference is not None else None,
        score=_to_int(competitor.get("score")),
    )


# ------------------------------- Events ------------------------------- #


def parse_event(event: dict) -> EventRecord:
    """
    Normalize one scoreboard event.

    Raises:
        MalformedEventError: Missing competition, home/away role or date
    """
    event_id = str(event.get("id") or "")
    if not event_id:
        raise MalformedEventError("Event without id")

    competitions = event.get("competitions") or []
    if not competitions:
        raise MalformedEventError(f"No competition found for event {event_id}")
    competition = competitions[0]

    competitors = competition.get("competitors") or []
    home = _competitor_by_role(competitors, "home")
    away = _competitor_by_role(competitors, "away")
    if home is None or away is None:
        raise MalformedEventError(f"Missing home or away team for event {event_id}")

    status_type = (competition.get("status") or event.get("status") or {}).get("type") or {}
    status_name = status_type.get("name") or "STATUS_SCHEDULED"

    return EventRecord(
        provider_game_id=event_id,
        scheduled_at=parse_event_datetime(event.get("date") or competition.get("date")),
        neutral_site=bool(competition.get("neutralSite", False)),
        status=map_game_status(
            status_type.get("state"),
            status_name,
            status_type.get("completed") is True,
        ),
        status_name=status_name,
        home=_parse_event_team(home, event_id),
        away=_parse_event_team(away, event_id),
    )


# ------------------------------- Boxscores ------------------------------- #


def _stat_map(statistics: list[dict]) -> dict[str, Any]:
    stats = {}
    for stat in statistics or []:
        name = stat.get("name")
        value = stat.get("displayValue", stat.get("value"))
        if name and value is not None:
            stats[name] = value
    return stats


def _resolve_field(stats: dict[str, Any], rules: tuple[tuple[str, Optional[int]], ...]) -> Optional[int]:
    for stat_name, part in rules:
        raw = stats.get(stat_name)
        if raw is None:
            continue
        if part is None:
            value = _to_int(raw)
        else:
            pieces = str(raw).split("-")
            value = _to_int(pieces[part]) if len(pieces) > part else None
        if value is not None:
            return value
    return None


def parse_shooting_line(statistics: list[dict]) -> Optional[ShootingLine]:
    """
    Build a shooting line from a boxscore statistics block.

    Returns None when the block is absent or every attempt count is zero;
    an all-zero line means the provider has no stats for the team.
    """
    stats = _stat_map(statistics)
    values = {
        field: _resolve_field(stats, rules)
        for field, rules in SHOOTING_FIELD_RULES.items()
    }
    line = ShootingLine(
        fgm=values["fgm"] or 0,
        fga=values["fga"] or 0,
        tpm=values["tpm"] or 0,
        tpa=values["tpa"] or 0,
        ftm=values["ftm"] or 0,
        fta=values["fta"] or 0,
        points=values["points"],
    )
    if line.fga == 0 and line.fta == 0:
        return None
    return line


def _boxscore_team(entry: dict) -> BoxscoreTeam:
    team_id = (entry.get("team") or {}).get("id")
    return BoxscoreTeam(
        provider_team_id=str(team_id) if team_id is not None else "",
        shooting=parse_shooting_line(entry.get("statistics") or []),
    )


def parse_boxscore(payload: dict, event_id: str) -> Optional[BoxscoreRecord]:
    """
    Normalize a game summary into a BoxscoreRecord.

    Boxscore teams are matched to home/away by team id against the header's
    competitors; without a match on both sides the positional fallback is
    used. Returns None when the summary has fewer than two teams.
    """
    teams = (payload.get("boxscore") or {}).get("teams") or []
    if len(teams) < 2:
        return None

    header_competitions = (payload.get("header") or {}).get("competitions") or [{}]
    competitors = header_competitions[0].get("competitors") or []
    home_competitor = _competitor_by_role(competitors, "home")
    away_competitor = _competitor_by_role(competitors, "away")

    by_id = {
        str((entry.get("team") or {}).get("id")): entry
        for entry in teams
        if (entry.get("team") or {}).get("id") is not None
    }
    home_entry = by_id.get(_competitor_team_id(home_competitor)) if home_competitor else None
    away_entry = by_id.get(_competitor_team_id(away_competitor)) if away_competitor else None

    matched_by_role = home_entry is not None and away_entry is not None and home_entry is not away_entry
    if not matched_by_role:
        home_entry, away_entry = teams[1], teams[0]

    return BoxscoreRecord(
        provider_game_id=str(event_id),
        home=_boxscore_team(home_entry),
        away=_boxscore_team(away_entry),
        matched_by_role=matched_by_role,
    )
