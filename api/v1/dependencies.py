"""
Shared path parameter validation for the read endpoints.
"""

from fastapi import HTTPException

from utils.constants import League
from utils.season import InvalidSeasonError, parse_season


def parse_league(value: str) -> str:
    try:
        return League(value.upper()).value
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown league '{value}'")


def league_season(league: str, season: str) -> tuple[str, str]:
    """
    Resolve the {league}/{season} path segments.

    Raises:
        HTTPException: 404 for an unknown league, 400 for a malformed season
    """
    league = parse_league(league)
    try:
        parse_season(season)
    except InvalidSeasonError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return league, season
