"""
Game API Routes

Read-only schedule endpoints. Days are US/Eastern calendar days, the same
day a game is labelled with during ingestion. No authentication required.
"""

import asyncio
from datetime import date, datetime
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, Query
from peewee import JOIN

from api.v1.dependencies import league_season
from db.models.ncaab import Game, Team
from schemas.common import success_response
from schemas.ncaab import GameSummary, TeamRef
from utils.constants import SEASON_TIMEZONE
from utils.season import event_local_date, local_day_bounds

router = APIRouter(tags=["games"])

WEEK_DAYS = 7


def _team_ref(team: Team) -> TeamRef:
    return TeamRef(id=team.id, name=team.name, provider_team_id=team.provider_team_id)


def _to_summary(game: Game) -> GameSummary:
    scheduled_at = pytz.utc.localize(game.scheduled_at)
    return GameSummary(
        id=game.id,
        provider_game_id=game.provider_game_id,
        scheduled_at=scheduled_at.isoformat(),
        local_date=event_local_date(scheduled_at).isoformat(),
        home_team=_team_ref(game.home_team),
        away_team=_team_ref(game.away_team),
        neutral_site=game.neutral_site,
        status=game.status,
        home_score=game.home_score,
        away_score=game.away_score,
        stats_processed=game.stats_processed,
    )


def _list_games(
    league: str,
    season: str,
    start: Optional[date] = None,
    days: int = 1,
) -> list[GameSummary]:
    HomeTeam = Team.alias()
    AwayTeam = Team.alias()

    query = (
        Game.select(Game, HomeTeam, AwayTeam)
        .join(HomeTeam, JOIN.INNER, on=(Game.home_team == HomeTeam.id))
        .switch(Game)
        .join(AwayTeam, JOIN.INNER, on=(Game.away_team == AwayTeam.id))
        .where((Game.league == league) & (Game.season == season))
        .order_by(Game.scheduled_at.asc(), Game.id.asc())
    )
    if start is not None:
        lower, upper = local_day_bounds(start, days)
        query = query.where((Game.scheduled_at >= lower) & (Game.scheduled_at < upper))

    return [_to_summary(game) for game in query]


def _today() -> date:
    return datetime.now(pytz.timezone(SEASON_TIMEZONE)).date()


@router.get("/{league}/{season}/games")
async def list_games(
    scope: tuple[str, str] = Depends(league_season),
    day: Optional[date] = Query(None, alias="date", description="US/Eastern day (YYYY-MM-DD). Omit for the whole season."),
) -> dict:
    """Games of a league and season, optionally for one day, in tip-off order."""
    league, season = scope
    games = await asyncio.to_thread(_list_games, league, season, day)
    return success_response(
        message=f"Found {len(games)} games",
        data=[g.model_dump() for g in games],
    )


@router.get("/{league}/{season}/games/week")
async def list_games_for_week(
    scope: tuple[str, str] = Depends(league_season),
    start: Optional[date] = Query(None, description="First US/Eastern day (YYYY-MM-DD). Omit for today."),
) -> dict:
    """Games over seven US/Eastern days starting at `start`."""
    league, season = scope
    start = start or _today()
    games = await asyncio.to_thread(_list_games, league, season, start, WEEK_DAYS)
    return success_response(
        message=f"Found {len(games)} games",
        data=[g.model_dump() for g in games],
    )
