"""
Projection API Routes

Read-only endpoints: the current season, expected scores for stored games,
and the bet profit helper. No authentication required.
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from api.v1.dependencies import league_season
from core.logging import get_logger
from schemas.common import success_response
from schemas.projection import BetProfitData, BetProfitRequest, SeasonInfo
from services.projection import bet_profit
from services.projection_service import (
    GameNotFoundError,
    ProjectionUnavailableError,
    project_game,
)
from utils.season import current_season, season_window

router = APIRouter(tags=["projections"])
log = get_logger("projection_api")


@router.get("/season")
async def get_current_season() -> dict:
    """Current season label (US/Eastern) and its default window."""
    season = current_season()
    start, end = season_window(season)
    return success_response(
        message="Current season",
        data=SeasonInfo(
            season=season,
            window_start=start.isoformat(),
            window_end=end.isoformat(),
        ).model_dump(),
    )


@router.get("/{league}/{season}/games/{game_id}/expected")
async def get_expected_score(
    game_id: str,
    scope: tuple[str, str] = Depends(league_season),
) -> dict:
    """
    Expected points for both teams of a stored game and the expected total,
    with the differential and adjustment breakdown.
    """
    league, season = scope
    try:
        data = await asyncio.to_thread(project_game, league, season, game_id)
    except GameNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProjectionUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))

    log.debug("projection_served", league=league, season=season, game_id=game_id)
    return success_response(message="Projection calculated", data=data)


@router.post("/projections/bet-profit")
async def calculate_bet_profit(request: BetProfitRequest) -> dict:
    """Profit on a settled bet at American odds."""
    try:
        profit = bet_profit(request.stake, request.odds, request.outcome)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return success_response(
        message="Bet profit calculated",
        data=BetProfitData(
            stake=request.stake,
            odds=request.odds,
            outcome=request.outcome,
            profit=round(profit, 2),
        ).model_dump(),
    )
