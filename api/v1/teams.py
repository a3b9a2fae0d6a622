"""
Team API Routes

Read-only endpoints over the team dimension, the season rollups and the
national averages. No authentication required.

Routes:
    GET /{league}/{season}/teams                    search by name, with games played
    GET /{league}/{season}/teams/{team_id}          per-game shooting and differentials
    GET /{league}/{season}/national-averages        the projection baseline
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from peewee import JOIN, fn

from api.v1.dependencies import league_season
from db.models.ncaab import NationalAverages, Team, TeamSeasonRollup
from schemas.common import success_response
from schemas.ncaab import NationalAveragesData, ShootingSplits, TeamDetail, TeamSummary
from services.projection import differentials

router = APIRouter(tags=["teams"])


def _split_sides(values: dict[str, float]) -> ShootingSplits:
    return ShootingSplits(
        offense={k: v for k, v in values.items() if k.startswith("off_")},
        defense={k: v for k, v in values.items() if k.startswith("def_")},
    )


def _list_teams(league: str, season: str, search: Optional[str]) -> list[TeamSummary]:
    query = (
        Team.select(
            Team,
            fn.COALESCE(TeamSeasonRollup.games_played, 0).alias("games_played"),
        )
        .join(
            TeamSeasonRollup,
            JOIN.LEFT_OUTER,
            on=(TeamSeasonRollup.team == Team.id),
        )
        .where((Team.league == league) & (Team.season == season))
        .order_by(Team.name.asc())
    )
    if search:
        query = query.where(Team.name.contains(search))

    return [
        TeamSummary(
            id=team.id,
            name=team.name,
            provider_team_id=team.provider_team_id,
            abbreviation=team.abbreviation,
            conference=team.conference,
            games_played=team.games_played,
        )
        for team in query.objects()
    ]


def _team_detail(league: str, season: str, team_id: int) -> Optional[TeamDetail]:
    team = Team.get_or_none(
        (Team.id == team_id) & (Team.league == league) & (Team.season == season)
    )
    if team is None:
        return None

    rollup = TeamSeasonRollup.get_for_team(team.id)
    per_game = rollup.per_game() if rollup else None

    detail = TeamDetail(
        id=team.id,
        name=team.name,
        provider_team_id=team.provider_team_id,
        abbreviation=team.abbreviation,
        conference=team.conference,
        games_played=rollup.games_played if rollup else 0,
    )
    if per_game is None:
        return detail

    detail.stats = _split_sides(per_game)
    nationals = NationalAverages.get_for(league, season)
    if nationals is not None:
        diffs = differentials(per_game, nationals.averages())
        detail.differentials = ShootingSplits(offense=diffs.offense, defense=diffs.defense)
    return detail


def _national_averages(league: str, season: str) -> Optional[NationalAveragesData]:
    row = NationalAverages.get_for(league, season)
    if row is None:
        return None
    return NationalAveragesData(
        league=row.league,
        season=row.season,
        team_count=row.team_count,
        total_games=row.total_games,
        averages=_split_sides(row.averages()),
        points_per_team_per_game=row.points_per_team_per_game,
        updated_at=row.updated_at.isoformat(),
    )


@router.get("/{league}/{season}/teams")
async def list_teams(
    scope: tuple[str, str] = Depends(league_season),
    search: Optional[str] = Query(None, min_length=1, description="Case-insensitive name filter"),
) -> dict:
    """Teams of a league and season, alphabetical, with games played."""
    league, season = scope
    teams = await asyncio.to_thread(_list_teams, league, season, search)
    return success_response(
        message=f"Found {len(teams)} teams",
        data=[t.model_dump() for t in teams],
    )


@router.get("/{league}/{season}/teams/{team_id}")
async def get_team(
    team_id: int,
    scope: tuple[str, str] = Depends(league_season),
) -> dict:
    """Per-game shooting for a team and its differentials against the national averages."""
    league, season = scope
    detail = await asyncio.to_thread(_team_detail, league, season, team_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"No {league} team {team_id} in {season}")
    return success_response(message="Team stats", data=detail.model_dump())


@router.get("/{league}/{season}/national-averages")
async def get_national_averages(
    scope: tuple[str, str] = Depends(league_season),
) -> dict:
    league, season = scope
    data = await asyncio.to_thread(_national_averages, league, season)
    if data is None:
        raise HTTPException(
            status_code=404,
            detail=f"No national averages for {league} {season}",
        )
    return success_response(message="National averages", data=data.model_dump())
