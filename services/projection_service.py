from typing import Optional

from db.models.ncaab import Game, NationalAverages, Team, TeamSeasonRollup
from services.projection import game_total


class GameNotFoundError(LookupError):
    """No stored game matches the requested identity."""
    pass


class ProjectionUnavailableError(Exception):
    """A projection cannot be built yet (no averages or no team games)."""
    pass


def _team_per_game(team: Team) -> Optional[dict[str, float]]:
    rollup = TeamSeasonRollup.get_for_team(team.id)
    return rollup.per_game() if rollup else None


def project_game(league: str, season: str, provider_game_id: str) -> dict:
    """
    Expected score breakdown for a stored game.

    team1 is the home team, team2 the away team.

    Raises:
        GameNotFoundError: Unknown (league, season, game id)
        ProjectionUnavailableError: National averages or either team's
                                    rollup has no games yet
    """
    game = Game.get_or_none(
        (Game.league == league)
        & (Game.season == season)
        & (Game.provider_game_id == provider_game_id)
    )
    if game is None:
        raise GameNotFoundError(f"No {league} game {provider_game_id} in {season}")

    national = NationalAverages.get_for(league, season)
    if national is None:
        raise ProjectionUnavailableError(f"No national averages for {league} {season}")

    home_team = game.home_team
    away_team = game.away_team
    home_per_game = _team_per_game(home_team)
    away_per_game = _team_per_game(away_team)
    if home_per_game is None or away_per_game is None:
        raise ProjectionUnavailableError(
            f"Team stats not available for game {provider_game_id}"
        )

    breakdown = game_total(
        home_per_game,
        away_per_game,
        national.averages(),
        national.points_per_team_per_game,
        team1_name=home_team.name,
        team2_name=away_team.name,
    )

    return {
        "game": {
            "provider_game_id": game.provider_game_id,
            "league": game.league,
            "season": game.season,
            "scheduled_at": game.scheduled_at.isoformat(),
            "status": game.status,
            "home_team": home_team.name,
            "away_team": away_team.name,
            "home_score": game.home_score,
            "away_score": game.away_score,
        },
        "projection": breakdown.to_dict(),
    }
