"""Tests for team season rollups and national averages."""

from datetime import datetime

import pytest

from db.models.ncaab import (
    ROLLUP_TOTAL_COLUMNS,
    STAT_COLUMNS,
    Game,
    NationalAverages,
    Team,
    TeamGameStats,
    TeamSeasonRollup,
)
from pipelines.national_averages import (
    NationalAveragesPipeline,
    compute_league_averages,
    points_per_team_per_game,
)
from pipelines.team_rollups import TeamRollupsPipeline, recompute_all, recompute_rollup


SEASON = "2025-26"


def _team(provider_id: str, league: str = "MENS") -> Team:
    team = Team.create(league=league, season=SEASON, provider_team_id=provider_id, name=f"Team {provider_id}")
    TeamSeasonRollup.ensure_for_team(team)
    return team


def _game(provider_id: str, home: Team, away: Team) -> Game:
    return Game.create(
        league=home.league,
        season=SEASON,
        provider_game_id=provider_id,
        scheduled_at=datetime(2025, 11, 5),
        status="FINAL",
        home_team=home,
        away_team=away,
    )


def _stats(value: int) -> dict:
    return {column: value for column in STAT_COLUMNS}


def _rollup(team: Team, games_played: int, **totals) -> None:
    values = {column: 0 for column in ROLLUP_TOTAL_COLUMNS}
    values.update(totals)
    TeamSeasonRollup.update(games_played=games_played, **values).where(
        TeamSeasonRollup.team == team
    ).execute()


@pytest.mark.integration
class TestRecomputeRollup:
    def test_sums_every_game(self, test_db):
        a, b, c = _team("1"), _team("2"), _team("3")
        TeamGameStats.upsert_stats(_game("g1", a, b), a.id, b.id, _stats(10))
        TeamGameStats.upsert_stats(_game("g2", c, a), a.id, c.id, _stats(5))

        rollup = recompute_rollup(a.id, "MENS", SEASON)

        assert rollup.games_played == 2
        assert all(value == 15 for value in rollup.totals().values())

    def test_recompute_is_idempotent(self, test_db):
        a, b = _team("1"), _team("2")
        TeamGameStats.upsert_stats(_game("g1", a, b), a.id, b.id, _stats(7))

        recompute_rollup(a.id, "MENS", SEASON)
        recompute_rollup(a.id, "MENS", SEASON)

        rollup = TeamSeasonRollup.get_for_team(a.id)
        assert rollup.games_played == 1
        assert rollup.off_2pt_made_total == 7
        assert TeamSeasonRollup.select().where(TeamSeasonRollup.team == a).count() == 1

    def test_team_without_games(self, test_db):
        a = _team("1")

        rollup = recompute_rollup(a.id, "MENS", SEASON)

        assert rollup.games_played == 0
        assert rollup.per_game() is None

    def test_per_game(self, test_db):
        a, b = _team("1"), _team("2")
        TeamGameStats.upsert_stats(_game("g1", a, b), a.id, b.id, _stats(10))
        TeamGameStats.upsert_stats(_game("g2", b, a), a.id, b.id, _stats(20))

        per_game = recompute_rollup(a.id, "MENS", SEASON).per_game()

        assert per_game["off_3pt_att"] == 15
        assert set(per_game) == set(STAT_COLUMNS)

    def test_recompute_all_repairs_drift(self, test_db):
        a, b = _team("1"), _team("2")
        TeamGameStats.upsert_stats(_game("g1", a, b), a.id, b.id, _stats(4))
        TeamGameStats.upsert_stats(_game("g1b", a, b), b.id, a.id, _stats(6))
        _rollup(a, 9, off_2pt_made_total=999)

        assert recompute_all("MENS", SEASON) == 2
        assert TeamSeasonRollup.get_for_team(a.id).games_played == 1
        assert TeamSeasonRollup.get_for_team(a.id).off_2pt_made_total == 4
        assert TeamSeasonRollup.get_for_team(b.id).off_2pt_made_total == 6

    def test_pipeline_rebuilds_both_leagues(self, test_db):
        a, b = _team("1"), _team("2")
        _team("1", league="WOMENS")
        TeamGameStats.upsert_stats(_game("g1", a, b), a.id, b.id, _stats(3))

        result = TeamRollupsPipeline(SEASON).run_sync()

        assert result.status == "success"
        assert result.data == {"season": SEASON, "teams": {"mens": 2, "womens": 1}}


@pytest.mark.unit
class TestPointsPerTeamPerGame:
    def test_formula(self):
        averages = {"off_2pt_made": 20.0, "off_3pt_made": 7.0, "off_ft_made": 12.0}
        assert points_per_team_per_game(averages) == 73.0


@pytest.mark.integration
class TestNationalAverages:
    def test_weighted_by_games_played(self, test_db):
        """(200 + 50) / (10 + 5) = 16.67, not the average of 20 and 10."""
        _rollup(_team("1"), 10, off_2pt_made_total=200)
        _rollup(_team("2"), 5, off_2pt_made_total=50)

        data = compute_league_averages("MENS", SEASON)

        assert data["team_count"] == 2
        assert data["total_games"] == 15
        assert data["off_2pt_made"] == pytest.approx(16.6667, abs=1e-3)

    def test_teams_without_games_are_excluded(self, test_db):
        _rollup(_team("1"), 4, off_ft_made_total=40)
        _team("2")

        data = compute_league_averages("MENS", SEASON)

        assert data["team_count"] == 1
        assert data["off_ft_made"] == 10

    def test_league_without_games(self, test_db):
        _team("1")
        assert compute_league_averages("MENS", SEASON) is None

    def test_build_skips_empty_league(self, test_db):
        _rollup(
            _team("1"), 2,
            off_2pt_made_total=40, off_3pt_made_total=14, off_ft_made_total=24,
        )

        result = NationalAveragesPipeline(SEASON).build_averages()

        assert result.mens.team_count == 1
        assert result.mens.points_per_team_per_game == pytest.approx(73.0)
        assert result.womens is None
        assert NationalAverages.get_for("WOMENS", SEASON) is None

        row = NationalAverages.get_for("MENS", SEASON)
        assert row.total_games == 2
        assert row.off_3pt_made == 7
        assert row.points_per_team_per_game == pytest.approx(73.0)

    def test_empty_league_keeps_previous_row(self, test_db):
        """A league that has no games now is not regressed to zero."""
        team = _team("1")
        _rollup(team, 2, off_2pt_made_total=40)
        NationalAveragesPipeline(SEASON).build_averages()

        _rollup(team, 0)
        result = NationalAveragesPipeline(SEASON).build_averages()

        assert result.mens is None
        assert NationalAverages.get_for("MENS", SEASON).off_2pt_made == 20

    def test_rebuild_overwrites(self, test_db):
        team = _team("1")
        _rollup(team, 2, off_2pt_made_total=40)
        NationalAveragesPipeline(SEASON).build_averages()

        _rollup(team, 4, off_2pt_made_total=100)
        NationalAveragesPipeline(SEASON).build_averages()

        assert NationalAverages.select().count() == 1
        assert NationalAverages.get_for("MENS", SEASON).off_2pt_made == 25

    def test_bad_season_rejected(self):
        with pytest.raises(ValueError):
            NationalAveragesPipeline("2025")
