"""
Team Season Rollups Table

Materialized season-to-date totals per team. Rows are rewritten in full
from team_game_stats on every recompute; nothing increments them.
"""

from datetime import datetime
from typing import Optional

from peewee import (
    AutoField,
    CharField,
    DateTimeField,
    ForeignKeyField,
    IntegerField,
)

from db.base import BaseModel
from db.models.ncaab.teams import Team
from services.projection import per_game_from_totals


# Rollup total column -> TeamGameStats source column
ROLLUP_TOTAL_COLUMNS = {
    "off_2pt_made_total": "off_2pt_made",
    "off_2pt_att_total": "off_2pt_att",
    "off_3pt_made_total": "off_3pt_made",
    "off_3pt_att_total": "off_3pt_att",
    "off_ft_made_total": "off_ft_made",
    "off_ft_att_total": "off_ft_att",
    "def_2pt_made_allowed_total": "def_2pt_made_allowed",
    "def_2pt_att_allowed_total": "def_2pt_att_allowed",
    "def_3pt_made_allowed_total": "def_3pt_made_allowed",
    "def_3pt_att_allowed_total": "def_3pt_att_allowed",
    "def_ft_made_allowed_total": "def_ft_made_allowed",
    "def_ft_att_allowed_total": "def_ft_att_allowed",
}


class TeamSeasonRollup(BaseModel):
    """
    Season totals for one team.

    The team row already scopes league and season; they are repeated here
    so the national averages query does not need a join.
    """

    id = AutoField(primary_key=True)
    team = ForeignKeyField(
        Team,
        backref="rollup",
        on_delete="CASCADE",
        column_name="team_id",
        unique=True,
    )
    league = CharField(max_length=10)
    season = CharField(max_length=7)
    games_played = IntegerField(default=0)

    off_2pt_made_total = IntegerField(default=0)
    off_2pt_att_total = IntegerField(default=0)
    off_3pt_made_total = IntegerField(default=0)
    off_3pt_att_total = IntegerField(default=0)
    off_ft_made_total = IntegerField(default=0)
    off_ft_att_total = IntegerField(default=0)

    def_2pt_made_allowed_total = IntegerField(default=0)
    def_2pt_att_allowed_total = IntegerField(default=0)
    def_3pt_made_allowed_total = IntegerField(default=0)
    def_3pt_att_allowed_total = IntegerField(default=0)
    def_ft_made_allowed_total = IntegerField(default=0)
    def_ft_att_allowed_total = IntegerField(default=0)

    updated_at = DateTimeField(default=datetime.utcnow)

    class Meta:
        table_name = "team_season_rollups"
        indexes = (
            (("league", "season", "games_played"), False),
        )

    def __repr__(self) -> str:
        return (
            f"<TeamSeasonRollup("
            f"team_id={self.team_id}, "
            f"season={self.season}, "
            f"gp={self.games_played})>"
        )

    def save(self, *args, **kwargs):
        """Override save to auto-update updated_at timestamp."""
        self.updated_at = datetime.utcnow()
        return super().save(*args, **kwargs)

    def totals(self) -> dict[str, int]:
        """Total columns keyed by their TeamGameStats source column."""
        return {
            source: getattr(self, column)
            for column, source in ROLLUP_TOTAL_COLUMNS.items()
        }

    def per_game(self) -> Optional[dict[str, float]]:
        """
        Per-game averages keyed like TeamGameStats columns.

        Returns None for a team without games.
        """
        return per_game_from_totals(self.totals(), self.games_played)

    @classmethod
    def ensure_for_team(cls, team: Team) -> tuple["TeamSeasonRollup", bool]:
        """Create an empty rollup for a newly seen team."""
        return cls.get_or_create(
            team=team,
            defaults={"league": team.league, "season": team.season},
        )

    @classmethod
    def get_for_team(cls, team_id: int) -> Optional["TeamSeasonRollup"]:
        return cls.get_or_none(cls.team == team_id)
