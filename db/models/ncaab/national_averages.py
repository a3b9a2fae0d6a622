"""
National Averages Table

Games-played-weighted per-game league averages, one row per
(league, season). The projection baseline.
"""

from datetime import datetime
from typing import Optional

from peewee import (
    AutoField,
    CharField,
    DateTimeField,
    FloatField,
    IntegerField,
)

from db.base import BaseModel


AVERAGE_COLUMNS = (
    "off_2pt_made",
    "off_2pt_att",
    "off_3pt_made",
    "off_3pt_att",
    "off_ft_made",
    "off_ft_att",
    "def_2pt_made_allowed",
    "def_2pt_att_allowed",
    "def_3pt_made_allowed",
    "def_3pt_att_allowed",
    "def_ft_made_allowed",
    "def_ft_att_allowed",
)


class NationalAverages(BaseModel):
    """
    League-wide per-game averages.

    Attributes:
        league / season: Identity
        team_count: Teams with at least one game at build time
        total_games: Sum of games played across those teams
        off_* / def_*: Per-game averages, same names as TeamGameStats
        points_per_team_per_game: 2 * 2pt made + 3 * 3pt made + ft made
    """

    id = AutoField(primary_key=True)
    league = CharField(max_length=10)
    season = CharField(max_length=7)
    team_count = IntegerField(default=0)
    total_games = IntegerField(default=0)

    off_2pt_made = FloatField(default=0.0)
    off_2pt_att = FloatField(default=0.0)
    off_3pt_made = FloatField(default=0.0)
    off_3pt_att = FloatField(default=0.0)
    off_ft_made = FloatField(default=0.0)
    off_ft_att = FloatField(default=0.0)

    def_2pt_made_allowed = FloatField(default=0.0)
    def_2pt_att_allowed = FloatField(default=0.0)
    def_3pt_made_allowed = FloatField(default=0.0)
    def_3pt_att_allowed = FloatField(default=0.0)
    def_ft_made_allowed = FloatField(default=0.0)
    def_ft_att_allowed = FloatField(default=0.0)

    points_per_team_per_game = FloatField(default=0.0)
    updated_at = DateTimeField(default=datetime.utcnow)

    class Meta:
        table_name = "national_averages"
        indexes = (
            (("league", "season"), True),
        )

    def __repr__(self) -> str:
        return (
            f"<NationalAverages("
            f"league={self.league}, "
            f"season={self.season}, "
            f"ppg={self.points_per_team_per_game:.2f})>"
        )

    def save(self, *args, **kwargs):
        """Override save to auto-update updated_at timestamp."""
        self.updated_at = datetime.utcnow()
        return super().save(*args, **kwargs)

    def averages(self) -> dict[str, float]:
        return {column: getattr(self, column) for column in AVERAGE_COLUMNS}

    @classmethod
    def upsert_averages(
        cls, league: str, season: str, data: dict
    ) -> "NationalAverages":
        """Overwrite the (league, season) row with freshly computed values."""
        row, created = cls.get_or_create(
            league=league, season=season, defaults=data
        )
        if not created:
            for key, value in data.items():
                setattr(row, key, value)
            row.save()
        return row

    @classmethod
    def get_for(cls, league: str, season: str) -> Optional["NationalAverages"]:
        return cls.get_or_none(
            (cls.league == league) & (cls.season == season)
        )
