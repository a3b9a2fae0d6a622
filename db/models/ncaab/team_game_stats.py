"""
Team Game Stats Table

Per-team shooting splits for a completed game. Each row carries the team's
own offensive line and, mirrored from the opponent's offensive line, what
the team allowed on defense.
"""

from datetime import datetime

from peewee import (
    AutoField,
    CharField,
    DateTimeField,
    ForeignKeyField,
    SmallIntegerField,
)

from db.base import BaseModel
from db.models.ncaab.games import Game
from db.models.ncaab.teams import Team


# Offensive column -> defensive mirror column
STAT_COLUMNS = (
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


class TeamGameStats(BaseModel):
    """
    One team's shooting line for one game.

    Attributes:
        game: The game these stats belong to
        team: The team the row describes
        opponent: The other team in the game
        league / season: Copied from the game for aggregation queries
        off_*: Team makes/attempts for 2pt, 3pt and free throws
        def_*_allowed: Opponent makes/attempts for the same categories
    """

    id = AutoField(primary_key=True)
    game = ForeignKeyField(
        Game,
        backref="team_stats",
        on_delete="CASCADE",
        column_name="game_id",
    )
    team = ForeignKeyField(
        Team,
        backref="game_stats",
        on_delete="CASCADE",
        column_name="team_id",
    )
    opponent = ForeignKeyField(
        Team,
        backref="opponent_game_stats",
        on_delete="CASCADE",
        column_name="opponent_team_id",
    )
    league = CharField(max_length=10)
    season = CharField(max_length=7)

    # Offense
    off_2pt_made = SmallIntegerField(default=0)
    off_2pt_att = SmallIntegerField(default=0)
    off_3pt_made = SmallIntegerField(default=0)
    off_3pt_att = SmallIntegerField(default=0)
    off_ft_made = SmallIntegerField(default=0)
    off_ft_att = SmallIntegerField(default=0)

    # Defense (opponent's offense)
    def_2pt_made_allowed = SmallIntegerField(default=0)
    def_2pt_att_allowed = SmallIntegerField(default=0)
    def_3pt_made_allowed = SmallIntegerField(default=0)
    def_3pt_att_allowed = SmallIntegerField(default=0)
    def_ft_made_allowed = SmallIntegerField(default=0)
    def_ft_att_allowed = SmallIntegerField(default=0)

    created_at = DateTimeField(default=datetime.utcnow)
    updated_at = DateTimeField(default=datetime.utcnow)

    class Meta:
        table_name = "team_game_stats"
        indexes = (
            (("game", "team"), True),
            (("team", "season"), False),
        )

    def __repr__(self) -> str:
        return (
            f"<TeamGameStats("
            f"game_id={self.game_id}, "
            f"team_id={self.team_id}, "
            f"2pt={self.off_2pt_made}/{self.off_2pt_att}, "
            f"3pt={self.off_3pt_made}/{self.off_3pt_att}, "
            f"ft={self.off_ft_made}/{self.off_ft_att})>"
        )

    def save(self, *args, **kwargs):
        """Override save to auto-update updated_at timestamp."""
        self.updated_at = datetime.utcnow()
        return super().save(*args, **kwargs)

    @classmethod
    def upsert_stats(
        cls,
        game: Game,
        team_id: int,
        opponent_id: int,
        stats: dict,
    ) -> tuple["TeamGameStats", bool]:
        """
        Insert or update the row for (game, team).

        Args:
            game: Game the row belongs to
            team_id: Team the row describes
            opponent_id: The other team
            stats: Dict keyed by STAT_COLUMNS

        Returns:
            (row, created)
        """
        values = {key: stats[key] for key in STAT_COLUMNS}
        row, created = cls.get_or_create(
            game=game,
            team=team_id,
            defaults={
                "opponent": opponent_id,
                "league": game.league,
                "season": game.season,
                **values,
            },
        )
        if not created:
            row.opponent = opponent_id
            for key, value in values.items():
                setattr(row, key, value)
            row.save()

        return row, created
