"""
Games Table

College basketball schedule and results, one row per provider game per
(league, season).
"""

from datetime import datetime

from peewee import (
    AutoField,
    BooleanField,
    CharField,
    DateTimeField,
    ForeignKeyField,
    IntegerField,
)

from db.base import BaseModel
from db.models.ncaab.teams import Team
from utils.constants import GameStatus


class Game(BaseModel):
    """
    Scheduled or completed game.

    stats_processed flips False -> True exactly once, by the game
    processor, after both teams' stat rows have been written. The schedule
    sync never touches it.

    Attributes:
        id: Internal surrogate key
        league: 'MENS' or 'WOMENS'
        season: Season identifier (e.g., '2025-26')
        provider_game_id: ESPN event id
        scheduled_at: Tip-off time (UTC)
        neutral_site: Whether the game is played at a neutral venue
        status: SCHEDULED, IN_PROGRESS, FINAL, POSTPONED or CANCELLED
        home_team: Home team (same league/season as the game)
        away_team: Away team (same league/season as the game)
        home_score: Home score (null until known)
        away_score: Away score (null until known)
        stats_processed: Whether shooting stats have been extracted
        last_synced_at: Last time the schedule sync saw this game
    """

    id = AutoField(primary_key=True)
    league = CharField(max_length=10)
    season = CharField(max_length=7, index=True)
    provider_game_id = CharField(max_length=20)
    scheduled_at = DateTimeField(index=True)
    neutral_site = BooleanField(default=False)
    status = CharField(max_length=20, default=GameStatus.SCHEDULED.value)
    home_team = ForeignKeyField(
        Team,
        backref="home_games",
        on_delete="CASCADE",
        column_name="home_team_id",
    )
    away_team = ForeignKeyField(
        Team,
        backref="away_games",
        on_delete="CASCADE",
        column_name="away_team_id",
    )
    home_score = IntegerField(null=True)
    away_score = IntegerField(null=True)
    stats_processed = BooleanField(default=False, index=True)
    last_synced_at = DateTimeField(default=datetime.utcnow)
    updated_at = DateTimeField(default=datetime.utcnow)

    class Meta:
        table_name = "games"
        indexes = (
            (("league", "season", "provider_game_id"), True),
            (("status", "stats_processed"), False),
        )

    def __repr__(self) -> str:
        return (
            f"<Game("
            f"id={self.id}, "
            f"provider_id={self.provider_game_id}, "
            f"{self.away_team_id}@{self.home_team_id}, "
            f"status={self.status})>"
        )

    def save(self, *args, **kwargs):
        """Override save to auto-update updated_at timestamp."""
        self.updated_at = datetime.utcnow()
        return super().save(*args, **kwargs)

    @classmethod
    def upsert_game(
        cls,
        league: str,
        season: str,
        provider_game_id: str,
        game_data: dict,
    ) -> tuple["Game", bool, bool]:
        """
        Insert a game if absent, else update its mutable fields.

        Identity fields, team references and stats_processed are never
        rewritten on update. Scores are only overwritten with known values.

        Args:
            league: League of the game
            season: Season identifier
            provider_game_id: ESPN event id
            game_data: Dict with scheduled_at, neutral_site, status,
                       home_team, away_team, home_score, away_score

        Returns:
            (game, created, changed)
        """
        now = datetime.utcnow()
        game, created = cls.get_or_create(
            league=league,
            season=season,
            provider_game_id=provider_game_id,
            defaults={**game_data, "last_synced_at": now},
        )
        if created:
            return game, True, False

        changed = False
        for key in ("scheduled_at", "status", "home_score", "away_score"):
            value = game_data.get(key)
            if value is not None and getattr(game, key) != value:
                setattr(game, key, value)
                changed = True

        game.last_synced_at = now
        game.save()

        return game, False, changed

    @classmethod
    def get_unprocessed_final(cls) -> list["Game"]:
        """FINAL games without stats yet, oldest tip-off first."""
        return list(
            cls.select()
            .where(
                (cls.status == GameStatus.FINAL.value)
                & (cls.stats_processed == False)  # noqa: E712
            )
            .order_by(cls.scheduled_at.asc(), cls.id.asc())
        )
