"""
Teams Dimension Table

One row per team per (league, season). Teams are created and renamed by
the schedule sync the first and subsequent times they appear on a
scoreboard.
"""

from datetime import datetime

from peewee import (
    AutoField,
    CharField,
    DateTimeField,
)

from db.base import BaseModel


class Team(BaseModel):
    """
    College basketball team, scoped to a league and season.

    Attributes:
        id: Internal surrogate key
        league: 'MENS' or 'WOMENS'
        season: Season identifier (e.g., '2025-26')
        provider_team_id: ESPN team id
        name: Display name (e.g., 'Duke Blue Devils')
        abbreviation: Short code (e.g., 'DUKE')
        conference: Provider conference id, when supplied
        created_at: When this record was first created
        updated_at: When this record was last modified
    """

    id = AutoField(primary_key=True)
    league = CharField(max_length=10)
    season = CharField(max_length=7)
    provider_team_id = CharField(max_length=20)
    name = CharField(max_length=100)
    abbreviation = CharField(max_length=20, null=True)
    conference = CharField(max_length=50, null=True)
    created_at = DateTimeField(default=datetime.utcnow)
    updated_at = DateTimeField(default=datetime.utcnow)

    class Meta:
        table_name = "teams"
        indexes = (
            # Sole guard against duplicate teams
            (("league", "season", "provider_team_id"), True),
        )

    def __repr__(self) -> str:
        return (
            f"<Team(id={self.id}, league={self.league}, "
            f"season={self.season}, name='{self.name}')>"
        )

    def save(self, *args, **kwargs):
        """Override save to auto-update updated_at timestamp."""
        self.updated_at = datetime.utcnow()
        return super().save(*args, **kwargs)

    @classmethod
    def upsert_team(
        cls,
        league: str,
        season: str,
        provider_team_id: str,
        name: str,
        abbreviation: str | None = None,
        conference: str | None = None,
    ) -> tuple["Team", bool, bool]:
        """
        Insert a team if absent, else update its mutable fields.

        Returns:
            (team, created, changed) - changed is True when an existing
            row had a field rewritten
        """
        mutable = {
            "name": name,
            "abbreviation": abbreviation,
            "conference": conference,
        }

        team, created = cls.get_or_create(
            league=league,
            season=season,
            provider_team_id=provider_team_id,
            defaults=mutable,
        )
        if created:
            return team, True, False

        changed = False
        for key, value in mutable.items():
            if value is not None and getattr(team, key) != value:
                setattr(team, key, value)
                changed = True
        if changed:
            team.save()

        return team, False, changed
