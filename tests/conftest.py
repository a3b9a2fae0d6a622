"""Pytest configuration and fixtures for data platform tests."""

from __future__ import annotations

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("PIPELINE_API_TOKEN", "test-pipeline-token")
os.environ.setdefault("BOOTSTRAP_ON_STARTUP", "false")

from datetime import date
from typing import Callable, Dict, List, Optional

import pytest
from peewee import SqliteDatabase

from core.resilience import FetchError
from db.base import bind_database, get_models
from pipelines.transformers.espn import BoxscoreRecord, parse_boxscore


class FakeExtractor:
    """
    In-memory stand-in for ESPNScoreboardExtractor.

    events: (league, 'YYYYMMDD') -> raw scoreboard events
    summaries: event id -> raw summary payload, or an Exception to raise
    failing_dates: dates whose scoreboard fetch raises FetchError
    """

    def __init__(self):
        self.events: Dict[tuple, List[dict]] = {}
        self.summaries: Dict[str, object] = {}
        self.failing_dates: set = set()
        self.scoreboard_calls: List[tuple] = []
        self.boxscore_calls: List[str] = []

    def add_event(self, league: str, date_str: str, event: dict) -> None:
        self.events.setdefault((league, date_str), []).append(event)

    def fetch_raw_events(self, league, date_str: str) -> List[dict]:
        league = getattr(league, "value", league)
        self.scoreboard_calls.append((league, date_str))
        if date_str in self.failing_dates:
            raise FetchError(f"Giving up on scoreboard {date_str}", url="fake://scoreboard", attempts=3)
        return list(self.events.get((league, date_str), []))

    def fetch_boxscore(self, league, event_id: str) -> Optional[BoxscoreRecord]:
        self.boxscore_calls.append(event_id)
        summary = self.summaries.get(event_id)
        if isinstance(summary, Exception):
            raise summary
        if summary is None:
            return None
        return parse_boxscore(summary, event_id)


@pytest.fixture
def test_db():
    """Fresh in-memory SQLite database bound to every model."""
    database = SqliteDatabase(
        ":memory:",
        pragmas={"foreign_keys": 1},
        thread_safe=False,
        check_same_thread=False,
    )
    bind_database(database)
    database.connect()
    database.create_tables(get_models())
    yield database
    database.drop_tables(get_models())
    database.close()


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


def _competitor(role: str, team_id: str, name: str, score: Optional[int]) -> dict:
    competitor = {
        "id": team_id,
        "homeAway": role,
        "team": {
            "id": team_id,
            "displayName": name,
            "abbreviation": name[:4].upper(),
            "conferenceId": "2",
        },
    }
    if score is not None:
        competitor["score"] = str(score)
    return competitor


@pytest.fixture
def make_event() -> Callable[..., dict]:
    """Build a raw ESPN scoreboard event (away team listed first, like ESPN)."""

    def _make(
        event_id: str = "401700001",
        when: str = "2025-11-05T00:00Z",
        home: tuple = ("150", "Duke Blue Devils"),
        away: tuple = ("153", "North Carolina Tar Heels"),
        state: str = "pre",
        completed: bool = False,
        status_name: str = "STATUS_SCHEDULED",
        home_score: Optional[int] = None,
        away_score: Optional[int] = None,
        neutral_site: bool = False,
    ) -> dict:
        return {
            "id": event_id,
            "date": when,
            "competitions": [
                {
                    "neutralSite": neutral_site,
                    "competitors": [
                        _competitor("away", away[0], away[1], away_score),
                        _competitor("home", home[0], home[1], home_score),
                    ],
                    "status": {
                        "type": {
                            "name": status_name,
                            "state": state,
                            "completed": completed,
                        }
                    },
                }
            ],
        }

    return _make


def stat_block(fg: str, three: str, ft: str, points: int) -> List[dict]:
    return [
        {"name": "fieldGoalsMade-fieldGoalsAttempted", "displayValue": fg},
        {"name": "threePointFieldGoalsMade-threePointFieldGoalsAttempted", "displayValue": three},
        {"name": "freeThrowsMade-freeThrowsAttempted", "displayValue": ft},
        {"name": "points", "displayValue": str(points)},
    ]


@pytest.fixture
def make_summary() -> Callable[..., dict]:
    """Build a raw ESPN game summary with a header and boxscore teams."""

    def _make(
        home_id: str = "150",
        away_id: str = "153",
        home_stats: Optional[List[dict]] = None,
        away_stats: Optional[List[dict]] = None,
    ) -> dict:
        if home_stats is None:
            home_stats = stat_block("30-60", "8-20", "12-16", 80)
        if away_stats is None:
            away_stats = stat_block("25-58", "6-22", "10-14", 66)
        return {
            "header": {
                "competitions": [
                    {
                        "competitors": [
                            {"id": home_id, "homeAway": "home"},
                            {"id": away_id, "homeAway": "away"},
                        ]
                    }
                ]
            },
            "boxscore": {
                "teams": [
                    {"team": {"id": away_id}, "statistics": away_stats},
                    {"team": {"id": home_id}, "statistics": home_stats},
                ]
            },
        }

    return _make


@pytest.fixture
def season_day() -> date:
    """A mid-season day whose scoreboard the fixtures populate."""
    return date(2025, 11, 4)
