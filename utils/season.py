"""
Season Clock

Maps calendar dates to season labels ("2025-26") and season labels to
their default sync window. One rule is used everywhere: ingestion derives
each event's season with season_for_date, and current_season is the same
rule applied to today.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from utils.constants import (
    SEASON_END_MONTH,
    SEASON_START_MONTH,
    SEASON_TIMEZONE,
    SEASON_WINDOW_END,
    SEASON_WINDOW_START,
)


SEASON_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})$")


class InvalidSeasonError(ValueError):
    """Raised for a season label that is not a well-formed 'YYYY-YY'."""

    pass


def format_season(start_year: int) -> str:
    """2025 -> '2025-26'."""
    return f"{start_year}-{str(start_year + 1)[-2:]}"


def parse_season(label: str) -> int:
    """
    Parse a season label and return its start year.

    Raises:
        InvalidSeasonError: If the label is malformed or the two years
                            are not consecutive (e.g. '2025-27').
    """
    match = SEASON_LABEL_RE.match(label or "")
    if not match:
        raise InvalidSeasonError(f"Season must be in format YYYY-YY, got {label!r}")

    start_year = int(match.group(1))
    if int(match.group(2)) != (start_year + 1) % 100:
        raise InvalidSeasonError(f"Season {label!r} does not span consecutive years")

    return start_year


def season_for_date(d: date) -> str:
    """
    Season label for a calendar date.

    Nov-Dec -> season starting this year; Jan-Apr -> season that started
    last year; May-Oct (off-season) -> the upcoming season.
    """
    if d.month >= SEASON_START_MONTH:
        return format_season(d.year)
    if d.month <= SEASON_END_MONTH:
        return format_season(d.year - 1)
    return format_season(d.year)


def current_season(today: Optional[date] = None) -> str:
    """Season label for today (US/Eastern) unless a date is given."""
    if today is None:
        today = datetime.now(pytz.timezone(SEASON_TIMEZONE)).date()
    return season_for_date(today)


def season_window(label: str) -> tuple[date, date]:
    """
    Default (inclusive) date window for a season: November 1 of the start
    year through April 15 of the end year. Covers the regular season,
    conference tournaments and the national tournament.
    """
    start_year = parse_season(label)
    start = date(start_year, *SEASON_WINDOW_START)
    end = date(start_year + 1, *SEASON_WINDOW_END)
    return start, end


def event_local_date(scheduled_at: datetime) -> date:
    """
    Calendar date of an event in US/Eastern.

    Late tip-offs are stamped with the next UTC day by the provider; the
    season is derived from the local day the game is played on.
    """
    if scheduled_at.tzinfo is None:
        scheduled_at = pytz.utc.localize(scheduled_at)
    return scheduled_at.astimezone(pytz.timezone(SEASON_TIMEZONE)).date()


def local_day_bounds(day: date, days: int = 1) -> tuple[datetime, datetime]:
    """
    Naive UTC bounds [start, end) of `days` US/Eastern calendar days
    starting at `day`, for filtering stored tip-off times.
    """
    tz = pytz.timezone(SEASON_TIMEZONE)
    start = tz.localize(datetime(day.year, day.month, day.day))
    end_day = day + timedelta(days=days)
    end = tz.localize(datetime(end_day.year, end_day.month, end_day.day))
    return (
        start.astimezone(pytz.utc).replace(tzinfo=None),
        end.astimezone(pytz.utc).replace(tzinfo=None),
    )
