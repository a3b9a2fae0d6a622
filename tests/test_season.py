"""Tests for the season clock."""

from datetime import date, datetime

import pytest
import pytz

from utils.season import (
    InvalidSeasonError,
    current_season,
    event_local_date,
    format_season,
    local_day_bounds,
    parse_season,
    season_for_date,
    season_window,
)


@pytest.mark.unit
class TestSeasonForDate:
    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2025, 11, 1), "2025-26"),
            (date(2025, 12, 31), "2025-26"),
            (date(2026, 1, 1), "2025-26"),
            (date(2026, 4, 30), "2025-26"),
            (date(2026, 5, 1), "2026-27"),
            (date(2026, 10, 31), "2026-27"),
        ],
    )
    def test_boundaries(self, day, expected):
        """Nov-Apr belong to the running season, May-Oct to the upcoming one."""
        assert season_for_date(day) == expected

    def test_century_rollover(self):
        """Two-digit end year wraps at the century."""
        assert format_season(2099) == "2099-00"
        assert parse_season("2099-00") == 2099

    def test_current_season_uses_given_day(self):
        assert current_season(date(2026, 2, 14)) == "2025-26"


@pytest.mark.unit
class TestParseSeason:
    def test_valid_label(self):
        assert parse_season("2025-26") == 2025

    @pytest.mark.parametrize("label", ["2025", "2025-2026", "25-26", "", "abcd-ef", None])
    def test_malformed_label(self, label):
        with pytest.raises(InvalidSeasonError, match="format YYYY-YY"):
            parse_season(label)

    def test_non_consecutive_years(self):
        with pytest.raises(InvalidSeasonError, match="consecutive"):
            parse_season("2025-27")

    def test_invalid_season_is_value_error(self):
        """Callers that catch ValueError also catch bad season labels."""
        with pytest.raises(ValueError):
            parse_season("2025-27")


@pytest.mark.unit
class TestSeasonWindow:
    def test_default_window(self):
        assert season_window("2025-26") == (date(2025, 11, 1), date(2026, 4, 15))

    def test_window_rejects_bad_label(self):
        with pytest.raises(InvalidSeasonError):
            season_window("2025-27")


@pytest.mark.unit
class TestEventLocalDate:
    def test_late_tip_off_keeps_local_day(self):
        """A 9pm ET tip-off stamped 02:00Z the next day belongs to the earlier day."""
        scheduled = pytz.utc.localize(datetime(2025, 11, 5, 2, 0))
        assert event_local_date(scheduled) == date(2025, 11, 4)

    def test_naive_datetimes_are_utc(self):
        assert event_local_date(datetime(2025, 11, 5, 2, 0)) == date(2025, 11, 4)

    def test_season_rollover_on_local_day(self):
        """An Oct 31 ET game stamped Nov 1 UTC is dated by its local day."""
        scheduled = pytz.utc.localize(datetime(2025, 11, 1, 1, 0))
        local = event_local_date(scheduled)
        assert local == date(2025, 10, 31)
        assert season_for_date(local) == "2025-26"


@pytest.mark.unit
class TestLocalDayBounds:
    def test_single_eastern_day(self):
        assert local_day_bounds(date(2025, 11, 4)) == (
            datetime(2025, 11, 4, 5, 0),
            datetime(2025, 11, 5, 5, 0),
        )

    def test_span_across_daylight_saving_start(self):
        """Mar 8 2026 is 23 hours long in US/Eastern."""
        assert local_day_bounds(date(2026, 3, 7), 2) == (
            datetime(2026, 3, 7, 5, 0),
            datetime(2026, 3, 9, 4, 0),
        )
