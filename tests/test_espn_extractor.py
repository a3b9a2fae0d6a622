"""Tests for the ESPN scoreboard extractor."""

from unittest.mock import Mock

import pytest

from core.resilience import FetchError
from core.settings import settings
from pipelines.extractors.espn import ESPNScoreboardExtractor
from utils.constants import League


@pytest.fixture
def client() -> Mock:
    return Mock()


@pytest.fixture
def extractor(client) -> ESPNScoreboardExtractor:
    return ESPNScoreboardExtractor(client=client)


def _page(*event_ids: str) -> dict:
    return {"events": [{"id": event_id} for event_id in event_ids]}


@pytest.mark.unit
class TestFetchRawEvents:
    def test_single_short_page(self, extractor, client):
        client.get_json.return_value = _page("1", "2")

        events = extractor.fetch_raw_events(League.MENS, "20251104")

        assert [e["id"] for e in events] == ["1", "2"]
        client.get_json.assert_called_once()
        url = client.get_json.call_args.args[0]
        params = client.get_json.call_args.kwargs["params"]
        assert url.endswith("/mens-college-basketball/scoreboard")
        assert params == {
            "dates": "20251104",
            "groups": "50",
            "limit": settings.espn_page_limit,
            "offset": 0,
        }

    def test_womens_league_path(self, extractor, client):
        client.get_json.return_value = _page()

        extractor.fetch_raw_events("WOMENS", "20251104")

        assert "/womens-college-basketball/" in client.get_json.call_args.args[0]

    def test_pages_until_short_page(self, extractor, client, monkeypatch):
        monkeypatch.setattr(settings, "espn_page_limit", 2)
        client.get_json.side_effect = [_page("1", "2"), _page("3", "4"), _page("5")]

        events = extractor.fetch_raw_events(League.MENS, "20251104")

        assert [e["id"] for e in events] == ["1", "2", "3", "4", "5"]
        offsets = [c.kwargs["params"]["offset"] for c in client.get_json.call_args_list]
        assert offsets == [0, 2, 4]

    def test_stops_on_empty_page(self, extractor, client, monkeypatch):
        monkeypatch.setattr(settings, "espn_page_limit", 2)
        client.get_json.side_effect = [_page("1", "2"), _page()]

        events = extractor.fetch_raw_events(League.MENS, "20251104")

        assert len(events) == 2
        assert client.get_json.call_count == 2

    def test_offset_cap_stops_runaway_paging(self, extractor, client, monkeypatch):
        """A provider that ignores paging cannot loop forever."""
        monkeypatch.setattr(settings, "espn_page_limit", 2)
        monkeypatch.setattr(settings, "espn_max_offset", 4)
        client.get_json.return_value = _page("1", "2")

        events = extractor.fetch_raw_events(League.MENS, "20251104")

        assert client.get_json.call_count == 3
        assert len(events) == 6

    def test_fetch_error_propagates(self, extractor, client):
        client.get_json.side_effect = FetchError("gave up", url="https://espn.test", attempts=3)

        with pytest.raises(FetchError):
            extractor.fetch_raw_events(League.MENS, "20251104")


@pytest.mark.unit
class TestFetchDailyEvents:
    def test_malformed_events_are_left_out(self, extractor, client, make_event):
        broken = make_event(event_id="2")
        broken["competitions"] = []
        client.get_json.return_value = {"events": [make_event(event_id="1"), broken]}

        records = extractor.fetch_daily_events(League.MENS, "20251104")

        assert [r.provider_game_id for r in records] == ["1"]


@pytest.mark.unit
class TestFetchBoxscore:
    def test_summary_request(self, extractor, client, make_summary):
        client.get_json.return_value = make_summary()

        record = extractor.fetch_boxscore(League.MENS, "401700001")

        assert record.home.shooting.fga == 60
        url = client.get_json.call_args.args[0]
        assert url.endswith("/mens-college-basketball/summary")
        assert client.get_json.call_args.kwargs["params"] == {"event": "401700001", "groups": "50"}

    def test_summary_without_boxscore(self, extractor, client):
        client.get_json.return_value = {"header": {}}
        assert extractor.fetch_boxscore(League.MENS, "401700001") is None
