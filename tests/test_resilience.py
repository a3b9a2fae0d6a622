"""Tests for request pacing, retries and circuit breaking."""

from unittest.mock import Mock

import pytest
import requests

from core.resilience import (
    ClientError,
    FetchError,
    RateLimitError,
    RateLimiter,
    ResilientHTTPClient,
    ServerError,
    classify_response_error,
    create_circuit_breaker,
)


def _response(status_code: int = 200, payload=None, bad_json: bool = False) -> Mock:
    response = Mock(status_code=status_code, headers={}, text="upstream body")
    if bad_json:
        response.json = Mock(side_effect=ValueError("Expecting value"))
    else:
        response.json = Mock(return_value=payload if payload is not None else {})
    return response


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.unit
class TestRateLimiter:
    def test_first_request_is_not_delayed(self):
        clock = FakeClock()
        limiter = RateLimiter(0.25, 0.55, clock=clock, sleep=clock.sleep, jitter=lambda lo, hi: lo)

        assert limiter.wait() == 0.0
        assert clock.sleeps == []

    def test_waits_out_remaining_interval(self):
        """A request 0.1s after the previous one waits the remaining 0.15s."""
        clock = FakeClock()
        limiter = RateLimiter(0.25, 0.55, clock=clock, sleep=clock.sleep, jitter=lambda lo, hi: lo)

        limiter.wait()
        clock.now += 0.1
        slept = limiter.wait()

        assert slept == pytest.approx(0.15)
        assert clock.sleeps == [pytest.approx(0.15)]

    def test_no_wait_after_long_gap(self):
        clock = FakeClock()
        limiter = RateLimiter(0.25, 0.55, clock=clock, sleep=clock.sleep, jitter=lambda lo, hi: hi)

        limiter.wait()
        clock.now += 1.0

        assert limiter.wait() == 0.0

    def test_instances_pace_independently(self):
        """Two limiters never see each other's requests."""
        clock = FakeClock()
        first = RateLimiter(0.25, 0.55, clock=clock, sleep=clock.sleep, jitter=lambda lo, hi: lo)
        second = RateLimiter(0.25, 0.55, clock=clock, sleep=clock.sleep, jitter=lambda lo, hi: lo)

        first.wait()
        assert second.wait() == 0.0

    def test_rejects_inverted_bounds(self):
        with pytest.raises(ValueError, match="max_interval"):
            RateLimiter(0.5, 0.1)


@pytest.mark.unit
class TestClassifyResponseError:
    def test_success_passes(self):
        classify_response_error(_response(204))

    def test_rate_limit_reads_retry_after(self):
        response = _response(429)
        response.headers = {"Retry-After": "7"}

        with pytest.raises(RateLimitError) as exc_info:
            classify_response_error(response)
        assert exc_info.value.retry_after == 7

    def test_server_error(self):
        with pytest.raises(ServerError):
            classify_response_error(_response(502))

    def test_other_statuses_are_retryable_client_errors(self):
        with pytest.raises(ClientError) as exc_info:
            classify_response_error(_response(404))
        assert exc_info.value.status_code == 404


@pytest.mark.unit
class TestResilientHTTPClient:
    def _client(self, session: Mock, sleeps: list, **kwargs) -> ResilientHTTPClient:
        return ResilientHTTPClient(
            max_retries=3,
            backoff_unit=1.0,
            timeout=10,
            session=session,
            sleep=sleeps.append,
            **kwargs,
        )

    def test_returns_decoded_json(self):
        session = Mock()
        session.get.return_value = _response(200, {"events": [{"id": "1"}]})
        client = self._client(session, [])

        assert client.get_json("https://espn.test/scoreboard", params={"dates": "20251104"}) == {
            "events": [{"id": "1"}]
        }
        _, kwargs = session.get.call_args
        assert kwargs["params"] == {"dates": "20251104"}
        assert kwargs["timeout"] == 10

    def test_retries_non_2xx_then_succeeds(self):
        """A sporadic 4xx is retried like a server error."""
        session = Mock()
        session.get.side_effect = [_response(400), _response(200, {"ok": True})]
        sleeps = []
        client = self._client(session, sleeps)

        assert client.get_json("https://espn.test/scoreboard") == {"ok": True}
        assert session.get.call_count == 2
        assert sleeps == [1.0]

    def test_linear_backoff_and_fetch_error_after_exhaustion(self):
        session = Mock()
        session.get.side_effect = [_response(503), _response(503), _response(503)]
        sleeps = []
        client = self._client(session, sleeps)

        with pytest.raises(FetchError, match="after 3 attempts") as exc_info:
            client.get_json("https://espn.test/scoreboard")

        assert exc_info.value.attempts == 3
        assert exc_info.value.url == "https://espn.test/scoreboard"
        assert session.get.call_count == 3
        assert sleeps == [1.0, 2.0]

    def test_malformed_json_is_retried(self):
        session = Mock()
        session.get.side_effect = [_response(200, bad_json=True), _response(200, {"events": []})]
        client = self._client(session, [])

        assert client.get_json("https://espn.test/scoreboard") == {"events": []}
        assert session.get.call_count == 2

    def test_timeouts_are_retried(self):
        session = Mock()
        session.get.side_effect = [requests.exceptions.Timeout(), _response(200, {})]
        client = self._client(session, [])

        assert client.get_json("https://espn.test/summary") == {}
        assert session.get.call_count == 2

    def test_open_circuit_short_circuits(self):
        """Once the breaker trips, calls fail fast without touching the network."""
        session = Mock()
        session.get.return_value = _response(500)
        breaker = create_circuit_breaker("test_open_circuit", failure_threshold=1, recovery_timeout=60)
        client = self._client(session, [], circuit_breaker=breaker)

        with pytest.raises(FetchError):
            client.get_json("https://espn.test/scoreboard")
        calls_after_first = session.get.call_count

        with pytest.raises(FetchError, match="Circuit open"):
            client.get_json("https://espn.test/scoreboard")
        assert session.get.call_count == calls_after_first
