"""Tests for run locking, the job manager and the startup bootstrap."""

import asyncio
from datetime import date

import pytest

from core.job_manager import BootstrapTracker, JobManager
from pipelines.base import _get_run_lock
from pipelines.schedule_sync import ScheduleSyncPipeline, SeasonSyncPipeline
from schemas.common import ApiStatus
from schemas.pipeline import PipelineResult
from services.bootstrap import run_bootstrap


def _result(status: ApiStatus, data: dict | None = None, error: str | None = None) -> PipelineResult:
    return PipelineResult(
        status=status,
        message=f"schedule_sync {status.value}",
        started_at="2025-11-04T00:00:00-05:00",
        error=error,
        data=data,
    )


class ScriptedPipeline:
    """Pipeline stand-in whose run() returns (or raises) scripted outcomes in order."""

    def __init__(self, outcomes: list):
        self.outcomes = outcomes
        self.runs = 0

    def __call__(self) -> "ScriptedPipeline":
        return self

    async def run(self) -> PipelineResult:
        outcome = self.outcomes[self.runs]
        self.runs += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.mark.unit
class TestRunLock:
    def test_held_lock_returns_conflict(self, fake_extractor):
        """A season backfill and a schedule sync never overlap."""
        lock = _get_run_lock(ScheduleSyncPipeline.config.lock_key)
        assert lock.acquire(blocking=False)
        try:
            result = SeasonSyncPipeline("2025-26", extractor=fake_extractor).run_sync()
        finally:
            lock.release()

        assert result.status == ApiStatus.CONFLICT.value
        assert "already running" in result.message
        assert fake_extractor.scoreboard_calls == []

    def test_lock_released_after_run(self, test_db, fake_extractor):
        day = date(2025, 11, 4)
        ScheduleSyncPipeline(day, day, extractor=fake_extractor).run_sync()

        lock = _get_run_lock("schedule_sync")
        assert lock.acquire(blocking=False)
        lock.release()

    def test_failure_is_reported_not_raised(self, test_db, fake_extractor, monkeypatch):
        pipeline = ScheduleSyncPipeline(date(2025, 11, 4), date(2025, 11, 4), extractor=fake_extractor)

        def _boom(log=None):
            raise RuntimeError("database is gone")

        monkeypatch.setattr(pipeline, "sync_all", _boom)
        result = pipeline.run_sync()

        assert result.status == ApiStatus.ERROR.value
        assert result.error == "RuntimeError: database is gone"


@pytest.mark.unit
class TestJobManager:
    def test_job_lifecycle(self):
        manager = JobManager()
        pipeline = ScriptedPipeline([_result(ApiStatus.SUCCESS, data={"mens": {}})])

        async def scenario():
            job = await manager.create_job("season_sync", params={"season": "2025-26"})
            assert job.status == "pending"
            await manager.run_job(job.job_id, pipeline)
            return await manager.get_job(job.job_id)

        job = asyncio.run(scenario())

        assert job.status == "completed"
        assert job.result.data == {"mens": {}}
        assert job.duration_seconds is not None
        assert job.params == {"season": "2025-26"}

    def test_conflict_result_fails_job(self):
        manager = JobManager()
        pipeline = ScriptedPipeline([_result(ApiStatus.CONFLICT)])

        async def scenario():
            job = await manager.create_job("season_sync")
            await manager.run_job(job.job_id, pipeline)
            return await manager.get_job(job.job_id)

        job = asyncio.run(scenario())

        assert job.status == "failed"
        assert job.error == "schedule_sync conflict"

    def test_crashed_pipeline_fails_job(self):
        manager = JobManager()
        pipeline = ScriptedPipeline([RuntimeError("boom")])

        async def scenario():
            job = await manager.create_job("season_sync")
            await manager.run_job(job.job_id, pipeline)
            return await manager.get_job(job.job_id)

        job = asyncio.run(scenario())

        assert job.status == "failed"
        assert job.error == "RuntimeError: boom"

    def test_unknown_job(self):
        assert asyncio.run(JobManager().get_job("nope")) is None

    def test_list_most_recent_first(self):
        manager = JobManager()

        async def scenario():
            first = await manager.create_job("season_sync")
            second = await manager.create_job("season_sync")
            first.created_at = "2025-11-04T00:00:00+00:00"
            second.created_at = "2025-11-05T00:00:00+00:00"
            return await manager.list_jobs(limit=10), second

        jobs, second = asyncio.run(scenario())

        assert jobs[0].job_id == second.job_id
        assert len(jobs) == 2


@pytest.mark.unit
class TestBootstrapTracker:
    def test_transitions(self):
        tracker = BootstrapTracker()

        assert tracker.mark_started() is True
        assert tracker.mark_started() is False
        assert tracker.snapshot().is_running is True

        tracker.mark_failed("FetchError: gave up")
        status = tracker.snapshot()
        assert status.is_running is False
        assert status.last_error == "FetchError: gave up"
        assert status.last_error_at is not None

        assert tracker.mark_started() is True
        tracker.mark_succeeded({"mens": {"games_inserted": 3}})
        status = tracker.snapshot()
        assert status.run_count == 2
        assert status.last_success_at is not None
        assert status.last_results == {"mens": {"games_inserted": 3}}

    def test_snapshot_is_a_copy(self):
        tracker = BootstrapTracker()
        snapshot = tracker.snapshot()
        snapshot.run_count = 42

        assert tracker.snapshot().run_count == 0


@pytest.mark.unit
class TestRunBootstrap:
    def test_success_first_attempt(self):
        tracker = BootstrapTracker()
        pipeline = ScriptedPipeline([_result(ApiStatus.SUCCESS, data={"mens": {"games_inserted": 1}})])
        sleep = RecordingSleep()

        ok = asyncio.run(run_bootstrap(tracker=tracker, pipeline_factory=pipeline, max_attempts=3, retry_delay=5.0, sleep=sleep))

        assert ok is True
        assert sleep.delays == []
        assert tracker.snapshot().last_results == {"mens": {"games_inserted": 1}}

    def test_retries_with_doubling_delay(self):
        tracker = BootstrapTracker()
        pipeline = ScriptedPipeline([
            _result(ApiStatus.ERROR, error="FetchError: gave up"),
            RuntimeError("connection refused"),
            _result(ApiStatus.SUCCESS, data={}),
        ])
        sleep = RecordingSleep()

        ok = asyncio.run(run_bootstrap(tracker=tracker, pipeline_factory=pipeline, max_attempts=3, retry_delay=5.0, sleep=sleep))

        assert ok is True
        assert pipeline.runs == 3
        assert sleep.delays == [5.0, 10.0]
        assert tracker.snapshot().is_running is False

    def test_gives_up_after_max_attempts(self):
        tracker = BootstrapTracker()
        pipeline = ScriptedPipeline([_result(ApiStatus.ERROR, error="FetchError: gave up")] * 3)

        ok = asyncio.run(run_bootstrap(tracker=tracker, pipeline_factory=pipeline, max_attempts=3, retry_delay=5.0, sleep=RecordingSleep()))

        status = tracker.snapshot()
        assert ok is False
        assert status.is_running is False
        assert status.last_error == "FetchError: gave up"
        assert status.last_success_at is None

    def test_refuses_while_running(self):
        tracker = BootstrapTracker()
        tracker.mark_started()
        pipeline = ScriptedPipeline([])

        ok = asyncio.run(run_bootstrap(tracker=tracker, pipeline_factory=pipeline, sleep=RecordingSleep()))

        assert ok is False
        assert pipeline.runs == 0
