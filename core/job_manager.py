"""
Pipeline Job Manager

Manages background pipeline jobs with status tracking, and the startup
bootstrap status record.
Uses in-memory storage (suitable for single-instance deployments).
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from core.logging import get_logger
from schemas.pipeline import (
    BootstrapStatus,
    JobStatus,
    PipelineJobDetail,
    PipelineResult,
)
from schemas.common import ApiStatus


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class JobManager:
    """
    Manages pipeline jobs with in-memory storage.

    Thread-safe for async operations within a single process.
    Jobs are stored in memory and will be lost on restart.
    """

    # Maximum number of jobs to keep in memory (prevents unbounded growth)
    MAX_JOBS = 100

    def __init__(self):
        self._jobs: dict[str, PipelineJobDetail] = {}
        self._lock = asyncio.Lock()
        self._log = get_logger("job_manager")

    async def create_job(self, pipeline_name: str, params: Optional[dict] = None) -> PipelineJobDetail:
        """
        Create a new pipeline job.

        Args:
            pipeline_name: Pipeline the job will run
            params: Parameters the pipeline was built with (for display)

        Returns:
            The created job
        """
        job_id = str(uuid4())

        job = PipelineJobDetail(
            job_id=job_id,
            pipeline_name=pipeline_name,
            status=JobStatus.PENDING,
            created_at=_utcnow(),
            params=params or {},
        )

        async with self._lock:
            # Prune old jobs if we're at capacity
            if len(self._jobs) >= self.MAX_JOBS:
                self._prune_old_jobs()

            self._jobs[job_id] = job

        self._log.info("job_created", job_id=job_id, pipeline=pipeline_name)
        return job

    async def get_job(self, job_id: str) -> Optional[PipelineJobDetail]:
        """Get a job by ID, or None if not found."""
        async with self._lock:
            return self._jobs.get(job_id)

    async def update_job_started(self, job_id: str) -> None:
        """Mark a job as started."""
        async with self._lock:
            if job := self._jobs.get(job_id):
                job.status = JobStatus.RUNNING.value
                job.started_at = _utcnow()

    async def complete_job(
        self,
        job_id: str,
        result: Optional[PipelineResult] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Mark a job as finished.

        The job counts as completed only when the pipeline result reports
        success; a conflict, failed result or raised error marks it failed.
        """
        success = result is not None and result.status == ApiStatus.SUCCESS.value
        if result is not None and not success and error is None:
            error = result.error or result.message

        async with self._lock:
            if job := self._jobs.get(job_id):
                now = datetime.now(timezone.utc)
                job.status = (JobStatus.COMPLETED if success else JobStatus.FAILED).value
                job.completed_at = now.isoformat()
                job.result = result
                job.error = error

                if job.started_at:
                    started = datetime.fromisoformat(job.started_at)
                    job.duration_seconds = (now - started).total_seconds()

        status = "completed" if success else "failed"
        self._log.info(f"job_{status}", job_id=job_id, error=error)

    async def run_job(self, job_id: str, pipeline) -> None:
        """Run a pipeline for a job, recording its outcome."""
        await self.update_job_started(job_id)
        try:
            result = await pipeline.run()
        except Exception as e:
            self._log.error("job_crashed", job_id=job_id, error=str(e))
            await self.complete_job(job_id, error=f"{type(e).__name__}: {e}")
            return
        await self.complete_job(job_id, result=result)

    async def list_jobs(self, limit: int = 10) -> list[PipelineJobDetail]:
        """Recent jobs, most recent first."""
        async with self._lock:
            jobs = sorted(
                self._jobs.values(),
                key=lambda j: j.created_at,
                reverse=True,
            )
            return jobs[:limit]

    def _prune_old_jobs(self) -> None:
        """Remove the oldest half of finished jobs."""
        finished = [
            (k, v)
            for k, v in self._jobs.items()
            if v.status in (JobStatus.COMPLETED, JobStatus.FAILED)
        ]
        finished.sort(key=lambda x: x[1].created_at)

        to_remove = len(finished) // 2
        for job_id, _ in finished[:to_remove]:
            del self._jobs[job_id]

        self._log.debug("jobs_pruned", removed=to_remove)


class BootstrapTracker:
    """
    Owns the bootstrap status record.

    Transitions: idle -> running (mark_started) -> success (mark_succeeded)
    or error (mark_failed). A second mark_started while running is refused.
    """

    def __init__(self):
        self._status = BootstrapStatus()
        self._lock = threading.Lock()
        self._log = get_logger("bootstrap")

    def mark_started(self) -> bool:
        """Enter the running state. Returns False if already running."""
        with self._lock:
            if self._status.is_running:
                return False
            self._status.is_running = True
            self._status.run_count += 1
            self._status.last_run_at = _utcnow()
            run_count = self._status.run_count
        self._log.info("bootstrap_started", run_count=run_count)
        return True

    def mark_succeeded(self, results: dict) -> None:
        with self._lock:
            self._status.is_running = False
            self._status.last_success_at = _utcnow()
            self._status.last_results = results
        self._log.info("bootstrap_succeeded")

    def mark_failed(self, error: str) -> None:
        with self._lock:
            self._status.is_running = False
            self._status.last_error_at = _utcnow()
            self._status.last_error = error
        self._log.error("bootstrap_failed", error=error)

    def snapshot(self) -> BootstrapStatus:
        """Copy of the current status."""
        with self._lock:
            return self._status.model_copy(deep=True)


# Global instances
_job_manager: Optional[JobManager] = None
_bootstrap_tracker: Optional[BootstrapTracker] = None


def get_job_manager() -> JobManager:
    """Get the global job manager instance."""
    global _job_manager
    if _job_manager is None:
        _job_manager = JobManager()
    return _job_manager


def get_bootstrap_tracker() -> BootstrapTracker:
    """Get the global bootstrap tracker instance."""
    global _bootstrap_tracker
    if _bootstrap_tracker is None:
        _bootstrap_tracker = BootstrapTracker()
    return _bootstrap_tracker
