"""
Pipeline Context

Per-run state: the audit row, a logger bound to the run, the record
counter and the result payload handed back to the caller.
"""

from __future__ import annotations

import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Any

import pytz

from core.logging import get_logger
from db.models.pipeline_run import (
    RUN_FAILED,
    RUN_SUCCESS,
    PipelineRun,
    count_payload_errors,
)
from schemas.pipeline import PipelineResult
from schemas.common import ApiStatus
from utils.constants import SEASON_TIMEZONE


def _now() -> datetime:
    return datetime.now(pytz.timezone(SEASON_TIMEZONE))


@dataclass
class PipelineContext:
    """
    Execution context of one pipeline run.

    Pipelines put their result payload (league counts, per-item errors) on
    ``data``; it is returned in the PipelineResult and stored on the run's
    audit row. Per-item errors inside the payload do not fail the run.

    Usage:
        ctx = PipelineContext("game_processor")
        ctx.start_tracking()
        try:
            result = processor.process_completed_games(log=ctx.log)
            ctx.increment_records(result.games_processed)
            ctx.data = result.model_dump()
            return ctx.mark_success()
        except Exception as e:
            return ctx.mark_failed(e)
    """

    pipeline_name: str
    run_id: uuid.UUID = field(default_factory=uuid.uuid4)
    started_at: datetime = field(default_factory=_now)
    records_processed: int = 0
    data: Optional[dict] = None

    _db_run: Optional[PipelineRun] = field(default=None, repr=False)
    _log: Any = field(default=None, repr=False)

    def __post_init__(self):
        self._log = get_logger("pipeline").bind(pipeline=self.pipeline_name)

    @property
    def log(self):
        """Logger bound to this pipeline and run."""
        return self._log

    def start_tracking(self) -> None:
        """Open the audit row; its id becomes the run id in every log line."""
        self._db_run = PipelineRun.start_run(self.pipeline_name)
        self.run_id = self._db_run.id
        self._log = self._log.bind(run_id=str(self.run_id))
        self._log.info("pipeline_started")

    def increment_records(self, count: int = 1) -> None:
        self.records_processed += count

    def _result(
        self,
        status: ApiStatus,
        message: str,
        error: Optional[str] = None,
    ) -> PipelineResult:
        completed_at = _now()
        return PipelineResult(
            status=status,
            message=message,
            started_at=self.started_at.isoformat(),
            completed_at=completed_at.isoformat(),
            duration_seconds=(completed_at - self.started_at).total_seconds(),
            records_processed=self.records_processed,
            error=error,
            data=self.data,
        )

    def mark_success(self, message: Optional[str] = None) -> PipelineResult:
        """
        Close the run as successful.

        The default message mentions per-item errors when the payload
        recorded any.
        """
        error_count = count_payload_errors(self.data)
        if self._db_run:
            self._db_run.finish(RUN_SUCCESS, self.records_processed, self.data)

        if message is None:
            message = f"{self.pipeline_name} completed successfully"
            if error_count:
                message = f"{self.pipeline_name} completed with {error_count} errors"

        result = self._result(ApiStatus.SUCCESS, message)
        self._log.info(
            "pipeline_completed",
            records_processed=self.records_processed,
            error_count=error_count,
            duration_seconds=result.duration_seconds,
        )
        return result

    def mark_failed(self, error: Exception) -> PipelineResult:
        """Close the run as failed by an exception that escaped execute()."""
        error_msg = f"{type(error).__name__}: {error}"
        if self._db_run:
            self._db_run.finish(
                RUN_FAILED,
                self.records_processed,
                self.data,
                error_message=error_msg,
            )

        self._log.error(
            "pipeline_failed",
            error=error_msg,
            traceback=traceback.format_exc(),
        )
        return self._result(ApiStatus.ERROR, f"{self.pipeline_name} failed", error=error_msg)
