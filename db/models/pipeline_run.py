"""
Pipeline Run Model

Audit trail of pipeline executions. Every run of a schedule sync, game
processor, rollup rebuild or averages build leaves one row with its
outcome, the number of records it touched and the count summary it
returned to the caller.
"""

import json
import uuid
from datetime import datetime
from typing import Optional

from peewee import (
    UUIDField,
    CharField,
    DateTimeField,
    IntegerField,
    TextField,
)

from db.base import BaseModel


RUN_RUNNING = "running"
RUN_SUCCESS = "success"
RUN_FAILED = "failed"


class PipelineRun(BaseModel):
    """
    One pipeline execution.

    Attributes:
        id: Run id, also bound to every log line of the run
        pipeline_name: Pipeline that ran (e.g., "schedule_sync")
        started_at: When the run started (UTC)
        completed_at: When it finished (null while running)
        status: running, success or failed
        records_processed: Rows inserted or updated by the run
        error_count: Per-date, per-event or per-game errors the run recorded
        summary: JSON of the run's result payload (league counts etc.)
        error_message: Exception that failed the run, if any
    """

    id = UUIDField(primary_key=True, default=uuid.uuid4)
    pipeline_name = CharField(max_length=50, index=True)
    started_at = DateTimeField()
    completed_at = DateTimeField(null=True)
    status = CharField(max_length=20, index=True)
    records_processed = IntegerField(default=0)
    error_count = IntegerField(default=0)
    summary = TextField(null=True)
    error_message = TextField(null=True)

    class Meta:
        table_name = "pipeline_runs"

    def __repr__(self) -> str:
        return (
            f"<PipelineRun("
            f"pipeline={self.pipeline_name}, "
            f"status={self.status}, "
            f"records={self.records_processed})>"
        )

    @classmethod
    def start_run(cls, pipeline_name: str) -> "PipelineRun":
        return cls.create(
            id=uuid.uuid4(),
            pipeline_name=pipeline_name,
            started_at=datetime.utcnow(),
            status=RUN_RUNNING,
        )

    def finish(
        self,
        status: str,
        records_processed: int = 0,
        data: Optional[dict] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Close the run.

        Errors collected inside the payload (``errors`` lists, at the top
        level or one level down per league) are counted into error_count.
        """
        self.status = status
        self.completed_at = datetime.utcnow()
        self.records_processed = records_processed
        self.error_count = count_payload_errors(data)
        self.summary = json.dumps(data, default=str) if data is not None else None
        self.error_message = error_message
        self.save()

    def summary_data(self) -> Optional[dict]:
        return json.loads(self.summary) if self.summary else None

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at and self.started_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        return {
            "run_id": str(self.id),
            "pipeline_name": self.pipeline_name,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "records_processed": self.records_processed,
            "error_count": self.error_count,
            "error_message": self.error_message,
            "summary": self.summary_data(),
        }

    @classmethod
    def recent(cls, pipeline_name: Optional[str] = None, limit: int = 20) -> list["PipelineRun"]:
        """Most recent runs first, optionally for one pipeline."""
        query = cls.select()
        if pipeline_name:
            query = query.where(cls.pipeline_name == pipeline_name)
        return list(query.order_by(cls.started_at.desc()).limit(limit))


def count_payload_errors(data: Optional[dict]) -> int:
    """Number of entries in the payload's ``errors`` lists."""
    if not data:
        return 0
    count = len(data.get("errors") or [])
    for value in data.values():
        if isinstance(value, dict):
            count += len(value.get("errors") or [])
    return count
