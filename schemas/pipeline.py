from pydantic import BaseModel
from typing import Optional
from enum import Enum

from .common import ApiStatus


class PipelineResult(BaseModel):
    """Result of a single pipeline execution"""

    status: ApiStatus
    message: str
    started_at: str
    completed_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    records_processed: Optional[int] = None
    error: Optional[str] = None
    data: Optional[dict] = None

    class Config:
        use_enum_values = True


class PipelineResponse(BaseModel):
    """Response for a single pipeline trigger"""

    status: ApiStatus
    message: str
    data: Optional[PipelineResult] = None

    class Config:
        use_enum_values = True


class AllPipelinesResponse(BaseModel):
    """Response for running the daily pipelines in sequence"""

    status: ApiStatus
    message: str
    data: Optional[dict[str, PipelineResult]] = None

    class Config:
        use_enum_values = True


# ---------------------- Pipeline Result Payloads ---------------------- #


class LeagueSyncResult(BaseModel):
    """Counts and per-item errors for one league of a schedule sync."""

    teams_inserted: int = 0
    teams_updated: int = 0
    games_inserted: int = 0
    games_updated: int = 0
    errors: list[str] = []


class SyncSchedulesResult(BaseModel):
    """Schedule sync over a date range for both leagues."""

    start_date: str
    end_date: str
    season: Optional[str] = None
    mens: LeagueSyncResult
    womens: LeagueSyncResult


class ProcessCompletedGamesResult(BaseModel):
    """Outcome of one pass over FINAL, unprocessed games."""

    games_found: int = 0
    games_processed: int = 0
    games_skipped: int = 0
    errors: list[str] = []


class LeagueAveragesResult(BaseModel):
    """Summary of the national averages written for one league."""

    season: str
    team_count: int
    total_games: int
    points_per_team_per_game: float


class BuildNationalAveragesResult(BaseModel):
    """Per-league averages; a league is absent when it had no games."""

    mens: Optional[LeagueAveragesResult] = None
    womens: Optional[LeagueAveragesResult] = None


# ---------------------- Job-based Pipeline Responses ---------------------- #


class JobStatus(str, Enum):
    """Status of a pipeline job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineJobInfo(BaseModel):
    """Summary info for a pipeline job."""

    job_id: str
    pipeline_name: str
    status: JobStatus
    created_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    params: dict = {}

    class Config:
        use_enum_values = True


class PipelineJobDetail(PipelineJobInfo):
    """Full details of a pipeline job including its result."""

    result: Optional[PipelineResult] = None
    error: Optional[str] = None


class JobCreatedResponse(BaseModel):
    """Response when a job is created (fire-and-forget)."""

    status: ApiStatus
    message: str
    data: PipelineJobInfo

    class Config:
        use_enum_values = True


class JobStatusResponse(BaseModel):
    """Response for job status queries."""

    status: ApiStatus
    message: str
    data: PipelineJobDetail

    class Config:
        use_enum_values = True


class JobListResponse(BaseModel):
    """Response for listing jobs."""

    status: ApiStatus
    message: str
    data: list[PipelineJobInfo]

    class Config:
        use_enum_values = True


# ---------------------- Bootstrap Status ---------------------- #


class BootstrapStatus(BaseModel):
    """Operational record of the startup bootstrap sequence."""

    is_running: bool = False
    run_count: int = 0
    last_run_at: Optional[str] = None
    last_success_at: Optional[str] = None
    last_error_at: Optional[str] = None
    last_error: Optional[str] = None
    last_results: Optional[dict] = None


class BootstrapStatusResponse(BaseModel):
    status: ApiStatus
    message: str
    data: BootstrapStatus

    class Config:
        use_enum_values = True
