"""
Pipeline API Routes

Endpoints for triggering data pipelines. Uses token-based authentication
so cron jobs and operators can trigger pipelines.

The /sync-season endpoint uses a fire-and-forget pattern:
- Returns immediately with a job ID
- The backfill runs in the background
- Use /jobs/{job_id} to check status

POST /all/sync runs the daily pipelines in order for the cron-runner.
"""

import asyncio
from datetime import date
from typing import Optional

from fastapi import APIRouter, Security, HTTPException, Query

from core.job_manager import get_bootstrap_tracker, get_job_manager
from core.logging import get_logger
from core.pipeline_auth import verify_pipeline_token
from db.models.pipeline_run import PipelineRun
from pipelines import (
    GameProcessorPipeline,
    NationalAveragesPipeline,
    ScheduleSyncPipeline,
    SeasonSyncPipeline,
    TeamRollupsPipeline,
    list_pipelines,
    run_all_pipelines,
)
from pipelines.base import BasePipeline
from schemas.pipeline import (
    AllPipelinesResponse,
    BootstrapStatusResponse,
    JobCreatedResponse,
    JobListResponse,
    JobStatusResponse,
    PipelineJobInfo,
    PipelineResponse,
    PipelineResult,
)
from schemas.common import ApiStatus, success_response

router = APIRouter(prefix="/pipelines", tags=["pipelines"])
log = get_logger("pipeline_api")


def _build(factory, *args, **kwargs) -> BasePipeline:
    """Construct a pipeline, turning parameter errors into 400s."""
    try:
        return factory(*args, **kwargs)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _to_response(result: PipelineResult) -> PipelineResponse:
    if result.status == ApiStatus.CONFLICT.value:
        raise HTTPException(status_code=409, detail=result.message)
    return PipelineResponse(
        status=result.status,
        message=result.message,
        data=result,
    )


@router.get("/")
async def get_available_pipelines(
    _: str = Security(verify_pipeline_token),
) -> dict:
    """
    List all available pipelines.

    Returns pipeline names, descriptions, and target tables.
    """
    return {"pipelines": list_pipelines()}


@router.post("/sync-schedules", response_model=PipelineResponse)
async def trigger_sync_schedules(
    _: str = Security(verify_pipeline_token),
    days: Optional[int] = Query(None, ge=1, description="Days to sync starting today. Omit for the default window."),
) -> PipelineResponse:
    """
    Sync schedules and scores for the next N days, both leagues.
    """
    pipeline = _build(ScheduleSyncPipeline.for_days, days)
    return _to_response(await pipeline.run())


@router.post("/sync-schedules-range", response_model=PipelineResponse)
async def trigger_sync_schedules_range(
    _: str = Security(verify_pipeline_token),
    start: date = Query(..., description="First day (YYYY-MM-DD)"),
    end: date = Query(..., description="Last day, inclusive (YYYY-MM-DD)"),
    season: Optional[str] = Query(None, description="Season override (YYYY-YY). Omit to derive per game."),
) -> PipelineResponse:
    """
    Sync schedules and scores for an explicit date range, both leagues.
    """
    pipeline = _build(ScheduleSyncPipeline, start, end, season=season)
    return _to_response(await pipeline.run())


@router.post("/sync-season", response_model=JobCreatedResponse)
async def trigger_sync_season(
    _: str = Security(verify_pipeline_token),
    season: str = Query(..., description="Season to backfill (YYYY-YY)"),
    start: Optional[date] = Query(None, description="Override window start (YYYY-MM-DD)"),
    end: Optional[date] = Query(None, description="Override window end (YYYY-MM-DD)"),
) -> JobCreatedResponse:
    """
    Backfill a full season in the background (fire-and-forget).

    Returns immediately with a job ID. Use GET /jobs/{job_id} to check status.
    """
    pipeline = _build(SeasonSyncPipeline, season, start=start, end=end)

    job_manager = get_job_manager()
    params = {
        "season": season,
        "start": pipeline.start.isoformat(),
        "end": pipeline.end.isoformat(),
    }
    job = await job_manager.create_job(pipeline.config.name, params=params)

    asyncio.create_task(job_manager.run_job(job.job_id, pipeline))

    log.info("season_sync_job_started", job_id=job.job_id, **params)

    return JobCreatedResponse(
        status=ApiStatus.SUCCESS,
        message=f"Season sync started. Use GET /jobs/{job.job_id} to check status.",
        data=PipelineJobInfo(**job.model_dump(include=set(PipelineJobInfo.model_fields))),
    )


@router.post("/process-completed-games", response_model=PipelineResponse)
async def trigger_process_completed_games(
    _: str = Security(verify_pipeline_token),
) -> PipelineResponse:
    """
    Extract shooting splits for every FINAL game not yet processed.
    """
    pipeline = _build(GameProcessorPipeline)
    return _to_response(await pipeline.run())


@router.post("/build-averages", response_model=PipelineResponse)
async def trigger_build_averages(
    _: str = Security(verify_pipeline_token),
    season: Optional[str] = Query(None, description="Season (YYYY-YY). Omit for the current season."),
) -> PipelineResponse:
    """
    Rebuild national averages for both leagues.
    """
    pipeline = _build(NationalAveragesPipeline, season)
    return _to_response(await pipeline.run())


@router.post("/team-rollups", response_model=PipelineResponse)
async def trigger_team_rollups(
    _: str = Security(verify_pipeline_token),
    season: Optional[str] = Query(None, description="Season (YYYY-YY). Omit for the current season."),
) -> PipelineResponse:
    """
    Recompute every team rollup of a season from per-game stats.
    """
    pipeline = _build(TeamRollupsPipeline, season)
    return _to_response(await pipeline.run())


@router.post("/all/sync", response_model=AllPipelinesResponse)
async def trigger_all_pipelines_sync(
    _: str = Security(verify_pipeline_token),
) -> AllPipelinesResponse:
    """
    Run the daily pipelines in sequence and wait for them to finish.

    Runs (registry order): schedule_sync -> game_processor -> national_averages

    Intended for the cron-runner. A pipeline that is already running is
    reported with a conflict status and the remaining ones still run.
    """
    results = await run_all_pipelines()

    all_success = all(r.status == ApiStatus.SUCCESS.value for r in results.values())
    overall_status = ApiStatus.SUCCESS if all_success else ApiStatus.ERROR
    message = (
        "All pipelines completed successfully"
        if all_success
        else "Some pipelines did not complete"
    )

    return AllPipelinesResponse(
        status=overall_status,
        message=message,
        data=results,
    )


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(
    _: str = Security(verify_pipeline_token),
    limit: int = Query(default=10, ge=1, le=50, description="Max jobs to return"),
) -> JobListResponse:
    """
    List recent pipeline jobs.

    Returns most recent jobs first.
    """
    job_manager = get_job_manager()
    jobs = await job_manager.list_jobs(limit=limit)

    return JobListResponse(
        status=ApiStatus.SUCCESS,
        message=f"Found {len(jobs)} jobs",
        data=[
            PipelineJobInfo(**j.model_dump(include=set(PipelineJobInfo.model_fields)))
            for j in jobs
        ],
    )


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(
    job_id: str,
    _: str = Security(verify_pipeline_token),
) -> JobStatusResponse:
    """
    Get the status of a pipeline job, with its result once finished.
    """
    job_manager = get_job_manager()
    job = await job_manager.get_job(job_id)

    if job is None:
        raise HTTPException(
            status_code=404,
            detail=f"Job {job_id} not found. Jobs are kept in memory and may be lost on restart.",
        )

    return JobStatusResponse(
        status=ApiStatus.SUCCESS,
        message=f"Job is {job.status}",
        data=job,
    )


@router.get("/bootstrap-status", response_model=BootstrapStatusResponse)
async def get_bootstrap_status(
    _: str = Security(verify_pipeline_token),
) -> BootstrapStatusResponse:
    """
    Last run, success and error of the startup bootstrap.
    """
    return BootstrapStatusResponse(
        status=ApiStatus.SUCCESS,
        message="Bootstrap status",
        data=get_bootstrap_tracker().snapshot(),
    )


@router.get("/runs")
async def list_pipeline_runs(
    _: str = Security(verify_pipeline_token),
    pipeline: Optional[str] = Query(None, description="Only runs of this pipeline"),
    limit: int = Query(default=20, ge=1, le=100, description="Max runs to return"),
) -> dict:
    """
    Audit trail of recent pipeline runs with their count summaries.
    """
    runs = await asyncio.to_thread(PipelineRun.recent, pipeline, limit)
    return success_response(
        message=f"Found {len(runs)} runs",
        data=[run.to_dict() for run in runs],
    )
