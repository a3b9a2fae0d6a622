"""
Pipeline Registry and Exports

Provides a registry of all available pipelines and helper functions
for running them by name.
"""

from typing import Type

from core.logging import get_logger
from pipelines.base import BasePipeline
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from pipelines.schedule_sync import ScheduleSyncPipeline, SeasonSyncPipeline
from pipelines.game_processor import GameProcessorPipeline
from pipelines.team_rollups import TeamRollupsPipeline
from pipelines.national_averages import NationalAveragesPipeline
from schemas.pipeline import PipelineResult
from schemas.common import ApiStatus


# Registry of all available pipelines
# Order matters for run_all_pipelines - dependencies should come first
PIPELINE_REGISTRY: dict[str, Type[BasePipeline]] = {
    "schedule_sync": ScheduleSyncPipeline,
    # Depends on FINAL games from schedule_sync
    "game_processor": GameProcessorPipeline,
    # Depends on rollups written by game_processor
    "national_averages": NationalAveragesPipeline,
}

# Run on demand only (backfill and repair), not part of run_all_pipelines
ON_DEMAND_PIPELINE_REGISTRY: dict[str, Type[BasePipeline]] = {
    "season_sync": SeasonSyncPipeline,
    "team_rollups": TeamRollupsPipeline,
}


def get_pipeline(name: str, **params) -> BasePipeline:
    """
    Get a pipeline instance by name.

    Args:
        name: Pipeline name (e.g., "game_processor")
        **params: Constructor parameters for the pipeline

    Returns:
        Instantiated pipeline

    Raises:
        KeyError: If pipeline name not found
    """
    if name == "schedule_sync":
        return ScheduleSyncPipeline.for_days(**params)

    registry = {**PIPELINE_REGISTRY, **ON_DEMAND_PIPELINE_REGISTRY}
    if name not in registry:
        available = ", ".join(registry.keys())
        raise KeyError(f"Unknown pipeline '{name}'. Available: {available}")

    return registry[name](**params)


async def run_pipeline(name: str, **params) -> PipelineResult:
    """Run a pipeline by name."""
    pipeline = get_pipeline(name, **params)
    return await pipeline.run()


async def run_all_pipelines() -> dict[str, PipelineResult]:
    """
    Run the daily pipelines in sequence.

    Pipelines are run in registration order:
    1. schedule_sync - upcoming schedule and recent scores
    2. game_processor - shooting splits for newly FINAL games
    3. national_averages - league baselines for projections

    Returns:
        Dict mapping pipeline name to PipelineResult
    """
    log = get_logger("pipeline").bind(operation="run_all")

    results = {}
    pipeline_names = list(PIPELINE_REGISTRY.keys())

    log.info("all_pipelines_started", count=len(pipeline_names))

    for i, name in enumerate(pipeline_names, 1):
        log.info("running_pipeline", pipeline=name, step=f"{i}/{len(pipeline_names)}")
        results[name] = await run_pipeline(name)

    success_count = sum(1 for r in results.values() if r.status == ApiStatus.SUCCESS)
    log.info(
        "all_pipelines_completed",
        success_count=success_count,
        total_count=len(results),
    )

    return results


def list_pipelines() -> list[dict]:
    """List all available pipelines with their configurations."""
    return [
        cls.get_info()
        for cls in {**PIPELINE_REGISTRY, **ON_DEMAND_PIPELINE_REGISTRY}.values()
    ]


__all__ = [
    # Base classes
    "BasePipeline",
    "PipelineConfig",
    "PipelineContext",
    # Pipelines
    "ScheduleSyncPipeline",
    "SeasonSyncPipeline",
    "GameProcessorPipeline",
    "TeamRollupsPipeline",
    "NationalAveragesPipeline",
    # Registry functions
    "PIPELINE_REGISTRY",
    "ON_DEMAND_PIPELINE_REGISTRY",
    "get_pipeline",
    "run_pipeline",
    "run_all_pipelines",
    "list_pipelines",
]
