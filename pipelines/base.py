"""
Base Pipeline

Abstract base class for all data pipelines.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import ClassVar

import pytz

from db.base import db
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from schemas.common import ApiStatus
from schemas.pipeline import PipelineResult
from utils.constants import SEASON_TIMEZONE


# One lock per lock group, shared by every instance in the process
_run_locks: dict[str, threading.Lock] = {}
_run_locks_guard = threading.Lock()


class PipelineConflictError(RuntimeError):
    """Another run holds the pipeline's lock."""
    pass


class PipelineRunError(RuntimeError):
    """A pipeline run ended with an error result."""
    pass


def _get_run_lock(key: str) -> threading.Lock:
    with _run_locks_guard:
        if key not in _run_locks:
            _run_locks[key] = threading.Lock()
        return _run_locks[key]


class BasePipeline(ABC):
    """
    Abstract base class for all data pipelines.

    Provides:
    - Automatic run tracking via PipelineContext
    - Structured logging with correlation IDs
    - Standardized error handling
    - Run-level mutual exclusion for pipelines with allow_concurrent=False
    - Thread-based execution to avoid blocking the async event loop

    Subclasses must implement:
    - config: PipelineConfig class attribute
    - execute(): The actual pipeline logic (synchronous)

    Example:
        class NationalAveragesPipeline(BasePipeline):
            config = PipelineConfig(
                name="national_averages",
                display_name="National Averages",
                description="Rebuilds weighted league averages",
                target_table="national_averages",
            )

            def execute(self, ctx: PipelineContext) -> None:
                result = self.build_averages(log=ctx.log)
                ctx.data = result.model_dump()
    """

    # Class-level configuration - must be overridden by subclasses
    config: ClassVar[PipelineConfig]

    def __init__(self):
        """Initialize pipeline and validate configuration."""
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate that config is properly defined."""
        if not hasattr(self.__class__, "config") or self.__class__.config is None:
            raise ValueError(
                f"{self.__class__.__name__} must define a 'config' class attribute"
            )

    @abstractmethod
    def execute(self, ctx: PipelineContext) -> None:
        """
        Execute the pipeline logic.

        This is the main method subclasses implement. It runs in a separate
        thread to avoid blocking the async event loop. All synchronous I/O
        (HTTP requests, database calls) is safe to call directly here.

        Args:
            ctx: Pipeline context with logging, tracking, and timing

        Raises:
            Any exception will be caught and converted to a failed result
        """
        pass

    def _conflict_result(self) -> PipelineResult:
        now = datetime.now(pytz.timezone(SEASON_TIMEZONE)).isoformat()
        return PipelineResult(
            status=ApiStatus.CONFLICT,
            message=f"{self.config.name} is already running",
            started_at=now,
            completed_at=now,
            duration_seconds=0.0,
            records_processed=0,
        )

    def _run_tracked(self) -> PipelineResult:
        # Only close a connection opened here
        opened = db.connect(reuse_if_open=True)

        try:
            ctx = PipelineContext(self.config.name)
            ctx.start_tracking()

            try:
                self.before_execute(ctx)
                self.execute(ctx)
                self.after_execute(ctx)
                return ctx.mark_success()
            except Exception as e:
                return ctx.mark_failed(e)
        finally:
            if opened and not db.is_closed():
                db.close()

    def run_sync(self) -> PipelineResult:
        """
        Run the full pipeline lifecycle synchronously.

        Called via asyncio.to_thread() from run() so that all blocking I/O
        (Peewee DB calls, HTTP requests) executes in a thread pool worker
        instead of on the async event loop.

        Returns a CONFLICT result without running when the pipeline does not
        allow concurrent runs and another run holds its lock.
        """
        if self.config.allow_concurrent:
            return self._run_tracked()

        lock = _get_run_lock(self.config.lock_key)
        if not lock.acquire(blocking=False):
            return self._conflict_result()
        try:
            return self._run_tracked()
        finally:
            lock.release()

    async def run(self) -> PipelineResult:
        """
        Run the pipeline with full lifecycle management.

        This is the public entry point. The entire pipeline execution
        (including DB and HTTP I/O) runs in a thread pool worker via
        asyncio.to_thread() to avoid blocking the event loop.

        Returns:
            PipelineResult with status, timing, records processed and the
            pipeline's result payload
        """
        return await asyncio.to_thread(self.run_sync)

    def run_for_data(self) -> dict:
        """
        Run through the locked lifecycle and return the result payload.

        Raises:
            PipelineConflictError: Another run holds the lock
            PipelineRunError: The run failed
        """
        result = self.run_sync()
        if result.status == ApiStatus.CONFLICT.value:
            raise PipelineConflictError(result.message)
        if result.status != ApiStatus.SUCCESS.value:
            raise PipelineRunError(result.error or result.message)
        return result.data or {}

    def before_execute(self, ctx: PipelineContext) -> None:
        """
        Hook called before execute().

        Override for validation or setup tasks.
        """
        pass

    def after_execute(self, ctx: PipelineContext) -> None:
        """
        Hook called after successful execute().

        Override for cleanup tasks.
        """
        pass

    @classmethod
    def get_name(cls) -> str:
        """Get the pipeline name from config."""
        return cls.config.name

    @classmethod
    def get_info(cls) -> dict:
        """Get pipeline information for listing."""
        return {
            "name": cls.config.name,
            "display_name": cls.config.display_name,
            "description": cls.config.description,
            "target_table": cls.config.target_table,
            "allow_concurrent": cls.config.allow_concurrent,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.config.name})>"
