"""
Startup Bootstrap

Runs an initial schedule sync when the API process starts so a fresh
deployment has teams and games without waiting for the first cron
trigger. Attempts are retried with a doubling delay; the outcome is
recorded on the BootstrapTracker.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryError,
    stop_after_attempt,
    wait_exponential,
)

from core.job_manager import BootstrapTracker, get_bootstrap_tracker
from core.logging import get_logger
from core.settings import settings
from pipelines.base import BasePipeline
from pipelines.schedule_sync import ScheduleSyncPipeline
from schemas.common import ApiStatus

log = get_logger("bootstrap")


class BootstrapAttemptError(Exception):
    """A bootstrap attempt finished without a successful sync."""
    pass


async def run_bootstrap(
    tracker: Optional[BootstrapTracker] = None,
    pipeline_factory: Callable[[], BasePipeline] = ScheduleSyncPipeline.for_days,
    max_attempts: Optional[int] = None,
    retry_delay: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """
    Run the bootstrap sync with retries.

    Returns:
        True on success, False when every attempt failed or another
        bootstrap was already running
    """
    tracker = tracker or get_bootstrap_tracker()
    max_attempts = max_attempts or settings.bootstrap_max_attempts
    retry_delay = settings.bootstrap_retry_delay if retry_delay is None else retry_delay

    if not tracker.mark_started():
        log.warning("bootstrap_already_running")
        return False

    def _log_retry(retry_state) -> None:
        log.warning(
            "bootstrap_attempt_failed",
            attempt=retry_state.attempt_number,
            max_attempts=max_attempts,
            error=str(retry_state.outcome.exception()),
        )

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=retry_delay, exp_base=2),
            before_sleep=_log_retry,
            sleep=sleep,
        ):
            with attempt:
                result = await pipeline_factory().run()
                if result.status != ApiStatus.SUCCESS.value:
                    raise BootstrapAttemptError(result.error or result.message)
    except RetryError as e:
        tracker.mark_failed(str(e.last_attempt.exception()))
        return False

    tracker.mark_succeeded(result.data or {})
    return True
