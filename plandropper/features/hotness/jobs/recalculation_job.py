"""
Hotness recalculation job.

Periodically sweeps every active plan so scores keep decaying even when a
plan receives no new views. Runs inside the worker process, which owns its
own database pool and Redis client for the lifetime of the run.
"""

import asyncio
from datetime import UTC, datetime

from plandropper.config import settings
from plandropper.db.pool import DatabasePoolManager
from plandropper.features.hotness.api.dependencies import build_scoring_service
from plandropper.features.hotness.domain.errors import HotnessError
from plandropper.features.hotness.pipeline.scoring.service import HotnessScoringService
from plandropper.infrastructure.observability.logging import get_logger
from plandropper.services.redis_client import RedisClient

logger = get_logger(__name__)

ERROR_RETRY_SECONDS = 60


class HotnessRecalculationJob:
    def __init__(self, scoring_service: HotnessScoringService):
        self._scoring = scoring_service
        self.is_running = False
        self.last_run_time: datetime | None = None

    async def run_once(self) -> dict:
        """
        Run a single sweep.

        Returns:
            Dict: sweep counters and duration, or a skip marker

        Raises:
            HotnessError: if the plan list itself could not be loaded
        """
        if self.is_running:
            logger.warning("Hotness recalculation already running, skipping this iteration")
            return {"skipped": True, "reason": "already_running"}

        self.is_running = True
        started = datetime.now(UTC)
        try:
            result = await self._scoring.recompute_all()
        finally:
            self.is_running = False

        self.last_run_time = datetime.now(UTC)
        metrics = {
            "job_run": "hotness_recalculation",
            "start_time": started.isoformat(),
            "total_duration_seconds": round((self.last_run_time - started).total_seconds(), 2),
            "processed": result.processed,
            "updated": result.updated,
            "failed": result.failed,
        }
        logger.info("Hotness recalculation job completed", **metrics)
        return metrics

    async def run_forever(self, interval_minutes: int | None = None) -> None:
        interval = interval_minutes or settings.HOTNESS_RECALC_INTERVAL_MINUTES
        logger.info("Hotness recalculation scheduler started", interval_minutes=interval)

        while True:
            try:
                await self.run_once()
                await asyncio.sleep(interval * 60)
            except HotnessError as e:
                logger.error("Hotness recalculation job failed", error=e.message, code=e.code)
                await asyncio.sleep(ERROR_RETRY_SECONDS)
            except Exception as e:
                logger.error(
                    "Error in hotness recalculation scheduler",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await asyncio.sleep(ERROR_RETRY_SECONDS)


async def _with_job(run) -> None:
    db = DatabasePoolManager.from_settings(application_name="plandropper-worker")
    redis = RedisClient.from_settings()
    await db.initialize()
    try:
        try:
            await redis.initialize()
        except RuntimeError:
            # Scores still get written; feed caches just age out on TTL.
            logger.warning("Redis unavailable, cache invalidation disabled for this run")
        await run(HotnessRecalculationJob(build_scoring_service(db, redis)))
    finally:
        await redis.close()
        await db.close()


async def start_hotness_recalculation_scheduler() -> None:
    """Entry point for the long-running worker."""

    async def run(job: HotnessRecalculationJob) -> None:
        await job.run_forever()

    await _with_job(run)


async def run_hotness_recalculation_once() -> None:
    """Entry point for a one-shot sweep (cron, manual ops)."""

    async def run(job: HotnessRecalculationJob) -> None:
        await job.run_once()

    await _with_job(run)


if __name__ == "__main__":
    asyncio.run(run_hotness_recalculation_once())
