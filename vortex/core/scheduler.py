"""
APScheduler integration for FastAPI.

Runs the hourly digest pass in-process, as an alternative to an external
cron hitting GET /api/digest/cron. Disabled unless SCHEDULER_ENABLED is set,
so a deployment never gets both triggers.

Jobs:
- Digest hourly: Generates and sends digests for users due this UTC hour
  (top of every hour)
"""

from datetime import datetime
from typing import Any

from apscheduler import AsyncScheduler, ConflictPolicy, JobOutcome, JobReleased
from apscheduler.datastores.memory import MemoryDataStore
from apscheduler.triggers.cron import CronTrigger

from vortex.config import get_settings
from vortex.core.datetime_utils import utc_now
from vortex.core.logging import get_logger

logger = get_logger(__name__)

DIGEST_JOB_ID = "digest_hourly"

# Global scheduler instance
scheduler: AsyncScheduler | None = None


async def digest_job() -> None:
    """Hourly digest job - runs the scheduler pass for the current UTC hour."""
    from vortex.services.digest_scheduler import get_orchestrator

    current_hour = utc_now().hour
    logger.bind(utc_hour=current_hour).info("scheduled_digest_job_started")
    try:
        result = await get_orchestrator().run_for_hour(current_hour)
        logger.bind(**result.model_dump()).info("scheduled_digest_job_completed")
    except Exception as e:
        logger.bind(error=str(e)).error("scheduled_digest_job_failed")
        raise  # Re-raise so APScheduler records the failure


async def _record_job_result(
    job_id: str,
    scheduled_at: datetime,
    started_at: datetime,
    outcome: JobOutcome,
    error: str | None = None,
) -> None:
    """Record job execution result to database."""
    from vortex.core.database import AsyncSessionLocal
    from vortex.models.job_run import JobRun

    async with AsyncSessionLocal() as db:
        job_run = JobRun(
            job_id=job_id,
            scheduled_at=scheduled_at,
            started_at=started_at,
            finished_at=utc_now(),
            outcome=outcome.name,
            error=error,
        )
        db.add(job_run)
        await db.commit()


async def start_scheduler() -> AsyncScheduler | None:
    """Initialize and start the in-process scheduler."""
    global scheduler

    settings = get_settings()
    if not settings.scheduler_enabled:
        logger.info("scheduler_disabled_by_config")
        return None

    # Schedules are re-registered on every start, so nothing needs persisting
    scheduler = AsyncScheduler(data_store=MemoryDataStore())

    # Start the scheduler first (required before calling other methods in APScheduler 4.x)
    await scheduler.__aenter__()

    # Job history lives next to digest history, so only with the database backend
    if settings.storage_backend == "database":
        scheduler.subscribe(_on_job_completed)

    await scheduler.add_schedule(
        digest_job,
        CronTrigger(minute=0),
        id=DIGEST_JOB_ID,
        conflict_policy=ConflictPolicy.replace,
    )

    # Start the scheduler's background worker to actually process jobs
    await scheduler.start_in_background()

    logger.bind(jobs=[DIGEST_JOB_ID]).info("scheduler_started")

    return scheduler


async def _on_job_completed(event: Any) -> None:
    """Handle job completion events."""
    if isinstance(event, JobReleased):
        try:
            scheduled_at = getattr(event, "scheduled_fire_time", None) or utc_now()
            started_at = getattr(event, "started_at", None) or utc_now()
            exception = getattr(event, "exception", None)
            await _record_job_result(
                job_id=event.schedule_id or "unknown",
                scheduled_at=scheduled_at,
                started_at=started_at,
                outcome=event.outcome,
                error=str(exception) if event.outcome == JobOutcome.error and exception else None,
            )
        except Exception as e:
            logger.bind(error=str(e)).error("failed_to_record_job_result")


async def stop_scheduler() -> None:
    """Gracefully stop the scheduler."""
    global scheduler
    if scheduler:
        await scheduler.__aexit__(None, None, None)
        logger.info("scheduler_stopped")
        scheduler = None


async def get_job_schedules() -> list[dict[str, Any]]:
    """Get all registered job schedules."""
    if not scheduler:
        return []

    schedules = await scheduler.get_schedules()
    return [
        {
            "id": s.id,
            "task_id": s.task_id,
            "trigger": str(s.trigger),
            "next_fire_time": s.next_fire_time.isoformat() if s.next_fire_time else None,
            "last_fire_time": s.last_fire_time.isoformat() if s.last_fire_time else None,
        }
        for s in schedules
    ]
