"""
Hourly digest job.

Run with: python -m vortex.jobs.hourly
Replay:   python -m vortex.jobs.hourly --hour 1

This job:
1. Selects users whose digest is enabled, who have a push token, and whose
   cached UTC hour matches
2. Generates a grounded digest for each one
3. Saves it to history and sends a push notification

Running the same hour twice sends duplicate digests unless
digest.skip_if_sent_today is set in config.yml.
"""

import argparse
import asyncio

from vortex.core.datetime_utils import utc_now
from vortex.core.logging import get_logger, setup_logging
from vortex.schemas.digest import DigestRunResult
from vortex.services.digest_scheduler import get_orchestrator

logger = get_logger(__name__)


async def main(hour: int | None = None) -> DigestRunResult:
    """Run the hourly digest job for the given (or current) UTC hour."""
    setup_logging()
    current_hour = utc_now().hour if hour is None else hour
    logger.bind(utc_hour=current_hour).info("hourly_job_started")

    orchestrator = get_orchestrator()
    try:
        result = await orchestrator.run_for_hour(current_hour)
        logger.bind(**result.model_dump()).info("hourly_job_completed")
        return result
    except Exception as e:
        logger.bind(error=str(e)).error("hourly_job_failed")
        raise
    finally:
        await orchestrator.store.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the hourly digest job")
    parser.add_argument("--hour", type=int, default=None, help="UTC hour to run (0-23)")
    args = parser.parse_args()
    asyncio.run(main(hour=args.hour))
