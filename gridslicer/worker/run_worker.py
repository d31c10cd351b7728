"""
RQ worker entry point.

Fails jobs left in "processing" by a previous crash, then starts the worker.
"""
import logging

from redis import Redis
from rq import Worker

from gridslicer.config import settings
from gridslicer.services.job_service import get_job_service
from gridslicer.worker.handlers import handle_job_failure

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def cleanup_stale_jobs() -> None:
    """Clean up any jobs stuck in processing from previous runs."""
    logger.info("Checking for stale processing jobs...")
    cleaned = get_job_service().cleanup_stale_processing_jobs()

    if cleaned:
        logger.info(f"Cleaned up stale jobs: {cleaned}")
    else:
        logger.info("No stale processing jobs found")


def main():
    """Run the RQ worker."""
    cleanup_stale_jobs()

    redis_conn = Redis.from_url(settings.redis_url)

    worker = Worker(
        queues=["default"],
        connection=redis_conn,
        exception_handlers=[handle_job_failure],
    )

    worker.work()


if __name__ == "__main__":
    main()
