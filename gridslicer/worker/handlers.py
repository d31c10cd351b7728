"""
RQ exception and failure handlers.

These handlers are called when a job raises. They mark the job record
failed and release the session's export lock so a new export can be started.
"""
import logging

from rq.job import Job

from gridslicer.schemas.job import JobStatus
from gridslicer.services.job_service import get_job_service

logger = logging.getLogger(__name__)

# Tasks whose first two arguments are (job_id, session_id)
TASK_PREFIX = "gridslicer.worker.tasks."
EXPORT_TASKS = {
    f"{TASK_PREFIX}export_direct_task",
    f"{TASK_PREFIX}export_preview_task",
    f"{TASK_PREFIX}export_pages_task",
}


def _describe_exception(args: tuple) -> str:
    """
    Build an error message from the arguments RQ passes to handlers.

    RQ calls exception handlers with ``(type, value, traceback)``; cleanup
    paths may pass only an exception instance or only its type.
    """
    for arg in args:
        if isinstance(arg, BaseException):
            return f"{type(arg).__name__}: {arg}"

    for arg in args:
        if isinstance(arg, type) and issubclass(arg, BaseException):
            return arg.__name__

    return "Job failed unexpectedly"


def _mark_failed(job: Job, error_msg: str) -> None:
    """
    Mark our job record failed and release the export lock if needed.

    Args:
        job: The RQ job.
        error_msg: Error message to store.
    """
    if not (job.func_name or "").startswith(TASK_PREFIX) or len(job.args) < 2:
        return

    job_id, session_id = job.args[0], job.args[1]
    try:
        job_service = get_job_service()
        job_service.update_status(job_id, JobStatus.FAILED, error=error_msg)
        if job.func_name in EXPORT_TASKS:
            job_service.release_export_lock(session_id, job_id)
        logger.info(f"Marked job {job_id} as failed: {error_msg}")
    except Exception as e:
        logger.error(f"Failed to mark job {job_id} as failed: {e}")


def handle_job_failure(job: Job, *args, **kwargs) -> bool:
    """
    Handle job failure - called when a job raises an exception or worker dies.

    Returns:
        False so RQ does not run further handlers.
    """
    error_msg = _describe_exception(args)
    logger.error(f"Job {job.id} failed: {error_msg}")
    _mark_failed(job, error_msg)
    return False
