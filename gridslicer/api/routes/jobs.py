from fastapi import APIRouter, Depends, HTTPException, status
from rq import Queue
import redis

from gridslicer.config import settings
from gridslicer.schemas.job import JobStatusResponse
from gridslicer.services.job_service import JobService, get_job_service

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def get_queue() -> Queue:
    """Get RQ queue for job submission."""
    redis_client = redis.Redis.from_url(settings.redis_url)
    return Queue(connection=redis_client)


@router.get(
    "/{job_id}",
    response_model=JobStatusResponse,
)
async def get_job_status(
    job_id: str,
    jobs: JobService = Depends(get_job_service),
):
    """
    Get the status and result of a detection or export job.

    Poll this endpoint until the job is completed or failed.
    """
    job = jobs.get_job(job_id)

    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        )

    return JobStatusResponse(
        id=job.id,
        kind=job.kind,
        session_id=job.session_id,
        status=job.status,
        created_at=job.created_at,
        updated_at=job.updated_at,
        result=job.result,
        error=job.error,
    )
