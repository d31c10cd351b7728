import logging

from fastapi import APIRouter, Depends, status
from rq import Queue

from gridslicer.api.routes.jobs import get_queue
from gridslicer.api.routes.sessions import load_session
from gridslicer.config import settings
from gridslicer.schemas.job import JobKind, JobSubmitResponse
from gridslicer.schemas.session import DetectRequest
from gridslicer.services.job_service import JobService, get_job_service
from gridslicer.services.session_service import SessionService, get_session_service
from gridslicer.worker.tasks import detect_borders_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Detection"])


@router.post(
    "/{session_id}/detect",
    response_model=JobSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def detect_borders(
    session_id: str,
    request: DetectRequest | None = None,
    sessions: SessionService = Depends(get_session_service),
    jobs: JobService = Depends(get_job_service),
    queue: Queue = Depends(get_queue),
):
    """
    Detect grid lines on the current page.

    Detected dividers replace the current page's dividers when the job
    completes. Margins and excluded regions are left alone. Without a
    column or row count the configured line limit and spacing apply.
    """
    session = load_session(session_id, sessions)

    columns = request.columns if request is not None else None
    rows = request.rows if request is not None else None

    job = jobs.create_job(JobKind.DETECT, session.id)
    queue.enqueue(
        detect_borders_task,
        job.id,
        session.id,
        columns,
        rows,
        job_timeout=settings.job_timeout,
    )
    logger.info(f"Queued border detection {job.id} for session {session.id} (grid: {columns or '-'}x{rows or '-'})")

    return JobSubmitResponse(
        job_id=job.id,
        message=f"Detecting borders on page {session.current_page + 1}",
    )
