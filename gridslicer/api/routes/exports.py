import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status
from rq import Queue

from gridslicer.api.routes.jobs import get_queue
from gridslicer.api.routes.sessions import checked_export_name, checked_output_dir, load_session
from gridslicer.config import settings
from gridslicer.export import ExportInProgressError, ExportPreview, NoRegionsError
from gridslicer.grid.session import SlicingSession
from gridslicer.naming import sequence
from gridslicer.schemas.export import (
    BaseNameRequest,
    BaseNameResponse,
    DirectExportRequest,
    PreviewExportRequest,
    PreviewItem,
    PreviewResponse,
)
from gridslicer.schemas.job import JobKind, JobSubmitResponse
from gridslicer.services.job_service import JobService, get_job_service
from gridslicer.services.session_service import SessionService, get_session_service
from gridslicer.worker.tasks import export_direct_task, export_pages_task, export_preview_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Export"])


def default_base_name(session: SlicingSession) -> str:
    """Base filename for a session: its image name, else a generic one."""
    if session.image_name:
        return session.image_name
    if session.is_document:
        return settings.export.pdf_base_name
    return settings.export.default_base_name


def _require_regions(session: SlicingSession) -> None:
    if session.grid.exportable_region_count == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(NoRegionsError()),
        )


def _resolve_output_dir(
    session: SlicingSession,
    requested: Path | None,
    sessions: SessionService,
) -> Path:
    """Use the requested directory (remembering it) or the session's."""
    if requested is not None:
        session.output_dir = checked_output_dir(requested)
        sessions.save_session(session)
    if session.output_dir is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No output folder selected",
        )
    return session.output_dir


def _enqueue_export(
    kind: JobKind,
    session: SlicingSession,
    jobs: JobService,
    queue: Queue,
    func,
    *args,
    job_timeout: int | None = None,
) -> JobSubmitResponse:
    """
    Create an export job, take the session's export lock and queue the task.

    The task receives ``(job_id, session_id, *args)`` and releases the lock
    when it finishes.
    """
    job = jobs.create_job(kind, session.id)

    try:
        jobs.acquire_export_lock(session.id, job.id)
    except ExportInProgressError as e:
        jobs.delete_job(job.id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    try:
        queue.enqueue(
            func,
            job.id,
            session.id,
            *args,
            job_timeout=job_timeout or settings.job_timeout,
        )
    except Exception as e:
        jobs.release_export_lock(session.id, job.id)
        jobs.delete_job(job.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to queue export: {e}",
        )

    logger.info(f"Queued {kind.value} job {job.id} for session {session.id}")
    return JobSubmitResponse(job_id=job.id, message="Export submitted for processing")


@router.get("/{session_id}/export/preview", response_model=PreviewResponse)
async def get_export_preview(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
):
    """
    List the regions that would be exported from the current page.

    Each item gets a sequential default name ``base-1, base-2, ...``.
    """
    session = load_session(session_id, sessions)
    _require_regions(session)

    preview = ExportPreview(session.grid.exportable_regions(), default_base_name(session))
    return PreviewResponse(
        base_filename=preview.base_filename,
        items=[
            PreviewItem(
                index=index,
                row=item.region.row,
                column=item.region.column,
                filename=item.filename,
                selected=item.selected,
            )
            for index, item in enumerate(preview.items)
        ],
    )


@router.post("/{session_id}/export/preview/base-name", response_model=BaseNameResponse)
async def apply_base_name(
    session_id: str,
    request: BaseNameRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """
    Generate one filename per exportable region from a base name.

    ``Card-A`` gives ``Card-A, Card-B, ...`` and ``img_07`` gives
    ``img_07, img_08, ...``.
    """
    session = load_session(session_id, sessions)
    checked_export_name(request.base_name)
    return BaseNameResponse(
        names=sequence(request.base_name, session.grid.exportable_region_count)
    )


@router.post(
    "/{session_id}/export",
    response_model=JobSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def export_preview(
    session_id: str,
    request: PreviewExportRequest,
    sessions: SessionService = Depends(get_session_service),
    jobs: JobService = Depends(get_job_service),
    queue: Queue = Depends(get_queue),
):
    """
    Export preview items under their chosen names.

    Only selected items are written. Failing items are skipped and the job
    result reports how many files were exported.
    """
    session = load_session(session_id, sessions)
    _require_regions(session)

    if not any(item.selected for item in request.items):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No items selected for export",
        )
    for item in request.items:
        if item.selected:
            checked_export_name(item.filename)

    output_dir = _resolve_output_dir(session, request.output_dir, sessions)

    return _enqueue_export(
        JobKind.EXPORT_PREVIEW,
        session,
        jobs,
        queue,
        export_preview_task,
        str(session.source_path),
        session.current_page,
        session.grid.snapshot().model_dump(mode="json"),
        default_base_name(session),
        [item.model_dump() for item in request.items],
        str(output_dir),
    )


@router.post(
    "/{session_id}/export/direct",
    response_model=JobSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def export_direct(
    session_id: str,
    request: DirectExportRequest | None = None,
    sessions: SessionService = Depends(get_session_service),
    jobs: JobService = Depends(get_job_service),
    queue: Queue = Depends(get_queue),
):
    """
    Export every exportable region of the current page.

    Files are named ``{base}_row{r}_col{c}.png``. The export stops at the
    first region that fails.
    """
    request = request or DirectExportRequest()
    session = load_session(session_id, sessions)
    if request.base_name:
        checked_export_name(request.base_name)
    _require_regions(session)

    output_dir = _resolve_output_dir(session, request.output_dir, sessions)

    return _enqueue_export(
        JobKind.EXPORT_DIRECT,
        session,
        jobs,
        queue,
        export_direct_task,
        str(session.source_path),
        session.current_page,
        session.grid.snapshot().model_dump(mode="json"),
        request.base_name or default_base_name(session),
        str(output_dir),
    )


@router.post(
    "/{session_id}/export/pages",
    response_model=JobSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def export_all_pages(
    session_id: str,
    request: DirectExportRequest | None = None,
    sessions: SessionService = Depends(get_session_service),
    jobs: JobService = Depends(get_job_service),
    queue: Queue = Depends(get_queue),
):
    """
    Export every page of a PDF using each page's own grid.

    Pages without saved settings use the current grid. Files are named
    ``{base}_page{n}_row{r}_col{c}.png``; a failing page is reported and
    the other pages are still exported.
    """
    request = request or DirectExportRequest()
    session = load_session(session_id, sessions)
    if request.base_name:
        checked_export_name(request.base_name)
    if not session.is_document:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No PDF loaded",
        )

    page_grids = [session.page_grid_for_export(page) for page in range(session.total_pages)]
    if not any(grid.exportable_region_count for grid in page_grids):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(NoRegionsError()),
        )

    output_dir = _resolve_output_dir(session, request.output_dir, sessions)

    return _enqueue_export(
        JobKind.EXPORT_PAGES,
        session,
        jobs,
        queue,
        export_pages_task,
        str(session.source_path),
        [grid.model_dump(mode="json") for grid in page_grids],
        request.base_name or default_base_name(session),
        str(output_dir),
        job_timeout=settings.job_timeout * session.total_pages,
    )
