import logging
import shutil
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from gridslicer.config import settings
from gridslicer.export.errors import ImageLoadFailure
from gridslicer.grid.geometry import Axis, Side
from gridslicer.grid.session import SlicingSession
from gridslicer.schemas.session import (
    AddDividerRequest,
    EvenDividersRequest,
    ExclusionsRequest,
    MoveDividerRequest,
    OutputDirRequest,
    RegionInfo,
    SessionResponse,
    ShiftDividersRequest,
)
from gridslicer.services.image_loader import load_source
from gridslicer.services.session_service import SessionService, get_session_service
from gridslicer.utils.file_validation import (
    FileType,
    ValidationError,
    file_type_for_name,
    resolve_output_dir,
    validate_export_name,
    validate_file,
    validate_filename,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def load_session(session_id: str, sessions: SessionService) -> SlicingSession:
    """Fetch a session or raise 404."""
    session = sessions.get_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )
    return session


def checked_export_name(name: str) -> str:
    """Reject export names with a folder part (400)."""
    try:
        return validate_export_name(name)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid export name: {e}",
        )


def checked_output_dir(requested: Path) -> Path:
    """Resolve a requested export folder under the configured output directory (400 if outside)."""
    try:
        return resolve_output_dir(requested, settings.output_dir)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


def session_response(session: SlicingSession) -> SessionResponse:
    """Build the client view of a session, including computed regions."""
    grid = session.grid
    regions = [
        RegionInfo(
            ordinal=index + 1,
            row=region.row,
            column=region.column,
            x=region.rect.x,
            y=region.rect.y,
            width=region.rect.width,
            height=region.rect.height,
            excluded=grid.is_excluded(index + 1),
        )
        for index, region in enumerate(grid.compute_regions())
    ]

    return SessionResponse(
        id=session.id,
        image_name=session.image_name,
        is_document=session.is_document,
        total_pages=session.total_pages,
        current_page=session.current_page,
        can_go_next=session.can_go_next,
        can_go_previous=session.can_go_previous,
        pages_with_settings=session.pages_with_settings,
        grid=grid,
        regions=regions,
        row_count=grid.row_count,
        column_count=grid.column_count,
        region_count=len(regions),
        exportable_region_count=grid.exportable_region_count,
        excluded_region_count=grid.excluded_region_count,
        output_dir=session.output_dir,
        status=session.status_line(),
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    file: UploadFile = File(..., description="Image or PDF to slice"),
    name: str | None = Form(default=None, description="Base name for exported files"),
    sessions: SessionService = Depends(get_session_service),
):
    """
    Upload an image or PDF and start a slicing session.

    The grid starts without dividers or margins.
    """
    if name:
        checked_export_name(name)

    try:
        safe_filename = validate_filename(file.filename or "")
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid filename: {e}",
        )

    expected_type = file_type_for_name(safe_filename)
    if expected_type == FileType.UNKNOWN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please upload an image or PDF file",
        )

    try:
        validate_file(file.file, expected_type=expected_type, max_size_mb=settings.max_upload_mb)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {expected_type.value} file: {e}",
        )

    session_id = str(uuid.uuid4())
    settings.uploads_dir.mkdir(parents=True, exist_ok=True)
    source_path = settings.uploads_dir / f"{session_id}{Path(safe_filename).suffix.lower()}"

    file.file.seek(0)
    with open(source_path, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    try:
        source = load_source(source_path)
    except ImageLoadFailure as e:
        source_path.unlink(missing_ok=True)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    session = sessions.create_session(
        source,
        image_name=name if name is not None else Path(safe_filename).stem,
        session_id=session_id,
    )
    return session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
):
    """Get the grid, computed regions and page state of a session."""
    return session_response(load_session(session_id, sessions))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
):
    """Delete a session and its uploaded source."""
    session = load_session(session_id, sessions)
    sessions.delete_session(session_id)
    Path(session.source_path).unlink(missing_ok=True)


@router.put("/{session_id}/output", response_model=SessionResponse)
async def set_output_dir(
    session_id: str,
    request: OutputDirRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """Choose where exports of this session are written."""
    session = load_session(session_id, sessions)
    session.output_dir = checked_output_dir(request.output_dir)
    return session_response(sessions.save_session(session))


@router.post("/{session_id}/dividers", response_model=SessionResponse)
async def add_divider(
    session_id: str,
    request: AddDividerRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """
    Add a divider.

    Without a position the divider is placed in the middle of the widest gap.
    """
    session = load_session(session_id, sessions)
    session.grid.add_divider(request.axis, request.position)
    return session_response(sessions.save_session(session))


@router.put("/{session_id}/dividers/{axis}/{index}", response_model=SessionResponse)
async def move_divider(
    session_id: str,
    axis: Axis,
    index: int,
    request: MoveDividerRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """Move a divider to a new position."""
    session = load_session(session_id, sessions)
    session.grid.move_divider(axis, index, request.position)
    return session_response(sessions.save_session(session))


@router.delete("/{session_id}/dividers/{axis}/{index}", response_model=SessionResponse)
async def remove_divider(
    session_id: str,
    axis: Axis,
    index: int,
    sessions: SessionService = Depends(get_session_service),
):
    """Remove a divider. Unknown indexes are ignored."""
    session = load_session(session_id, sessions)
    session.grid.remove_divider(axis, index)
    return session_response(sessions.save_session(session))


@router.post("/{session_id}/dividers/{axis}/shift", response_model=SessionResponse)
async def shift_dividers(
    session_id: str,
    axis: Axis,
    request: ShiftDividersRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """Move every divider on an axis by the same amount."""
    session = load_session(session_id, sessions)
    session.grid.move_all_on_axis(axis, request.delta)
    return session_response(sessions.save_session(session))


@router.post("/{session_id}/dividers/{axis}/even", response_model=SessionResponse)
async def even_dividers(
    session_id: str,
    axis: Axis,
    request: EvenDividersRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """Replace the dividers on an axis with evenly spaced ones."""
    session = load_session(session_id, sessions)
    session.grid.create_even_dividers(axis, request.count)
    return session_response(sessions.save_session(session))


@router.put("/{session_id}/exclusions", response_model=SessionResponse)
async def set_exclusions(
    session_id: str,
    request: ExclusionsRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """Set exclusion margins. Each value is clamped to [0, 0.4]."""
    session = load_session(session_id, sessions)
    for side in Side:
        value = getattr(request, side.value)
        if value is not None:
            session.grid.set_exclusion(side, value)
    return session_response(sessions.save_session(session))


@router.delete("/{session_id}/exclusions", response_model=SessionResponse)
async def reset_exclusions(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
):
    """Zero all exclusion margins."""
    session = load_session(session_id, sessions)
    session.grid.reset_exclusions()
    return session_response(sessions.save_session(session))


@router.post("/{session_id}/regions/{ordinal}/toggle", response_model=SessionResponse)
async def toggle_region(
    session_id: str,
    ordinal: int,
    sessions: SessionService = Depends(get_session_service),
):
    """
    Include or exclude a region from export.

    The ordinal is the region's current 1-based position; it is not
    remapped when the grid changes later.
    """
    session = load_session(session_id, sessions)
    if ordinal < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Region ordinals start at 1",
        )
    session.grid.toggle_exclusion(ordinal)
    return session_response(sessions.save_session(session))


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_grid(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
):
    """Remove all dividers and clear excluded regions."""
    session = load_session(session_id, sessions)
    session.reset_grid()
    return session_response(sessions.save_session(session))


@router.post("/{session_id}/pages/copy-to-all", response_model=SessionResponse)
async def copy_to_all_pages(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
):
    """Apply the current page's grid to every page of the document."""
    session = load_session(session_id, sessions)
    if not session.is_document:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No PDF loaded",
        )
    count = session.copy_settings_to_all_pages()
    logger.info(f"Copied settings to all {count} pages of session {session_id}")
    return session_response(sessions.save_session(session))


@router.post("/{session_id}/pages/{page_index}", response_model=SessionResponse)
async def go_to_page(
    session_id: str,
    page_index: int,
    sessions: SessionService = Depends(get_session_service),
):
    """
    Switch to another page (0-based).

    The current grid is saved for the page being left; a page without saved
    settings inherits them from the first page.
    """
    session = load_session(session_id, sessions)
    if not session.go_to_page(page_index):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Page {page_index} is not available",
        )
    return session_response(sessions.save_session(session))
