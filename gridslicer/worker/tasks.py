"""
RQ tasks for long-running work: border detection and exports.

Export tasks receive a snapshot of the grid taken when the request was
made, so later edits to the session do not affect a running export.
"""

import logging
from pathlib import Path

from gridslicer.config import settings
from gridslicer.detection import BorderDetector, DetectionConfig
from gridslicer.export import (
    ExportPreview,
    GridSlicerError,
    export_plan,
    export_regions,
)
from gridslicer.grid.geometry import Axis, GridGeometry
from gridslicer.schemas.job import JobStatus
from gridslicer.services.image_loader import load_source
from gridslicer.services.job_service import get_job_service
from gridslicer.services.session_service import get_session_service

logger = logging.getLogger(__name__)


def _fail(job_id: str, error_msg: str) -> dict:
    get_job_service().update_status(job_id, JobStatus.FAILED, error=error_msg)
    return {"error": error_msg}


def detect_borders_task(
    job_id: str,
    session_id: str,
    columns: int | None = None,
    rows: int | None = None,
) -> dict:
    """
    Detect grid lines on the session's current page and apply them.

    Without an expected grid size the configured line limit and spacing
    are used.

    Args:
        job_id: The job identifier.
        session_id: Session to update.
        columns: Expected number of columns, or None.
        rows: Expected number of rows, or None.

    Returns:
        Dictionary with job result or error.
    """
    job_service = get_job_service()
    session_service = get_session_service()

    job = job_service.update_status(job_id, JobStatus.PROCESSING)
    if job is None:
        logger.error(f"Job not found: {job_id}")
        return {"error": "Job not found"}

    session = session_service.get_session(session_id)
    if session is None:
        return _fail(job_id, f"Session not found: {session_id}")

    page_index = session.current_page

    try:
        source = load_source(session.source_path)
        image = source.render_page(page_index)

        detection = settings.detection
        if columns is None and rows is None:
            config = DetectionConfig(
                max_lines=detection.max_lines,
                min_spacing=detection.min_spacing,
                edge_margin=detection.edge_margin,
            )
        else:
            config = DetectionConfig.for_grid(
                columns or detection.expected_columns,
                rows or detection.expected_rows,
                edge_margin=detection.edge_margin,
            )
        result = BorderDetector(config).detect(image)

        # Apply to the latest session state, the user may have edited meanwhile
        session = session_service.get_session(session_id)
        if session is None:
            return _fail(job_id, f"Session not found: {session_id}")
        if session.current_page != page_index:
            return _fail(job_id, "Page changed while detection was running")

        session.grid.set_dividers(Axis.VERTICAL, result.vertical)
        session.grid.set_dividers(Axis.HORIZONTAL, result.horizontal)
        session_service.save_session(session)

        job_service.set_result(
            job_id,
            message=result.status_message,
            metadata={
                "vertical": result.vertical,
                "horizontal": result.horizontal,
                "page": page_index + 1,
            },
        )
        logger.info(f"Border detection finished for session {session_id}: {result.status_message}")

        return {"job_id": job_id, "status": "completed", "lines": result.total_lines}

    except GridSlicerError as e:
        logger.error(f"Border detection failed for job {job_id}: {e}")
        return _fail(job_id, str(e))

    except Exception as e:
        logger.exception(f"Border detection failed for job {job_id}")
        return _fail(job_id, f"Unexpected error: {str(e)}")


def export_direct_task(
    job_id: str,
    session_id: str,
    source_path: str,
    page_index: int,
    grid_data: dict,
    base_name: str,
    output_dir: str,
) -> dict:
    """
    Export all exportable regions with row/column filenames.

    Stops at the first failing region.

    Args:
        job_id: The job identifier.
        session_id: Session whose export lock is held.
        source_path: Image or PDF to crop from.
        page_index: Page to render (0 for images).
        grid_data: Grid snapshot (``GridGeometry.model_dump()``).
        base_name: Base filename.
        output_dir: Destination directory.

    Returns:
        Dictionary with job result or error.
    """
    job_service = get_job_service()

    try:
        job = job_service.update_status(job_id, JobStatus.PROCESSING)
        if job is None:
            logger.error(f"Job not found: {job_id}")
            return {"error": "Job not found"}

        grid = GridGeometry.model_validate(grid_data)
        image = load_source(Path(source_path)).render_page(page_index)

        count = export_regions(image, grid.exportable_regions(), Path(output_dir), base_name)

        message = f"Successfully exported {count} images"
        job_service.set_result(job_id, message=message, exported_count=count)
        return {"job_id": job_id, "status": "completed", "exported": count}

    except GridSlicerError as e:
        logger.error(f"Direct export failed for job {job_id}: {e}")
        return _fail(job_id, str(e))

    except Exception as e:
        logger.exception(f"Direct export failed for job {job_id}")
        return _fail(job_id, f"Unexpected error: {str(e)}")

    finally:
        job_service.release_export_lock(session_id, job_id)


def export_preview_task(
    job_id: str,
    session_id: str,
    source_path: str,
    page_index: int,
    grid_data: dict,
    base_name: str,
    items: list[dict],
    output_dir: str,
) -> dict:
    """
    Export preview items under their chosen names.

    Items that fail are skipped; the result reports how many were written.

    Args:
        job_id: The job identifier.
        session_id: Session whose export lock is held.
        source_path: Image or PDF to crop from.
        page_index: Page to render (0 for images).
        grid_data: Grid snapshot (``GridGeometry.model_dump()``).
        base_name: Base filename for default names.
        items: ``{"index", "filename", "selected"}`` per exportable region.
        output_dir: Destination directory.

    Returns:
        Dictionary with job result or error.
    """
    job_service = get_job_service()

    try:
        job = job_service.update_status(job_id, JobStatus.PROCESSING)
        if job is None:
            logger.error(f"Job not found: {job_id}")
            return {"error": "Job not found"}

        grid = GridGeometry.model_validate(grid_data)
        preview = ExportPreview(grid.exportable_regions(), base_name)

        for item in items:
            index = item["index"]
            if not 0 <= index < len(preview.items):
                logger.warning(f"Ignoring preview item {index}, grid has {len(preview.items)} regions")
                continue
            preview.rename(index, item["filename"])
            preview.set_selected(index, item.get("selected", True))

        # Regions not mentioned in the request are not exported
        mentioned = {item["index"] for item in items}
        for index in range(len(preview.items)):
            if index not in mentioned:
                preview.set_selected(index, False)

        image = load_source(Path(source_path)).render_page(page_index)
        count = export_plan(image, preview.to_plan(Path(output_dir)))

        message = f"Exported {count} files to {Path(output_dir).name}"
        job_service.set_result(
            job_id,
            message=message,
            exported_count=count,
            metadata={"requested": preview.selected_count},
        )
        return {"job_id": job_id, "status": "completed", "exported": count}

    except GridSlicerError as e:
        logger.error(f"Preview export failed for job {job_id}: {e}")
        return _fail(job_id, str(e))

    except Exception as e:
        logger.exception(f"Preview export failed for job {job_id}")
        return _fail(job_id, f"Unexpected error: {str(e)}")

    finally:
        job_service.release_export_lock(session_id, job_id)


def export_pages_task(
    job_id: str,
    session_id: str,
    source_path: str,
    page_grids: list[dict],
    base_name: str,
    output_dir: str,
) -> dict:
    """
    Export every page of a document with its own grid.

    Pages without regions are skipped. A failing page is recorded and the
    remaining pages are still exported.

    Args:
        job_id: The job identifier.
        session_id: Session whose export lock is held.
        source_path: PDF to render.
        page_grids: One grid snapshot per page, in page order.
        base_name: Base filename; pages use ``{base}_page{n}``.
        output_dir: Destination directory.

    Returns:
        Dictionary with job result or error.
    """
    job_service = get_job_service()

    try:
        job = job_service.update_status(job_id, JobStatus.PROCESSING)
        if job is None:
            logger.error(f"Job not found: {job_id}")
            return {"error": "Job not found"}

        source = load_source(Path(source_path))
        total_pages = source.page_count
        total_exported = 0
        failed_pages: list[int] = []

        for page_index in range(total_pages):
            grid_data = page_grids[page_index] if page_index < len(page_grids) else page_grids[-1]
            regions = GridGeometry.model_validate(grid_data).exportable_regions()
            if not regions:
                continue

            try:
                image = source.render_page(page_index)
                total_exported += export_regions(
                    image,
                    regions,
                    Path(output_dir),
                    f"{base_name}_page{page_index + 1}",
                )
            except GridSlicerError as e:
                logger.warning(f"Page {page_index + 1} export failed: {e}")
                failed_pages.append(page_index + 1)

            logger.info(f"Exporting page {page_index + 1}/{total_pages}...")

        if failed_pages:
            message = (
                f"Exported {total_exported} images. "
                f"Failed pages: {', '.join(str(p) for p in failed_pages)}"
            )
        else:
            message = f"Exported {total_exported} images from {total_pages} pages"

        job_service.set_result(
            job_id,
            message=message,
            exported_count=total_exported,
            metadata={"failed_pages": failed_pages, "total_pages": total_pages},
        )
        return {"job_id": job_id, "status": "completed", "exported": total_exported}

    except GridSlicerError as e:
        logger.error(f"Page export failed for job {job_id}: {e}")
        return _fail(job_id, str(e))

    except Exception as e:
        logger.exception(f"Page export failed for job {job_id}")
        return _fail(job_id, f"Unexpected error: {str(e)}")

    finally:
        job_service.release_export_lock(session_id, job_id)
