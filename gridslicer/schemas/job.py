from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    """Status of a background job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class JobKind(str, Enum):
    """Kind of work a background job performs."""

    DETECT = "detect"
    EXPORT_DIRECT = "export_direct"
    EXPORT_PREVIEW = "export_preview"
    EXPORT_PAGES = "export_pages"

    @property
    def is_export(self) -> bool:
        return self != JobKind.DETECT


class JobResult(BaseModel):
    """Result of a finished job."""

    message: str = ""
    exported_count: int = 0
    metadata: dict = Field(default_factory=dict)


class Job(BaseModel):
    """Background job with status and result."""

    id: str
    kind: JobKind
    session_id: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    result: JobResult | None = None
    error: str | None = None


class JobStatusResponse(BaseModel):
    """Response for job status endpoint."""

    id: str
    kind: JobKind
    session_id: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    result: JobResult | None = None
    error: str | None = None


class JobSubmitResponse(BaseModel):
    """Response after queueing a background job."""

    job_id: str = Field(description="Unique identifier for the job")
    message: str = Field(default="Job submitted for processing")
