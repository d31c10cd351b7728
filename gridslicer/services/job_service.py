import logging
import uuid
from datetime import datetime

import redis

from gridslicer.config import settings
from gridslicer.export.errors import ExportInProgressError
from gridslicer.schemas.job import Job, JobKind, JobResult, JobStatus

logger = logging.getLogger(__name__)

# Jobs stuck in "processing" for longer than this are considered stale
STALE_PROCESSING_THRESHOLD_SECONDS = 900  # 15 minutes


class JobService:
    """
    Service for managing background jobs in Redis.

    Handles job creation, status updates, result storage and the per-session
    export lock that keeps two exports of one session from running at once.
    """

    JOB_PREFIX = "gridslicer:job:"
    EXPORT_LOCK_PREFIX = "gridslicer:export-lock:"

    def __init__(self, redis_client: redis.Redis | None = None):
        """
        Initialize the job service.

        Args:
            redis_client: Redis client instance. Creates one if not provided.
        """
        self.redis = redis_client or redis.Redis.from_url(settings.redis_url)

    def _job_key(self, job_id: str) -> str:
        """Generate Redis key for a job."""
        return f"{self.JOB_PREFIX}{job_id}"

    def _lock_key(self, session_id: str) -> str:
        """Generate Redis key for a session's export lock."""
        return f"{self.EXPORT_LOCK_PREFIX}{session_id}"

    def _save(self, job: Job) -> None:
        self.redis.setex(
            self._job_key(job.id),
            settings.job_result_ttl,
            job.model_dump_json(),
        )

    def create_job(self, kind: JobKind, session_id: str) -> Job:
        """
        Create a new job.

        Args:
            kind: What the job does.
            session_id: Session the job works on.

        Returns:
            The created job.
        """
        now = datetime.utcnow()
        job = Job(
            id=str(uuid.uuid4()),
            kind=kind,
            session_id=session_id,
            status=JobStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self._save(job)
        return job

    def get_job(self, job_id: str) -> Job | None:
        """
        Get a job by ID.

        Args:
            job_id: The job identifier.

        Returns:
            The job if found, None otherwise.
        """
        data = self.redis.get(self._job_key(job_id))
        if data is None:
            return None
        return Job.model_validate_json(data)

    def update_status(
        self,
        job_id: str,
        status: JobStatus,
        error: str | None = None,
    ) -> Job | None:
        """
        Update a job's status.

        Args:
            job_id: The job identifier.
            status: New status.
            error: Optional error message (for failed status).

        Returns:
            The updated job, or None if not found.
        """
        job = self.get_job(job_id)
        if job is None:
            return None

        job.status = status
        job.updated_at = datetime.utcnow()
        if error:
            job.error = error

        self._save(job)
        return job

    def set_result(
        self,
        job_id: str,
        message: str,
        exported_count: int = 0,
        metadata: dict | None = None,
    ) -> Job | None:
        """
        Mark a job completed and store its result.

        Args:
            job_id: The job identifier.
            message: Human readable outcome.
            exported_count: Number of files written (exports only).
            metadata: Additional metadata.

        Returns:
            The updated job, or None if not found.
        """
        job = self.get_job(job_id)
        if job is None:
            return None

        job.status = JobStatus.COMPLETED
        job.updated_at = datetime.utcnow()
        job.result = JobResult(
            message=message,
            exported_count=exported_count,
            metadata=metadata or {},
        )

        self._save(job)
        return job

    def delete_job(self, job_id: str) -> bool:
        """
        Delete a job.

        Returns:
            True if deleted, False if not found.
        """
        return self.redis.delete(self._job_key(job_id)) > 0

    def acquire_export_lock(self, session_id: str, job_id: str) -> None:
        """
        Mark an export as running for a session.

        Args:
            session_id: Session being exported.
            job_id: Job that holds the lock.

        Raises:
            ExportInProgressError: If another export holds the lock.
        """
        acquired = self.redis.set(
            self._lock_key(session_id),
            job_id,
            nx=True,
            ex=settings.export.export_lock_timeout,
        )
        if not acquired:
            raise ExportInProgressError(session_id)

    def release_export_lock(self, session_id: str, job_id: str | None = None) -> None:
        """
        Release a session's export lock.

        When ``job_id`` is given the lock is only released if that job holds it.
        """
        key = self._lock_key(session_id)
        if job_id is not None:
            holder = self.redis.get(key)
            if holder is not None and holder.decode() != job_id:
                return
        self.redis.delete(key)

    def is_exporting(self, session_id: str) -> bool:
        return self.redis.get(self._lock_key(session_id)) is not None

    def cleanup_stale_processing_jobs(self) -> list[str]:
        """
        Fail jobs stuck in "processing" after a worker crash.

        Returns:
            List of job IDs that were cleaned up.
        """
        cleaned = []
        pattern = f"{self.JOB_PREFIX}*"
        now = datetime.utcnow()

        for key in self.redis.scan_iter(pattern):
            try:
                data = self.redis.get(key)
                if data is None:
                    continue

                job = Job.model_validate_json(data)
                if job.status != JobStatus.PROCESSING:
                    continue

                age_seconds = (now - job.updated_at).total_seconds()
                if age_seconds > STALE_PROCESSING_THRESHOLD_SECONDS:
                    logger.warning(
                        f"Cleaning up stale processing job {job.id} "
                        f"(stuck for {age_seconds:.0f}s)"
                    )
                    self.update_status(
                        job.id,
                        JobStatus.FAILED,
                        error="Job timed out - worker may have crashed",
                    )
                    if job.kind.is_export:
                        self.release_export_lock(job.session_id, job.id)
                    cleaned.append(job.id)

            except Exception as e:
                logger.error(f"Error checking job {key}: {e}")

        return cleaned


# Singleton instance
_job_service: JobService | None = None


def get_job_service() -> JobService:
    """Get or create the job service singleton."""
    global _job_service
    if _job_service is None:
        _job_service = JobService()
    return _job_service
