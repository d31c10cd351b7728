import logging
import uuid
from datetime import datetime
from pathlib import Path

import redis

from gridslicer.config import settings
from gridslicer.grid.session import SlicingSession
from gridslicer.services.image_loader import SourceDocument

logger = logging.getLogger(__name__)


class SessionService:
    """
    Service for persisting slicing sessions in Redis.

    A session is stored as one JSON document and rewritten on every change.
    """

    SESSION_PREFIX = "gridslicer:session:"

    def __init__(self, redis_client: redis.Redis | None = None):
        """
        Initialize the session service.

        Args:
            redis_client: Redis client instance. Creates one if not provided.
        """
        self.redis = redis_client or redis.Redis.from_url(settings.redis_url)

    def _session_key(self, session_id: str) -> str:
        """Generate Redis key for a session."""
        return f"{self.SESSION_PREFIX}{session_id}"

    def create_session(
        self,
        source: SourceDocument,
        image_name: str | None = None,
        output_dir: Path | None = None,
        session_id: str | None = None,
    ) -> SlicingSession:
        """
        Create a session for a freshly loaded source.

        The grid starts empty with no margins.

        Args:
            source: Loaded image or PDF.
            image_name: Display/base name (defaults to the file stem).
            output_dir: Export directory (defaults to settings.output_dir/<id>).
            session_id: Explicit ID, mostly for callers that named files after it.

        Returns:
            The stored session.
        """
        now = datetime.utcnow()
        session_id = session_id or str(uuid.uuid4())
        session = SlicingSession(
            id=session_id,
            source_path=source.path,
            image_name=image_name if image_name is not None else source.name,
            is_document=source.is_document,
            total_pages=source.page_count,
            current_page=0,
            output_dir=output_dir or settings.output_dir / session_id,
            created_at=now,
            updated_at=now,
        )
        self.save_session(session, touch=False)

        logger.info(
            f"Created session {session.id} for {session.image_name} "
            f"({session.total_pages} page{'s' if session.total_pages != 1 else ''})"
        )
        return session

    def get_session(self, session_id: str) -> SlicingSession | None:
        """
        Get a session by ID.

        Returns:
            The session if found, None otherwise.
        """
        data = self.redis.get(self._session_key(session_id))
        if data is None:
            return None
        return SlicingSession.model_validate_json(data)

    def save_session(self, session: SlicingSession, touch: bool = True) -> SlicingSession:
        """
        Store a session, refreshing its TTL.

        Args:
            session: Session to store.
            touch: Update ``updated_at`` before saving.

        Returns:
            The stored session.
        """
        if touch:
            session.updated_at = datetime.utcnow()
        self.redis.setex(
            self._session_key(session.id),
            settings.session_ttl,
            session.model_dump_json(),
        )
        return session

    def delete_session(self, session_id: str) -> bool:
        """
        Delete a session.

        Returns:
            True if deleted, False if not found.
        """
        return self.redis.delete(self._session_key(session_id)) > 0


# Singleton instance
_session_service: SessionService | None = None


def get_session_service() -> SessionService:
    """Get or create the session service singleton."""
    global _session_service
    if _session_service is None:
        _session_service = SessionService()
    return _session_service
