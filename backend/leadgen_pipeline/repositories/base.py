"""
Shared repository plumbing.
"""
import uuid
from typing import Any, Optional

from sqlalchemy.orm import Session


class BaseRepository:
    """Typed CRUD over a SQLAlchemy session. Repositories flush; callers commit."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_uuid(value: Any) -> Optional[uuid.UUID]:
        """Safely convert to UUID"""
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

    def _try_uuid(self, value: Any) -> Optional[uuid.UUID]:
        """Like _to_uuid, but malformed ids resolve to None (i.e. "not found")."""
        try:
            return self._to_uuid(value)
        except (ValueError, TypeError, AttributeError):
            return None
