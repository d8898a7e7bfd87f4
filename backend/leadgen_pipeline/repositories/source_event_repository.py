"""
SourceEvent repository - write-once audit records of crawl/search actions.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from leadgen_pipeline.models import SourceEvent
from leadgen_pipeline.repositories.base import BaseRepository


class SourceEventRepository(BaseRepository):
    """Create and read only; events are never updated."""

    def create(
        self,
        job_id: Any,
        event_type: str,
        query: Optional[str] = None,
        url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SourceEvent:
        event = SourceEvent(
            job_id=self._to_uuid(job_id),
            type=event_type,
            query=query,
            url=url,
            event_metadata=metadata or {},
        )
        self.db.add(event)
        self.db.flush()
        return event

    def list_by_job(self, job_id: Any) -> List[SourceEvent]:
        return (
            self.db.query(SourceEvent)
            .filter(SourceEvent.job_id == self._to_uuid(job_id))
            .order_by(SourceEvent.fetched_at.asc())
            .all()
        )

    def count_by_job(self, job_id: Any) -> int:
        return (
            self.db.query(func.count(SourceEvent.id))
            .filter(SourceEvent.job_id == self._to_uuid(job_id))
            .scalar()
        )
