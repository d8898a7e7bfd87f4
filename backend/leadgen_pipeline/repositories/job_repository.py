"""
LeadGenJob repository - job status, counters and the append-only job log.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from leadgen_pipeline.models import LeadGenJob
from leadgen_pipeline.repositories.base import BaseRepository
from leadgen_pipeline.schemas.job import JobCounters, JobLogEntry, JobProviders, JobStatus


class LeadGenJobRepository(BaseRepository):
    """Repository for LeadGenJob database operations."""

    def get_by_id(self, job_id: Any) -> Optional[LeadGenJob]:
        job_uuid = self._try_uuid(job_id)
        if job_uuid is None:
            return None
        return self.db.query(LeadGenJob).filter(LeadGenJob.id == job_uuid).first()

    def list_by_pool(self, pool_id: Any) -> List[LeadGenJob]:
        return (
            self.db.query(LeadGenJob)
            .filter(LeadGenJob.pool_id == self._to_uuid(pool_id))
            .order_by(LeadGenJob.created_at.desc())
            .all()
        )

    def create(
        self,
        pool_id: Any,
        user_id: str,
        providers: Optional[Union[JobProviders, Dict[str, Any]]] = None,
    ) -> LeadGenJob:
        if isinstance(providers, JobProviders):
            providers = providers.to_stored()
        job = LeadGenJob(
            pool_id=self._to_uuid(pool_id),
            user_id=user_id,
            status=JobStatus.PENDING.value,
            providers=providers or {},
            counters=JobCounters().to_stored(),
            logs=[],
        )
        self.db.add(job)
        self.db.flush()
        return job

    # ------------------------------------------------------------------
    # Typed views over the JSON columns
    # ------------------------------------------------------------------

    @staticmethod
    def get_providers(job: LeadGenJob) -> JobProviders:
        return JobProviders.from_stored(job.providers)

    @staticmethod
    def get_counters(job: LeadGenJob) -> JobCounters:
        return JobCounters.from_stored(job.counters)

    @staticmethod
    def get_logs(job: LeadGenJob) -> List[JobLogEntry]:
        return [JobLogEntry.model_validate(entry) for entry in (job.logs or [])]

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def mark_running(self, job: LeadGenJob) -> LeadGenJob:
        job.status = JobStatus.RUNNING.value
        job.started_at = datetime.now(timezone.utc)
        job.finished_at = None
        self.db.flush()
        return job

    def mark_finished(self, job: LeadGenJob, status: JobStatus) -> LeadGenJob:
        if not status.is_terminal:
            raise ValueError(f"Not a terminal job status: {status.value}")
        job.status = status.value
        job.finished_at = datetime.now(timezone.utc)
        self.db.flush()
        return job

    def append_log(self, job: LeadGenJob, msg: str, level: Optional[str] = None) -> JobLogEntry:
        """Append one entry; earlier entries are never rewritten."""
        entry = JobLogEntry.now(msg, level=level)
        # Reassign so the JSON column is marked dirty
        job.logs = list(job.logs or []) + [entry.to_stored()]
        self.db.flush()
        return entry

    def merge_counters(self, job: LeadGenJob, delta: JobCounters) -> JobCounters:
        """Add ``delta`` to the stored counters. Counters never decrease."""
        merged = self.get_counters(job).merged_with(delta)
        job.counters = merged.to_stored()
        self.db.flush()
        return merged
