"""
LeadPool repository - database operations for pools and their cascade delete.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select

from leadgen_pipeline.exceptions import PoolNotFoundError
from leadgen_pipeline.models import (
    ContactCandidate,
    LeadCandidate,
    LeadGenJob,
    LeadPool,
    SourceEvent,
)
from leadgen_pipeline.repositories.base import BaseRepository
from leadgen_pipeline.schemas.icp import ICPConfig

logger = logging.getLogger(__name__)


class LeadPoolRepository(BaseRepository):
    """Repository for LeadPool database operations."""

    def get_by_id(self, pool_id: Any) -> Optional[LeadPool]:
        pool_uuid = self._try_uuid(pool_id)
        if pool_uuid is None:
            return None
        return self.db.query(LeadPool).filter(LeadPool.id == pool_uuid).first()

    def list_by_user(self, user_id: str) -> List[LeadPool]:
        return (
            self.db.query(LeadPool)
            .filter(LeadPool.user_id == user_id)
            .order_by(LeadPool.created_at.desc())
            .all()
        )

    def create(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        icp_config: Optional[Union[ICPConfig, Dict[str, Any]]] = None,
    ) -> LeadPool:
        if isinstance(icp_config, ICPConfig):
            icp_config = icp_config.to_stored()
        pool = LeadPool(
            user_id=user_id,
            name=name,
            description=description,
            icp_config=icp_config,
        )
        self.db.add(pool)
        self.db.flush()
        return pool

    def get_icp_config(self, pool: Optional[LeadPool]) -> Optional[ICPConfig]:
        """Parsed ICP for a pool; None when the pool has no (or an empty) configuration."""
        if pool is None:
            return None
        return ICPConfig.from_stored(pool.icp_config)

    def update_icp_config(self, pool_id: Any, icp_config: Union[ICPConfig, Dict[str, Any], None]) -> LeadPool:
        pool = self.get_by_id(pool_id)
        if pool is None:
            raise PoolNotFoundError(pool_id)
        if isinstance(icp_config, ICPConfig):
            icp_config = icp_config.to_stored()
        pool.icp_config = icp_config
        self.db.flush()
        return pool

    def delete_pool(self, pool_id: Any) -> bool:
        """
        Delete a pool and everything under it, children first:
        contact candidates -> lead candidates -> source events -> jobs -> pool.

        Returns False if the pool does not exist.
        """
        pool_uuid = self._try_uuid(pool_id)
        if pool_uuid is None or self.get_by_id(pool_uuid) is None:
            return False

        candidate_ids = select(LeadCandidate.id).where(LeadCandidate.pool_id == pool_uuid)
        job_ids = select(LeadGenJob.id).where(LeadGenJob.pool_id == pool_uuid)

        contacts = self.db.query(ContactCandidate).filter(
            ContactCandidate.lead_candidate_id.in_(candidate_ids)
        ).delete(synchronize_session=False)
        candidates = self.db.query(LeadCandidate).filter(
            LeadCandidate.pool_id == pool_uuid
        ).delete(synchronize_session=False)
        events = self.db.query(SourceEvent).filter(
            SourceEvent.job_id.in_(job_ids)
        ).delete(synchronize_session=False)
        jobs = self.db.query(LeadGenJob).filter(
            LeadGenJob.pool_id == pool_uuid
        ).delete(synchronize_session=False)
        self.db.query(LeadPool).filter(LeadPool.id == pool_uuid).delete(synchronize_session=False)

        self.db.flush()
        self.db.expire_all()

        logger.info(
            f"Deleted pool {pool_uuid}: {jobs} jobs, {events} source events, "
            f"{candidates} candidates, {contacts} contacts"
        )
        return True
