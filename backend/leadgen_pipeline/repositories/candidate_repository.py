"""
Candidate repository - lead (company) candidates and their contact candidates.
"""
from typing import Any, List, Optional

from sqlalchemy import func

from leadgen_pipeline.models import ContactCandidate, LeadCandidate
from leadgen_pipeline.repositories.base import BaseRepository


class CandidateRepository(BaseRepository):
    """Repository for LeadCandidate / ContactCandidate database operations."""

    def get_by_id(self, candidate_id: Any) -> Optional[LeadCandidate]:
        candidate_uuid = self._try_uuid(candidate_id)
        if candidate_uuid is None:
            return None
        return self.db.query(LeadCandidate).filter(LeadCandidate.id == candidate_uuid).first()

    def list_by_pool(self, pool_id: Any) -> List[LeadCandidate]:
        """All candidates in a pool, oldest first."""
        return (
            self.db.query(LeadCandidate)
            .filter(LeadCandidate.pool_id == self._to_uuid(pool_id))
            .order_by(LeadCandidate.created_at.asc(), LeadCandidate.dedupe_key.asc())
            .all()
        )

    def count_by_pool(self, pool_id: Any) -> int:
        return (
            self.db.query(func.count(LeadCandidate.id))
            .filter(LeadCandidate.pool_id == self._to_uuid(pool_id))
            .scalar()
        )

    def get_by_dedupe_key(self, pool_id: Any, dedupe_key: str) -> Optional[LeadCandidate]:
        return self.db.query(LeadCandidate).filter(
            LeadCandidate.pool_id == self._to_uuid(pool_id),
            LeadCandidate.dedupe_key == dedupe_key
        ).first()

    def create(self, pool_id: Any, dedupe_key: str, job_id: Any = None, **fields) -> LeadCandidate:
        candidate = LeadCandidate(
            pool_id=self._to_uuid(pool_id),
            job_id=self._to_uuid(job_id),
            dedupe_key=dedupe_key,
            **fields
        )
        self.db.add(candidate)
        self.db.flush()
        return candidate

    def update_score(self, candidate: LeadCandidate, score: int) -> LeadCandidate:
        """Last write wins."""
        if not 0 <= score <= 100:
            raise ValueError(f"Candidate score out of range: {score}")
        candidate.score = score
        self.db.flush()
        return candidate

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    def list_contacts(self, candidate_id: Any) -> List[ContactCandidate]:
        return (
            self.db.query(ContactCandidate)
            .filter(ContactCandidate.lead_candidate_id == self._to_uuid(candidate_id))
            .order_by(ContactCandidate.score.desc())
            .all()
        )

    def count_contacts(self, candidate_id: Any) -> int:
        return (
            self.db.query(func.count(ContactCandidate.id))
            .filter(ContactCandidate.lead_candidate_id == self._to_uuid(candidate_id))
            .scalar()
        )

    def get_contact_by_dedupe_key(self, candidate_id: Any, dedupe_key: str) -> Optional[ContactCandidate]:
        return self.db.query(ContactCandidate).filter(
            ContactCandidate.lead_candidate_id == self._to_uuid(candidate_id),
            ContactCandidate.dedupe_key == dedupe_key
        ).first()

    def find_contact(
        self,
        candidate_id: Any,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Optional[ContactCandidate]:
        """First contact of a company matching by email, then name, then phone."""
        contacts = self.db.query(ContactCandidate).filter(
            ContactCandidate.lead_candidate_id == self._to_uuid(candidate_id)
        )
        if email:
            match = contacts.filter(func.lower(ContactCandidate.email) == email.strip().lower()).first()
            if match:
                return match
        if full_name:
            match = contacts.filter(func.lower(ContactCandidate.full_name) == full_name.strip().lower()).first()
            if match:
                return match
        if phone:
            return contacts.filter(ContactCandidate.phone == phone).first()
        return None

    def create_contact(self, candidate_id: Any, dedupe_key: str, **fields) -> ContactCandidate:
        contact = ContactCandidate(
            lead_candidate_id=self._to_uuid(candidate_id),
            dedupe_key=dedupe_key,
            **fields
        )
        self.db.add(contact)
        self.db.flush()
        return contact
