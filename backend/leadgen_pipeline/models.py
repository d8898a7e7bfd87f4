"""
SQLAlchemy ORM models for lead pools, lead-gen jobs and their candidates.

Portable column types (Uuid, JSON) so the same models run on PostgreSQL in
production and SQLite in tests. Relationships are one-way (parent → child);
deletion order is handled explicitly by LeadPoolRepository.delete_pool.
"""

from sqlalchemy import (
    Column, String, Integer, Text, DateTime, JSON, ForeignKey, CheckConstraint, Index, Uuid
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from leadgen_pipeline.database import Base
import uuid


JOB_STATUSES = ("PENDING", "RUNNING", "SUCCESS", "FAILED")


# ============================================================================
# POOL & JOB MODELS
# ============================================================================

class LeadPool(Base):
    """Named collection of jobs and candidates sharing one ICP configuration."""
    __tablename__ = "lead_pools"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    icp_config = Column(JSON)  # ICPConfig, camelCase keys
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    jobs = relationship("LeadGenJob", foreign_keys="LeadGenJob.pool_id")
    candidates = relationship("LeadCandidate", foreign_keys="LeadCandidate.pool_id")

    def __repr__(self):
        return f"<LeadPool(id={self.id}, name='{self.name}')>"


class LeadGenJob(Base):
    """
    One pipeline execution.

    Status: PENDING → RUNNING → SUCCESS | FAILED
    counters: monotonically non-decreasing integers (see JobCounters)
    logs: append-only list of {"ts": iso8601, "level"?: "ERROR", "msg": str}
    """
    __tablename__ = "lead_gen_jobs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    pool_id = Column(Uuid(as_uuid=True), ForeignKey("lead_pools.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    providers = Column(JSON, default=dict)  # {"serp": bool, "crawler": bool, "agenticAI": bool}
    counters = Column(JSON, default=dict)
    logs = Column(JSON, default=list)
    started_at = Column(DateTime(timezone=True))
    finished_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    source_events = relationship("SourceEvent", foreign_keys="SourceEvent.job_id")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'RUNNING', 'SUCCESS', 'FAILED')",
            name="chk_lead_gen_job_status"
        ),
    )

    def __repr__(self):
        return f"<LeadGenJob(id={self.id}, pool={self.pool_id}, status='{self.status}')>"


class SourceEvent(Base):
    """Write-once audit record of one crawl/search action."""
    __tablename__ = "lead_source_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid(as_uuid=True), ForeignKey("lead_gen_jobs.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # serp, crawl, enrichment, agent
    query = Column(Text)
    url = Column(Text)
    fetched_at = Column(DateTime(timezone=True), server_default=func.now())
    event_metadata = Column("metadata", JSON, default=dict)

    def __repr__(self):
        return f"<SourceEvent(job={self.job_id}, type='{self.type}')>"


# ============================================================================
# CANDIDATE MODELS
# ============================================================================

class LeadCandidate(Base):
    """Discovered company awaiting scoring/qualification."""
    __tablename__ = "lead_candidates"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    pool_id = Column(Uuid(as_uuid=True), ForeignKey("lead_pools.id"), nullable=False, index=True)
    job_id = Column(Uuid(as_uuid=True), ForeignKey("lead_gen_jobs.id", ondelete="SET NULL"), nullable=True)

    dedupe_key = Column(String(255), nullable=False)  # normalized domain
    domain = Column(String(255))
    company_name = Column(String(255))
    description = Column(Text)
    industry = Column(String(255))
    tech_stack = Column(JSON, default=list)
    contact_info = Column(JSON, default=dict)  # {"email": ..., "phone": ...}
    social_links = Column(JSON, default=dict)

    score = Column(Integer, default=0, nullable=False)  # 0-100, last write wins
    status = Column(String(50), default="NEW", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    contacts = relationship("ContactCandidate", foreign_keys="ContactCandidate.lead_candidate_id")

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="chk_lead_candidate_score"),
        Index("ix_lead_candidates_pool_dedupe", "pool_id", "dedupe_key", unique=True),
    )

    def __repr__(self):
        return f"<LeadCandidate(id={self.id}, domain='{self.domain}', score={self.score})>"


class ContactCandidate(Base):
    """Discovered person at a candidate company."""
    __tablename__ = "contact_candidates"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lead_candidate_id = Column(
        Uuid(as_uuid=True), ForeignKey("lead_candidates.id"), nullable=False, index=True
    )
    dedupe_key = Column(String(255), nullable=False)  # email, else lowercased name

    full_name = Column(String(255))
    first_name = Column(String(255))
    last_name = Column(String(255))
    email = Column(String(255))
    email_class = Column(String(20))  # personal, role, generic, unknown
    phone = Column(String(50))  # display format
    phone_e164 = Column(String(50))
    linkedin_url = Column(Text)

    # Title classification
    title = Column(String(255))
    normalized_title = Column(String(255))
    ladder = Column(String(20))
    department = Column(String(50))
    persona = Column(String(50))

    score = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="chk_contact_candidate_score"),
        Index("ix_contact_candidates_dedupe", "lead_candidate_id", "dedupe_key", unique=True),
    )

    def __repr__(self):
        return f"<ContactCandidate(id={self.id}, name='{self.full_name}', score={self.score})>"
