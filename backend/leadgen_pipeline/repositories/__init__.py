"""
Repositories: typed data access over a SQLAlchemy Session.

Pipeline logic talks to these classes only, never to the session directly
(except to commit checkpoints).
"""
from leadgen_pipeline.repositories.base import BaseRepository
from leadgen_pipeline.repositories.lead_pool_repository import LeadPoolRepository
from leadgen_pipeline.repositories.job_repository import LeadGenJobRepository
from leadgen_pipeline.repositories.candidate_repository import CandidateRepository
from leadgen_pipeline.repositories.source_event_repository import SourceEventRepository

__all__ = [
    "BaseRepository",
    "LeadPoolRepository",
    "LeadGenJobRepository",
    "CandidateRepository",
    "SourceEventRepository",
]
