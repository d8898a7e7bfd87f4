# tests/conftest.py
"""Shared fixtures - real SQLAlchemy session on in-memory SQLite + sample pools/jobs"""

import pytest
from unittest.mock import AsyncMock, Mock

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leadgen_pipeline.database import Base
from leadgen_pipeline import models  # noqa: F401  register mappers
from leadgen_pipeline.repositories import (
    CandidateRepository,
    LeadGenJobRepository,
    LeadPoolRepository,
    SourceEventRepository,
)


# ============================================================================
# DATABASE
# ============================================================================

@pytest.fixture
def test_engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    """Real database session"""
    Session = sessionmaker(bind=test_engine, expire_on_commit=False, autoflush=False)
    session = Session()

    yield session

    session.close()


@pytest.fixture
def pool_repo(db_session):
    return LeadPoolRepository(db_session)


@pytest.fixture
def job_repo(db_session):
    return LeadGenJobRepository(db_session)


@pytest.fixture
def candidate_repo(db_session):
    return CandidateRepository(db_session)


@pytest.fixture
def event_repo(db_session):
    return SourceEventRepository(db_session)


# ============================================================================
# SAMPLE DATA
# ============================================================================

@pytest.fixture
def sample_icp():
    """ICP as stored on a pool (camelCase keys)"""
    return {
        "industries": ["Software", "Fintech"],
        "geos": ["Berlin", "Germany"],
        "techStack": ["React", "Salesforce"],
        "companySizes": ["startup"],
        "titles": ["CTO", "VP of Sales"],
        "excludeDomains": ["competitor.io"],
        "limits": {"maxCompanies": 40, "maxContactsPerCompany": 3},
    }


@pytest.fixture
def sample_pool(db_session, pool_repo, sample_icp):
    pool = pool_repo.create(
        user_id="user-1",
        name="Berlin fintech",
        description="Seed-stage fintechs in Berlin",
        icp_config=sample_icp,
    )
    db_session.commit()
    return pool


@pytest.fixture
def pool_without_icp(db_session, pool_repo):
    pool = pool_repo.create(user_id="user-1", name="No ICP yet")
    db_session.commit()
    return pool


@pytest.fixture
def classic_job(db_session, job_repo, sample_pool):
    """Job that runs the staged SERP -> enrichment -> scoring pipeline"""
    job = job_repo.create(sample_pool.id, "user-1", providers={"agenticAI": False})
    db_session.commit()
    return job


@pytest.fixture
def agent_job(db_session, job_repo, sample_pool):
    """Job with default providers (agent mode)"""
    job = job_repo.create(sample_pool.id, "user-1")
    db_session.commit()
    return job


# ============================================================================
# COLLABORATORS
# ============================================================================

@pytest.fixture
def mock_serp_provider():
    provider = Mock()
    provider.search = AsyncMock(return_value={
        "createdCandidates": 5,
        "sourceEvents": 8,
        "uniqueDomains": ["a.com", "b.com"],
    })
    return provider


@pytest.fixture
def mock_enrichment_provider():
    provider = Mock()
    provider.enrich = AsyncMock(return_value={"enriched": 4, "failed": 1})
    return provider


@pytest.fixture
def mock_agent():
    agent = Mock()
    agent.run = AsyncMock(return_value={"companiesSaved": 12, "contactsSaved": 30, "iterations": 4})
    return agent
