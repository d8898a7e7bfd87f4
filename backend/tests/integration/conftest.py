# tests/integration/conftest.py
"""Integration test fixtures - real DB + in-process providers that write real rows"""

import os
import pytest
from typing import Dict, List, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from leadgen_pipeline.database import Base
from leadgen_pipeline.repositories import CandidateRepository
from leadgen_pipeline.schemas.icp import ICPConfig
from leadgen_pipeline.services.candidate_ingestion import CandidateIngestionService
from leadgen_pipeline.services.link_ranker import rank_links
from leadgen_pipeline.services.normalization import normalize_domain
from leadgen_pipeline.services.providers import (
    AgentRunResult,
    AutonomousAgent,
    EnrichmentOutcome,
    EnrichmentProvider,
    SerpSearchProvider,
    SerpSearchResult,
)

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture
def test_engine():
    """Overrides the unit-test engine; set TEST_DATABASE_URL to run against PostgreSQL"""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    else:
        engine = create_engine(TEST_DATABASE_URL)

    Base.metadata.create_all(engine)
    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


# ============================================================================
# IN-PROCESS PROVIDERS
# ============================================================================

class FakeSerpProvider(SerpSearchProvider):
    """Upserts a fixed list of search hits into the job's pool."""

    def __init__(self, db, pool, hits: List[Dict]):
        self.db = db
        self.pool = pool
        self.hits = hits
        self.ingestion = CandidateIngestionService(db)

    async def search(self, job_id: str, user_id: str) -> SerpSearchResult:
        icp = ICPConfig.from_stored(self.pool.icp_config)
        created = 0
        domains = []
        for hit in self.hits:
            self.ingestion.record_source_event(job_id, "serp", query=hit.get("query"), url=hit["url"])
            candidate, is_new = self.ingestion.upsert_company(
                self.pool.id,
                job_id,
                hit["url"],
                company_name=hit.get("name"),
                description=hit.get("description"),
                industry=hit.get("industry"),
                tech_stack=hit.get("tech_stack"),
                contact_info=hit.get("contact_info"),
                icp=icp,
            )
            created += int(is_new)
            domain = normalize_domain(hit["url"])
            if domain and domain not in domains:
                domains.append(domain)
        self.db.commit()
        return SerpSearchResult(created_candidates=created, source_events=len(self.hits), unique_domains=domains)


class FakeCrawler(EnrichmentProvider):
    """
    "Crawls" candidates created by the job: ranks each site's pages,
    records a crawl event for the top two, and stores the site's contacts.
    """

    def __init__(self, db, pool, sites: Dict[str, Dict], broken: Optional[set] = None):
        self.db = db
        self.pool = pool
        self.sites = sites
        self.broken = broken or set()
        self.ingestion = CandidateIngestionService(db)
        self.crawled_pages: Dict[str, List[str]] = {}

    async def enrich(self, job_id: str, limit: int, user_id: str) -> EnrichmentOutcome:
        icp = ICPConfig.from_stored(self.pool.icp_config)
        candidates = [
            c for c in CandidateRepository(self.db).list_by_pool(self.pool.id)
            if str(c.job_id) == job_id
        ][:limit]

        enriched = failed = contacts = 0
        for candidate in candidates:
            if candidate.domain in self.broken or candidate.domain not in self.sites:
                failed += 1
                continue
            site = self.sites[candidate.domain]

            pages = await rank_links(None, candidate.domain, site["pages"])
            self.crawled_pages[candidate.domain] = pages[:2]
            for url in pages[:2]:
                self.ingestion.record_source_event(job_id, "crawl", url=url)

            contacts += self.ingestion.add_contacts(candidate, site.get("contacts", []), icp)
            candidate.score = site.get("score", 0)
            enriched += 1

        self.db.commit()
        return EnrichmentOutcome(enriched=enriched, failed=failed, contacts_created=contacts)


class FakeAgent(AutonomousAgent):
    """Saves a fixed set of companies/contacts in one 'iteration' per company."""

    def __init__(self, db, companies: List[Dict]):
        self.db = db
        self.companies = companies
        self.ingestion = CandidateIngestionService(db)
        self.calls = []

    async def run(self, job_id, user_id, icp_config, pool_id, target_count) -> AgentRunResult:
        self.calls.append({"icp_config": icp_config, "target_count": target_count})
        icp = ICPConfig.from_stored(icp_config)

        companies = contacts = 0
        for company in self.companies[:target_count]:
            candidate, is_new = self.ingestion.upsert_company(
                pool_id, job_id, company["domain"], company_name=company.get("name"), icp=icp
            )
            if candidate is None:
                continue
            companies += int(is_new)
            contacts += self.ingestion.add_contacts(candidate, company.get("contacts", []), icp)

        self.db.commit()
        return AgentRunResult(companies_saved=companies, contacts_saved=contacts, iterations=len(self.companies))


# ============================================================================
# SCENARIO DATA
# ============================================================================

@pytest.fixture
def serp_hits():
    return [
        {
            "query": "fintech startup berlin",
            "url": "https://www.acme.io/",
            "name": "Acme",
            "description": "Berlin startup building payment APIs",
            "industry": "Software",
            "tech_stack": ["reactjs", "salesforce"],
            "contact_info": {"email": "hello@acme.io"},
        },
        {"query": "fintech startup berlin", "url": "https://competitor.io/about", "name": "Competitor"},
        {"query": "fintech startup berlin", "url": "https://other.com", "name": "Other", "description": "Retail chain"},
        {"query": "payments api germany", "url": "http://acme.io/team", "name": "AboutUs"},
    ]


@pytest.fixture
def crawl_sites():
    return {
        "acme.io": {
            "score": 50,
            "pages": [
                "https://acme.io/products/widget",
                "https://acme.io/privacy",
                "https://acme.io/team",
                "https://acme.io/contact-us",
            ],
            "contacts": [
                {"name": "JaneDoe", "email": "Jane.Doe@acme.io", "title": "CTO"},
                {"name": "Contact Us", "email": "noreply@acme.io"},
                {"name": "Max Mustermann", "title": "VP of Sales", "linkedin": "https://www.linkedin.com/in/maxm"},
            ],
        },
        "other.com": {"score": 10, "pages": ["https://other.com/"]},
    }


@pytest.fixture
def serp_provider(db_session, sample_pool, serp_hits):
    return FakeSerpProvider(db_session, sample_pool, serp_hits)


@pytest.fixture
def crawler(db_session, sample_pool, crawl_sites):
    return FakeCrawler(db_session, sample_pool, crawl_sites, broken={"other.com"})


@pytest.fixture
def agent(db_session):
    return FakeAgent(db_session, [
        {
            "domain": "robotics.de",
            "name": "Robotics AG",
            "contacts": [{"name": "Anna Schmidt", "email": "anna.schmidt@robotics.de", "title": "Head of Engineering"}],
        },
        {"domain": "competitor.io", "name": "Competitor"},
        {
            "domain": "ledger.io",
            "name": "Ledger",
            "contacts": [
                {"name": "Tom Lee", "email": "tom.lee@ledger.io", "title": "CFO"},
                {"email": "TOM.LEE@ledger.io", "phone": "+1 201-555-0123"},
            ],
        },
    ])
