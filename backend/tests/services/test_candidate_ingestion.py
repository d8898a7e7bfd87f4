# tests/services/test_candidate_ingestion.py
"""
Tests for CandidateIngestionService - company upsert and contact persistence.

Run with: pytest tests/services/test_candidate_ingestion.py -v
"""

import pytest

from leadgen_pipeline.schemas.candidate import ContactInput
from leadgen_pipeline.schemas.icp import ICPConfig
from leadgen_pipeline.services.candidate_ingestion import CandidateIngestionService


@pytest.fixture
def service(db_session):
    return CandidateIngestionService(db_session)


@pytest.fixture
def icp(sample_icp):
    return ICPConfig.from_stored(sample_icp)


@pytest.fixture
def company(service, sample_pool, classic_job, icp):
    candidate, _ = service.upsert_company(
        sample_pool.id, classic_job.id, "acme.io", company_name="Acme Robotics", icp=icp
    )
    return candidate


# ============================================================================
# TEST: companies
# ============================================================================

class TestUpsertCompany:

    def test_creates_normalized_candidate(self, service, sample_pool, classic_job, icp):
        candidate, created = service.upsert_company(
            sample_pool.id,
            classic_job.id,
            "https://www.Acme.io/about",
            company_name="AcmeRobotics",
            tech_stack="reactjs, salesforce",
            contact_info={"email": "noreply@acme.io", "phone": "5558675309"},
            icp=icp,
        )

        assert created is True
        assert candidate.dedupe_key == "acme.io"
        assert candidate.domain == "acme.io"
        assert candidate.company_name == "Acme Robotics"
        assert candidate.tech_stack == ["React", "Salesforce"]
        assert candidate.contact_info == {"phone": "(555) 867-5309"}
        assert candidate.job_id == classic_job.id
        assert candidate.score == 0

    def test_second_sighting_merges(self, service, candidate_repo, sample_pool, classic_job):
        service.upsert_company(
            sample_pool.id, classic_job.id, "acme.io", company_name="Acme Robotics", tech_stack=["React"]
        )

        candidate, created = service.upsert_company(
            sample_pool.id,
            classic_job.id,
            "http://acme.io/team",
            company_name="Acme",
            description="Warehouse robots from Berlin",
            tech_stack=["nodejs", "react"],
        )

        assert created is False
        assert candidate_repo.count_by_pool(sample_pool.id) == 1
        assert candidate.company_name == "Acme Robotics"
        assert candidate.description == "Warehouse robots from Berlin"
        assert candidate.tech_stack == ["React", "Node.js"]

    def test_excluded_domain_skipped(self, service, candidate_repo, sample_pool, classic_job, icp):
        result = service.upsert_company(sample_pool.id, classic_job.id, "www.competitor.io", icp=icp)

        assert result == (None, False)
        assert candidate_repo.count_by_pool(sample_pool.id) == 0

    @pytest.mark.parametrize("domain", [None, "", "   "])
    def test_empty_domain_skipped(self, service, sample_pool, classic_job, domain):
        assert service.upsert_company(sample_pool.id, classic_job.id, domain) == (None, False)

    def test_nav_label_company_name_blanked(self, service, sample_pool, classic_job):
        candidate, _ = service.upsert_company(sample_pool.id, classic_job.id, "acme.io", company_name="Contact Us")
        assert candidate.company_name is None

    def test_same_domain_in_other_pool_is_separate(self, service, pool_repo, db_session, sample_pool, classic_job):
        other = pool_repo.create(user_id="user-1", name="Other pool")
        db_session.flush()

        first, _ = service.upsert_company(sample_pool.id, classic_job.id, "acme.io")
        second, created = service.upsert_company(other.id, None, "acme.io")

        assert created is True
        assert first.id != second.id


# ============================================================================
# TEST: contacts
# ============================================================================

class TestAddContact:

    def test_new_contact_is_classified_and_scored(self, service, company, icp):
        contact, created = service.add_contact(
            company,
            {"name": "JaneDoe", "email": "Jane.Doe@acme.io", "title": "CTO"},
            icp,
        )

        assert created is True
        assert contact.full_name == "Jane Doe"
        assert contact.first_name == "Jane"
        assert contact.last_name == "Doe"
        assert contact.email == "jane.doe@acme.io"
        assert contact.email_class == "personal"
        assert contact.dedupe_key == "jane.doe@acme.io"
        assert contact.normalized_title == "Chief Technology Officer"
        assert contact.ladder == "C-SUITE"
        assert contact.department == "ENGINEERING"
        assert contact.persona == "TECH_DECISION_MAKER"
        # title 40 + email 20 + full name 10 + company domain 10, of 100
        assert contact.score == 80

    def test_same_email_merges_into_existing(self, service, candidate_repo, company, icp):
        first, _ = service.add_contact(company, {"name": "Jane Doe", "email": "jane.doe@acme.io"}, icp)

        second, created = service.add_contact(
            company,
            ContactInput(email="JANE.DOE@ACME.IO", phone="5558675309", title="CTO"),
            icp,
        )

        assert created is False
        assert second.id == first.id
        assert candidate_repo.count_contacts(company.id) == 1
        assert second.full_name == "Jane Doe"
        assert second.phone == "(555) 867-5309"
        assert second.title == "CTO"

    def test_name_only_contact_picks_up_email(self, service, candidate_repo, company, icp):
        first, _ = service.add_contact(company, {"name": "Jane Smith", "title": "CTO"}, icp)
        assert first.dedupe_key == "jane smith"

        second, created = service.add_contact(company, {"name": "jane smith", "email": "jane.smith@acme.io"}, icp)

        assert created is False
        assert second.id == first.id
        assert candidate_repo.count_contacts(company.id) == 1
        assert second.email == "jane.smith@acme.io"
        assert second.title == "CTO"
        assert second.dedupe_key == "jane.smith@acme.io"
        assert candidate_repo.get_contact_by_dedupe_key(company.id, "jane smith") is None

    def test_phone_only_contact_matches_by_phone(self, service, candidate_repo, company):
        first, _ = service.add_contact(company, {"phone": "201-555-0123"})

        second, created = service.add_contact(company, {"phone": "(201) 555 0123", "name": "Tom Lee"})

        assert created is False
        assert second.id == first.id
        assert second.full_name == "Tom Lee"
        assert second.dedupe_key == "tom lee"
        assert candidate_repo.count_contacts(company.id) == 1

    def test_rejected_contact(self, service, candidate_repo, company, icp):
        result = service.add_contact(company, {"name": "About Us", "email": "noreply@acme.io"}, icp)

        assert result == (None, False)
        assert candidate_repo.count_contacts(company.id) == 0

    def test_contact_limit_applies_to_new_contacts(self, service, candidate_repo, company, icp):
        raw = [{"name": f"Person {n}", "email": f"person{n}.x@acme.io"} for n in range(5)]

        created = service.add_contacts(company, raw, icp)

        assert created == icp.limits.max_contacts_per_company == 3
        assert candidate_repo.count_contacts(company.id) == 3

    def test_existing_contact_still_merges_at_limit(self, service, company, icp):
        service.add_contacts(company, [{"email": f"p{n}.x@acme.io"} for n in range(3)], icp)

        contact, created = service.add_contact(company, {"email": "p0.x@acme.io", "name": "Pat Zero"}, icp)

        assert created is False
        assert contact.full_name == "Pat Zero"

    def test_no_icp_scores_zero(self, service, company):
        contact, _ = service.add_contact(company, {"name": "Jane Doe", "title": "VP of Sales"})

        assert contact.score == 0
        assert contact.normalized_title == "VP of Sales"
        assert contact.dedupe_key == "jane doe"


# ============================================================================
# TEST: source events
# ============================================================================

class TestSourceEvents:

    def test_record_source_event(self, service, event_repo, classic_job):
        service.record_source_event(
            classic_job.id, "serp", query="fintech berlin", url="https://acme.io",
            metadata={"rank": 1},
        )

        events = event_repo.list_by_job(classic_job.id)
        assert len(events) == 1
        assert events[0].type == "serp"
        assert events[0].query == "fintech berlin"
        assert events[0].event_metadata == {"rank": 1}
