"""
Candidate ingestion: the write path SERP/enrichment providers use to persist
what they discover.

Raw scraped values pass through the edge normalizers before they touch the
database. Companies are de-duplicated per pool by normalized domain;
contacts per company by email (else lowercased name, else phone).
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from sqlalchemy.orm import Session

from leadgen_pipeline.icp_engine import calculate_contact_icp_score
from leadgen_pipeline.models import ContactCandidate, LeadCandidate, SourceEvent
from leadgen_pipeline.policy import DEFAULT_POLICY, ScoringPolicy
from leadgen_pipeline.repositories import CandidateRepository, SourceEventRepository
from leadgen_pipeline.schemas.candidate import ContactData, ContactInput, SanitizedContact
from leadgen_pipeline.schemas.icp import ICPConfig
from leadgen_pipeline.services.normalization import (
    fix_concatenated_words,
    is_nav_label,
    merge_contacts,
    merge_string_sets,
    normalize_domain,
    normalize_tech_stack,
    prefer_informative,
    sanitize_contact,
)
from leadgen_pipeline.services.title_normalizer import normalize_title_and_persona

logger = logging.getLogger(__name__)


class CandidateIngestionService:
    """Persist companies, contacts and source events for a job."""

    def __init__(self, db: Session, policy: ScoringPolicy = DEFAULT_POLICY):
        self.db = db
        self.policy = policy
        self.candidates = CandidateRepository(db)
        self.events = SourceEventRepository(db)

    def record_source_event(
        self,
        job_id: Any,
        event_type: str,
        query: Optional[str] = None,
        url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SourceEvent:
        return self.events.create(job_id, event_type, query=query, url=url, metadata=metadata)

    # ========================================================================
    # COMPANIES
    # ========================================================================

    def upsert_company(
        self,
        pool_id: Any,
        job_id: Any,
        domain: Optional[str],
        company_name: Optional[str] = None,
        description: Optional[str] = None,
        industry: Optional[str] = None,
        tech_stack: Any = None,
        contact_info: Optional[Dict[str, Any]] = None,
        social_links: Optional[Dict[str, Any]] = None,
        icp: Optional[ICPConfig] = None,
    ) -> Tuple[Optional[LeadCandidate], bool]:
        """
        Create or merge a company candidate.

        Returns (candidate, created). (None, False) when the domain is empty
        or on the ICP exclude list.
        """
        dedupe_key = normalize_domain(domain)
        if not dedupe_key:
            return None, False

        if icp and any(excluded.lower() in dedupe_key for excluded in icp.exclude_domains):
            logger.debug(f"Skipping excluded domain {dedupe_key}")
            return None, False

        name = fix_concatenated_words(company_name)
        if is_nav_label(name):
            name = ""
        stack = normalize_tech_stack(tech_stack)
        contact_info = self._clean_contact_info(contact_info)

        existing = self.candidates.get_by_dedupe_key(pool_id, dedupe_key)
        if existing:
            existing.company_name = prefer_informative(existing.company_name, name) or None
            existing.description = prefer_informative(existing.description, description) or None
            existing.industry = prefer_informative(existing.industry, industry) or None
            existing.tech_stack = normalize_tech_stack(merge_string_sets(existing.tech_stack, stack))
            existing.contact_info = {**contact_info, **{k: v for k, v in (existing.contact_info or {}).items() if v}}
            existing.social_links = {**(social_links or {}), **(existing.social_links or {})}
            self.db.flush()
            return existing, False

        candidate = self.candidates.create(
            pool_id,
            dedupe_key,
            job_id=job_id,
            domain=dedupe_key,
            company_name=name or None,
            description=(description or "").strip() or None,
            industry=(industry or "").strip() or None,
            tech_stack=stack,
            contact_info=contact_info,
            social_links=social_links or {},
        )
        logger.info(f"✅ New candidate {dedupe_key} in pool {pool_id}")
        return candidate, True

    @staticmethod
    def _clean_contact_info(contact_info: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Apply the email/phone quality gates to company-level contact info."""
        info = dict(contact_info or {})
        sanitized = sanitize_contact({"email": info.get("email"), "phone": info.get("phone")})
        info["email"] = sanitized.email if sanitized else None
        info["phone"] = sanitized.phone if sanitized else None
        return {k: v for k, v in info.items() if v}

    # ========================================================================
    # CONTACTS
    # ========================================================================

    def add_contact(
        self,
        candidate: LeadCandidate,
        raw_contact: Union[ContactInput, Mapping[str, Any]],
        icp: Optional[ICPConfig] = None,
    ) -> Tuple[Optional[ContactCandidate], bool]:
        """
        Sanitize, classify, score and persist a contact for ``candidate``.

        Returns (contact, created). Rejected contacts, and new contacts past
        the ICP's max contacts per company, give (None, False).
        """
        sanitized = sanitize_contact(raw_contact)
        if sanitized is None:
            return None, False

        dedupe_key = sanitized.dedupe_key
        existing = self.candidates.find_contact(
            candidate.id, email=sanitized.email, full_name=sanitized.name, phone=sanitized.phone
        )
        if existing:
            merged = merge_contacts(self._as_sanitized(existing), sanitized)
            self._apply(existing, merged, candidate, icp)
            # A name- or phone-keyed contact moves to its email key once one is known
            merged_key = merged.dedupe_key
            if merged_key != existing.dedupe_key and not self.candidates.get_contact_by_dedupe_key(
                candidate.id, merged_key
            ):
                existing.dedupe_key = merged_key
            self.db.flush()
            return existing, False

        limit = icp.limits.max_contacts_per_company if icp else None
        if limit and self.candidates.count_contacts(candidate.id) >= limit:
            logger.debug(f"Contact limit {limit} reached for {candidate.domain}")
            return None, False

        contact = ContactCandidate(lead_candidate_id=candidate.id, dedupe_key=dedupe_key)
        self._apply(contact, sanitized, candidate, icp)
        self.db.add(contact)
        self.db.flush()
        return contact, True

    def add_contacts(
        self,
        candidate: LeadCandidate,
        raw_contacts: List[Union[ContactInput, Mapping[str, Any]]],
        icp: Optional[ICPConfig] = None,
    ) -> int:
        """Add several contacts; returns how many new rows were created."""
        created = 0
        for raw in raw_contacts:
            _, is_new = self.add_contact(candidate, raw, icp)
            created += int(is_new)
        return created

    @staticmethod
    def _as_sanitized(contact: ContactCandidate) -> SanitizedContact:
        return SanitizedContact(
            name=contact.full_name or "",
            first_name=contact.first_name,
            last_name=contact.last_name,
            email=contact.email,
            email_class=contact.email_class or "unknown",
            phone=contact.phone,
            phone_e164=contact.phone_e164,
            title=contact.title,
            linkedin=contact.linkedin_url,
        )

    def _apply(
        self,
        contact: ContactCandidate,
        data: SanitizedContact,
        candidate: LeadCandidate,
        icp: Optional[ICPConfig],
    ) -> None:
        contact.full_name = data.name or None
        contact.first_name = data.first_name
        contact.last_name = data.last_name
        contact.email = data.email
        contact.email_class = data.email_class
        contact.phone = data.phone
        contact.phone_e164 = data.phone_e164
        contact.linkedin_url = data.linkedin
        contact.title = data.title

        classified = normalize_title_and_persona(data.title)
        if classified:
            contact.normalized_title = classified.normalized_title
            contact.ladder = classified.ladder
            contact.department = classified.department
            contact.persona = classified.persona

        if icp:
            contact.score = calculate_contact_icp_score(
                ContactData(
                    email=data.email,
                    full_name=data.name or None,
                    title=data.title,
                    linkedin_url=data.linkedin,
                    company_domain=candidate.domain,
                ),
                icp,
                self.policy,
            )
        elif contact.score is None:
            contact.score = 0
