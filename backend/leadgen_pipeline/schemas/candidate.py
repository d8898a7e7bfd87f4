"""
Pydantic schemas for company and contact candidates.
"""
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field, field_validator


class CompanyData(BaseModel):
    """Company fields consumed by ICP scoring."""

    domain: Optional[str] = None
    company_name: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list)
    contact_info: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("tech_stack", mode="before")
    @classmethod
    def coerce_tech_stack(cls, v):
        # Crawlers sometimes store {"techStack": [...]} instead of a bare list
        if v is None:
            return []
        if isinstance(v, dict):
            v = v.get("techStack") or v.get("tech_stack") or []
        if isinstance(v, str):
            v = v.split(",")
        return [str(t).strip() for t in v if t and str(t).strip()]

    @field_validator("contact_info", mode="before")
    @classmethod
    def coerce_contact_info(cls, v):
        return v if isinstance(v, dict) else {}

    @classmethod
    def from_candidate(cls, candidate) -> "CompanyData":
        """Build from a LeadCandidate row."""
        return cls(
            domain=candidate.domain,
            company_name=candidate.company_name,
            description=candidate.description,
            industry=candidate.industry,
            tech_stack=candidate.tech_stack,
            contact_info=candidate.contact_info,
        )


class ContactData(BaseModel):
    """Contact fields consumed by ICP scoring."""

    email: Optional[str] = None
    full_name: Optional[str] = None
    title: Optional[str] = None
    linkedin_url: Optional[str] = None
    company_domain: Optional[str] = None


class ContactInput(BaseModel):
    """Raw contact fragment as scraped from a page."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None
    linkedin: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def stringify(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)


class SanitizedContact(BaseModel):
    """Contact after the quality gates in services.normalization."""

    name: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    email_class: str = "unknown"  # personal, role, generic, unknown
    phone: Optional[str] = None  # display format
    phone_e164: Optional[str] = None
    title: Optional[str] = None
    linkedin: Optional[str] = None

    @property
    def dedupe_key(self) -> str:
        return (self.email or self.name or self.phone or "").strip().lower()
