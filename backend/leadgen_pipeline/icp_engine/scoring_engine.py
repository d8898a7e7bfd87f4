"""
ICP fit scoring for companies and contacts.

Scores are on a 0-100 scale. Each category contributes to both the achieved
points and the maximum only when the ICP configures that dimension, so the
score reflects fit against what the user actually asked for. An ICP with no
targeting dimensions scores everything 0.

All weights and thresholds come from a ScoringPolicy (default:
DEFAULT_POLICY).
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from leadgen_pipeline.icp_engine.scorers import get_scorer
from leadgen_pipeline.policy import DEFAULT_POLICY, ScoringPolicy
from leadgen_pipeline.schemas.candidate import CompanyData, ContactData
from leadgen_pipeline.schemas.icp import ICPConfig

logger = logging.getLogger(__name__)

CompanyLike = Union[CompanyData, Mapping[str, Any]]
ContactLike = Union[ContactData, Mapping[str, Any]]
ICPLike = Union[ICPConfig, Mapping[str, Any], None]


@dataclass
class ScoreResult:
    """Result of scoring one company or contact against an ICP"""
    score: int  # 0-100
    achieved: float
    max_score: float
    breakdown: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RankedCompany:
    company: CompanyData
    icp_score: int


@dataclass
class RankedContact:
    contact: ContactData
    icp_score: int


# ============================================================================
# HELPERS
# ============================================================================

def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def to_icp_config(icp: ICPLike) -> ICPConfig:
    if isinstance(icp, ICPConfig):
        return icp
    return ICPConfig.model_validate(icp or {})


def _to_company(company: CompanyLike) -> CompanyData:
    if isinstance(company, CompanyData):
        return company
    return CompanyData.model_validate(company or {})


def _to_contact(contact: ContactLike) -> ContactData:
    if isinstance(contact, ContactData):
        return contact
    return ContactData.model_validate(contact or {})


def _normalize(achieved: float, max_score: float) -> int:
    if max_score <= 0:
        return 0
    return clamp_score(achieved / max_score * 100)


# ============================================================================
# COMPANY SCORING
# ============================================================================

def score_company(company: CompanyLike, icp: ICPLike, policy: ScoringPolicy = DEFAULT_POLICY) -> ScoreResult:
    """Score a company and return the per-category breakdown."""
    company = _to_company(company)
    icp = to_icp_config(icp)
    weights = policy.company

    achieved = 0.0
    max_score = 0.0
    breakdown = {}

    # 1. Industry (bidirectional substring)
    if icp.industries:
        scorer = get_scorer("match", {"targets": icp.industries, "bidirectional": True})
        fit = scorer.calculate_score(company.industry)
        achieved += fit * weights.industry
        max_score += weights.industry
        breakdown["industry"] = scorer.get_explanation(company.industry, fit)

    # 2. Tech stack (proportional overlap)
    if icp.tech_stack:
        scorer = get_scorer("overlap", {"required": icp.tech_stack})
        fit = scorer.calculate_score(company.tech_stack)
        achieved += min(weights.tech_stack, fit * weights.tech_stack)
        max_score += weights.tech_stack
        breakdown["tech_stack"] = scorer.get_explanation(company.tech_stack, fit)

    # 3. Geography (domain, description, name)
    if icp.geos:
        scorer = get_scorer("match", {"targets": icp.geos})
        haystack = [company.domain, company.description, company.company_name]
        fit = scorer.calculate_score(haystack)
        achieved += fit * weights.geography
        max_score += weights.geography
        breakdown["geography"] = scorer.get_explanation(company.domain, fit)

    # 4. Company size signal (description, name)
    if icp.company_sizes:
        scorer = get_scorer("match", {"targets": icp.company_sizes})
        fit = scorer.calculate_score([company.description, company.company_name])
        achieved += fit * weights.company_size
        max_score += weights.company_size
        breakdown["company_size"] = scorer.get_explanation(company.company_name, fit)

    # 5. Data completeness, a quality modifier on top of real targeting
    if icp.has_company_targeting():
        points = policy.completeness
        completeness = 0
        if company.company_name:
            completeness += points.company_name
        if company.description:
            completeness += points.description
        if company.industry:
            completeness += points.industry
        if company.tech_stack:
            completeness += points.tech_stack
        if company.contact_info.get("email"):
            completeness += points.contact_email
        achieved += min(weights.completeness, completeness)
        max_score += weights.completeness
        breakdown["completeness"] = f"Completeness: {completeness}/{weights.completeness}"

    return ScoreResult(
        score=_normalize(achieved, max_score),
        achieved=achieved,
        max_score=max_score,
        breakdown=breakdown,
    )


def calculate_company_icp_score(company: CompanyLike, icp: ICPLike,
                                policy: ScoringPolicy = DEFAULT_POLICY) -> int:
    return score_company(company, icp, policy).score


# ============================================================================
# CONTACT SCORING
# ============================================================================

def score_contact(contact: ContactLike, icp: ICPLike, policy: ScoringPolicy = DEFAULT_POLICY) -> ScoreResult:
    """
    Score a contact.

    Title match is binary-gated; the amount awarded depends on seniority.
    Reachability (LinkedIn, email, name, company domain) counts whenever the
    ICP configures any targeting dimension.
    """
    contact = _to_contact(contact)
    icp = to_icp_config(icp)
    weights = policy.contact

    achieved = 0.0
    max_score = 0.0
    breakdown = {}

    if icp.titles:
        max_score += weights.title
        scorer = get_scorer("match", {"targets": icp.titles, "bidirectional": True})
        if scorer.calculate_score(contact.title) == 1.0:
            title = contact.title.lower()
            is_senior = any(keyword in title for keyword in policy.senior_title_keywords)
            points = weights.title if is_senior else weights.title_non_senior
            achieved += points
            breakdown["title"] = f"Title match ({'senior' if is_senior else 'non-senior'}): +{points}"
        else:
            breakdown["title"] = "No title match"

    if icp.has_targeting():
        max_score += weights.linkedin + weights.email + weights.full_name + weights.company_domain

        if contact.linkedin_url:
            achieved += weights.linkedin

        if contact.email:
            email = contact.email.lower()
            is_consumer = any(domain in email for domain in policy.consumer_email_domains)
            achieved += weights.email_consumer if is_consumer else weights.email

        if contact.full_name and contact.full_name.strip():
            parts = contact.full_name.split()
            achieved += weights.full_name if len(parts) >= 2 else weights.partial_name

        if contact.company_domain:
            achieved += weights.company_domain

    return ScoreResult(
        score=_normalize(achieved, max_score),
        achieved=achieved,
        max_score=max_score,
        breakdown=breakdown,
    )


def calculate_contact_icp_score(contact: ContactLike, icp: ICPLike,
                                policy: ScoringPolicy = DEFAULT_POLICY) -> int:
    return score_contact(contact, icp, policy).score


# ============================================================================
# EXCLUSION & RANKING
# ============================================================================

def _domain_excluded(company: CompanyData, icp: ICPConfig) -> bool:
    if not company.domain or not icp.exclude_domains:
        return False
    domain = company.domain.lower()
    return any(excluded.lower() in domain for excluded in icp.exclude_domains)


def should_exclude_company(company: CompanyLike, icp: ICPLike, policy: ScoringPolicy = DEFAULT_POLICY,
                           score: Optional[int] = None) -> bool:
    """Excluded when the domain is on the ICP exclude list or the fit score is below threshold."""
    company = _to_company(company)
    icp = to_icp_config(icp)
    if _domain_excluded(company, icp):
        return True
    if score is None:
        score = calculate_company_icp_score(company, icp, policy)
    return score < policy.company_exclusion_threshold


def should_exclude_contact(contact: ContactLike, icp: ICPLike, policy: ScoringPolicy = DEFAULT_POLICY,
                           score: Optional[int] = None) -> bool:
    """Excluded when the contact has neither title nor email, or scores below threshold."""
    contact = _to_contact(contact)
    if not contact.title and not contact.email:
        return True
    if score is None:
        score = calculate_contact_icp_score(contact, icp, policy)
    return score < policy.contact_exclusion_threshold


def rank_companies_by_icp(companies: Sequence[CompanyLike], icp: ICPLike,
                          policy: ScoringPolicy = DEFAULT_POLICY) -> List[RankedCompany]:
    """Score, drop excluded, sort descending. Ties keep input order."""
    icp = to_icp_config(icp)
    ranked = []
    for raw in companies:
        company = _to_company(raw)
        score = calculate_company_icp_score(company, icp, policy)
        if not should_exclude_company(company, icp, policy, score=score):
            ranked.append(RankedCompany(company=company, icp_score=score))
    return sorted(ranked, key=lambda r: r.icp_score, reverse=True)


def rank_contacts_by_icp(contacts: Sequence[ContactLike], icp: ICPLike,
                         policy: ScoringPolicy = DEFAULT_POLICY) -> List[RankedContact]:
    icp = to_icp_config(icp)
    ranked = []
    for raw in contacts:
        contact = _to_contact(raw)
        score = calculate_contact_icp_score(contact, icp, policy)
        if not should_exclude_contact(contact, icp, policy, score=score):
            ranked.append(RankedContact(contact=contact, icp_score=score))
    return sorted(ranked, key=lambda r: r.icp_score, reverse=True)


# ============================================================================
# PIPELINE BLENDING
# ============================================================================

def blend_scores(icp_score: float, enrichment_score: Optional[float],
                 policy: ScoringPolicy = DEFAULT_POLICY) -> int:
    """Weighted blend of ICP fit and a candidate's prior (enrichment-derived) score."""
    prior = enrichment_score or 0
    blended = icp_score * policy.blend_icp_weight + prior * policy.blend_enrichment_weight
    return clamp_score(blended)
