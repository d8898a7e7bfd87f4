"""
ICP (Ideal Customer Profile) Engine.

Fit scoring for discovered companies and contacts.

Main components:
- Scorers: per-category strategies (substring match, set overlap)
- Scoring engine: weighted company/contact scores, exclusion, ranking, blending
- Insights: advisory review of an ICP configuration

Usage:
    from leadgen_pipeline.icp_engine import calculate_company_icp_score

    score = calculate_company_icp_score(company, icp)
"""

from leadgen_pipeline.icp_engine.scoring_engine import (
    ScoreResult,
    RankedCompany,
    RankedContact,
    round_half_up,
    clamp_score,
    score_company,
    score_contact,
    calculate_company_icp_score,
    calculate_contact_icp_score,
    should_exclude_company,
    should_exclude_contact,
    rank_companies_by_icp,
    rank_contacts_by_icp,
    blend_scores,
    to_icp_config,
)
from leadgen_pipeline.icp_engine.insights import ICPInsights, generate_icp_insights

__all__ = [
    "ScoreResult",
    "RankedCompany",
    "RankedContact",
    "round_half_up",
    "clamp_score",
    "score_company",
    "score_contact",
    "calculate_company_icp_score",
    "calculate_contact_icp_score",
    "should_exclude_company",
    "should_exclude_contact",
    "rank_companies_by_icp",
    "rank_contacts_by_icp",
    "blend_scores",
    "to_icp_config",
    "ICPInsights",
    "generate_icp_insights",
]
