"""
Advisory insights about an ICP configuration.

Looks only at the configuration itself; nothing here feeds into scoring.
"""
from dataclasses import dataclass, field
from typing import List

from leadgen_pipeline.icp_engine.scoring_engine import ICPLike, to_icp_config


@dataclass
class ICPInsights:
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def generate_icp_insights(icp: ICPLike) -> ICPInsights:
    icp = to_icp_config(icp)
    insights = ICPInsights()

    if icp.industries:
        n = len(icp.industries)
        insights.strengths.append(f"Targeting {n} specific {_plural(n, 'industry', 'industries')}")
    else:
        insights.weaknesses.append("No industry targeting specified")
        insights.recommendations.append("Add target industries to improve lead quality")

    if icp.titles:
        n = len(icp.titles)
        insights.strengths.append(f"Targeting {n} specific job {_plural(n, 'title', 'titles')}")
    else:
        insights.weaknesses.append("No job titles specified")
        insights.recommendations.append("Add target job titles (e.g., CEO, CTO, Marketing Director)")

    if icp.tech_stack:
        n = len(icp.tech_stack)
        insights.strengths.append(f"Filtering by {n} {_plural(n, 'technology', 'technologies')}")
    else:
        insights.recommendations.append("Consider adding tech stack requirements for more precise targeting")

    if icp.geos:
        insights.strengths.append(f"Geographic targeting: {', '.join(icp.geos)}")
    else:
        insights.recommendations.append("Add geographic targeting to focus on specific markets")

    if not icp.company_sizes:
        insights.recommendations.append("Add company size signals (e.g., startup, enterprise)")

    if not icp.exclude_domains:
        insights.recommendations.append("Add competitor domains to exclude list")

    return insights
