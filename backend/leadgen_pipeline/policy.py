"""
Scoring & ranking policy.

All weights, thresholds and heuristic point values used by the ICP scoring
engine, the pipeline's score blending, and the link ranker live here so they
can be tuned (or swapped in tests) without touching algorithm code.

Bump ``POLICY_VERSION`` whenever a default value changes.
"""

from dataclasses import dataclass, field, replace
from typing import Tuple

POLICY_VERSION = "2025.1"


@dataclass(frozen=True)
class CompanyWeights:
    """Category weights for company fit (sum 100)."""
    industry: int = 30
    tech_stack: int = 25
    geography: int = 20
    completeness: int = 15
    company_size: int = 10


@dataclass(frozen=True)
class CompletenessPoints:
    """Sub-scores of the company data-completeness category (sum 15)."""
    company_name: int = 3
    description: int = 4
    industry: int = 3
    tech_stack: int = 3
    contact_email: int = 2


@dataclass(frozen=True)
class ContactWeights:
    """Category weights for contact fit."""
    title: int = 40
    title_non_senior: int = 30
    linkedin: int = 20
    email: int = 20
    email_consumer: int = 10
    full_name: int = 10
    partial_name: int = 5
    company_domain: int = 10


@dataclass(frozen=True)
class LinkHeuristicRule:
    """Add ``points`` when any keyword occurs in the lowercased URL."""
    name: str
    keywords: Tuple[str, ...]
    points: int


DEFAULT_LINK_RULES: Tuple[LinkHeuristicRule, ...] = (
    # High-yield pages
    LinkHeuristicRule("about", ("/about", "/about-us", "/company", "/who-we-are"), 12),
    LinkHeuristicRule("team", ("/team", "/our-team", "/leadership", "/people", "/staff"), 15),
    LinkHeuristicRule("contact", ("/contact", "/contact-us", "/contactus"), 18),
    LinkHeuristicRule("careers", ("/careers", "/jobs", "/join-us", "/work-with-us"), 10),
    LinkHeuristicRule("press", ("/press", "/media", "/newsroom"), 8),
    LinkHeuristicRule("blog", ("/blog", "/articles"), 5),
    LinkHeuristicRule("directory", ("/directory", "/staff-directory", "/team-directory"), 12),
    LinkHeuristicRule("contact_keywords", ("email", "reach", "support", "helpdesk", "sales-contact"), 3),
    # Low-yield pages
    LinkHeuristicRule("login", ("/login", "/signin", "/account"), -10),
    LinkHeuristicRule("legal", ("/privacy", "/terms", "/cookie", "/legal"), -8),
    LinkHeuristicRule("faq", ("/faq", "/frequently-asked-questions"), -6),
    LinkHeuristicRule(
        "catalog",
        ("/products", "/product", "/shop", "/store", "/catalog", "/menu", "/strains", "/strain", "/inventory"),
        -12
    ),
    LinkHeuristicRule(
        "marketing_cta",
        ("discover", "submit", "stay-in-the-loop", "newsletter", "subscribe", "age-verification", "age_verification"),
        -10
    ),
)


@dataclass(frozen=True)
class LinkHeuristicWeights:
    rules: Tuple[LinkHeuristicRule, ...] = DEFAULT_LINK_RULES
    static_asset_penalty: int = -25
    static_asset_extensions: Tuple[str, ...] = (
        "pdf", "jpg", "jpeg", "png", "gif", "svg", "webp", "css", "js",
        "zip", "rar", "7z", "mp3", "mp4", "mov", "avi", "wmv"
    )
    icp_token_bonus: int = 2
    visited_penalty: int = -50


@dataclass(frozen=True)
class ScoringPolicy:
    version: str = POLICY_VERSION

    company: CompanyWeights = field(default_factory=CompanyWeights)
    completeness: CompletenessPoints = field(default_factory=CompletenessPoints)
    contact: ContactWeights = field(default_factory=ContactWeights)

    senior_title_keywords: Tuple[str, ...] = (
        "ceo", "cto", "cfo", "vp", "vice president", "director", "head",
        "chief", "founder", "owner", "president"
    )
    consumer_email_domains: Tuple[str, ...] = ("gmail", "yahoo", "hotmail", "outlook")

    # Exclusion thresholds (fixed product policy)
    company_exclusion_threshold: int = 30
    contact_exclusion_threshold: int = 40

    # Pipeline score blending: ICP fit vs prior enrichment-derived score
    blend_icp_weight: float = 0.6
    blend_enrichment_weight: float = 0.4

    link: LinkHeuristicWeights = field(default_factory=LinkHeuristicWeights)

    def with_overrides(self, **changes) -> "ScoringPolicy":
        """Return a copy with some fields replaced (used for tuning experiments)."""
        return replace(self, **changes)


DEFAULT_POLICY = ScoringPolicy()
