"""
Job title classification.

Maps a free-text title to a seniority ladder rung, a department and a buying
persona, plus a canonical display title:

    >>> normalize_title_and_persona("VP of Sales")
    NormalizedTitle(normalized_title='VP of Sales', ladder='VP', department='SALES',
                    persona='BUSINESS_DECISION_MAKER')

Pure and deterministic; no external calls.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

LADDERS = ("C-SUITE", "VP", "DIRECTOR", "MANAGER", "IC", "OTHER")
DEPARTMENTS = (
    "ENGINEERING", "PRODUCT", "MARKETING", "SALES", "HR", "FINANCE",
    "OPERATIONS", "IT", "DATA", "CUSTOMER_SUCCESS", "OTHER",
)
PERSONAS = (
    "TECH_DECISION_MAKER", "BUSINESS_DECISION_MAKER", "PEOPLE_OPS",
    "FINANCE_OPS", "RECRUITER", "INDIVIDUAL_CONTRIBUTOR",
)

TECH_DEPARTMENTS = ("ENGINEERING", "IT", "DATA")

DEPARTMENT_LABELS = {
    "ENGINEERING": "Engineering",
    "PRODUCT": "Product",
    "MARKETING": "Marketing",
    "SALES": "Sales",
    "HR": "HR",
    "FINANCE": "Finance",
    "OPERATIONS": "Operations",
    "IT": "IT",
    "DATA": "Data",
    "CUSTOMER_SUCCESS": "Customer Success",
}

RUNG_LABELS = {"VP": "VP", "DIRECTOR": "Director", "MANAGER": "Manager"}


def _compile(*patterns: str) -> List[re.Pattern]:
    return [re.compile(p) for p in patterns]


# Scanned top to bottom; first matching entry wins. The trailing entries
# re-route security, QA and design titles that no earlier group claimed.
DEPARTMENT_MATCHERS: List[Tuple[str, List[re.Pattern]]] = [
    ("ENGINEERING", _compile(
        r"\bengineer", r"\bcto\b", r"chief technology", r"devops", r"\bsre\b",
        r"developer", r"software", r"platform", r"backend", r"frontend",
    )),
    ("PRODUCT", _compile(r"\bproduct\b", r"\bcpo\b", r"\bpm\b")),
    ("MARKETING", _compile(
        r"marketing", r"growth", r"demand gen", r"\bseo\b", r"content", r"brand",
        r"communications?", r"\bpr\b", r"public relations", r"\bcmo\b",
    )),
    ("SALES", _compile(
        r"sales", r"revenue", r"account executive", r"\bae\b", r"\bsdr\b", r"\bbdr\b",
        r"account manager", r"\bcro\b", r"business development",
    )),
    ("HR", _compile(
        r"\bhr\b", r"human resources", r"people ops?", r"talent", r"recruit", r"chief people",
    )),
    ("FINANCE", _compile(r"financ", r"\bcfo\b", r"accounting", r"controller", r"fp&a")),
    ("OPERATIONS", _compile(r"\boperations?\b", r"\bcoo\b", r"\bops\b", r"chief operating")),
    ("IT", _compile(
        r"\bit\b", r"information technology", r"systems? admin", r"\bcio\b",
        r"infrastructure", r"chief information officer",
    )),
    ("DATA", _compile(
        r"\bdata\b", r"analytics?", r"\bbi\b", r"scientist", r"\bcdo\b",
        r"machine learning", r"\bai\b",
    )),
    ("CUSTOMER_SUCCESS", _compile(
        r"customer success", r"\bcs manager", r"support", r"helpdesk",
        r"customer experience", r"\bcx\b",
    )),
    ("ENGINEERING", _compile(r"security", r"infosec", r"\bciso\b", r"secops")),
    ("ENGINEERING", _compile(r"quality assurance", r"\bqa\b", r"\btest(ing|er)?\b")),
    ("PRODUCT", _compile(r"design", r"\bux\b", r"\bui\b", r"user experience")),
]

LADDER_MATCHERS: List[Tuple[str, List[re.Pattern]]] = [
    ("C-SUITE", _compile(
        r"\bceo\b", r"chief executive",
        r"\bcto\b", r"chief technology",
        r"\bcfo\b", r"chief financial",
        r"\bcoo\b", r"chief operating",
        r"\bcmo\b", r"chief marketing officer",
        r"\bcpo\b", r"chief product officer",
        r"\bcio\b", r"chief information officer",
        r"\bciso\b", r"chief information security officer",
        r"\bcdo\b", r"chief data officer",
        r"\bcro\b", r"chief revenue officer",
        r"\bcco\b", r"chief compliance officer",
        r"chief people officer",
    )),
    ("VP", _compile(r"\bs?vp\b", r"\bevp\b", r"vice president")),
    ("DIRECTOR", _compile(r"\bdirector\b", r"\bhead of\b")),
    ("MANAGER", _compile(r"\bmanager\b", r"\blead\b", r"\bowner of\b")),
    ("IC", _compile(
        r"\bengineer\b", r"\bdeveloper\b", r"\bdesigner\b", r"\banalyst\b",
        r"\bspecialist\b", r"\bassociate\b", r"\bcoordinator\b",
    )),
]

# Checked in order; CISO before CIO so "information security" is not read as CIO.
CHIEF_OFFICER_TITLES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\bciso\b|chief information security"), "Chief Information Security Officer"),
    (re.compile(r"\bcto\b|chief technology"), "Chief Technology Officer"),
    (re.compile(r"\bcfo\b|chief financial"), "Chief Financial Officer"),
    (re.compile(r"\bcoo\b|chief operating"), "Chief Operating Officer"),
    (re.compile(r"\bcmo\b|chief marketing"), "Chief Marketing Officer"),
    (re.compile(r"chief people"), "Chief People Officer"),
    (re.compile(r"\bcpo\b|chief product"), "Chief Product Officer"),
    (re.compile(r"\bcio\b|chief information officer"), "Chief Information Officer"),
    (re.compile(r"\bcdo\b|chief data"), "Chief Data Officer"),
    (re.compile(r"\bcro\b|chief revenue"), "Chief Revenue Officer"),
    (re.compile(r"\bcco\b|chief compliance"), "Chief Compliance Officer"),
]

RECRUITING_KEYWORDS = re.compile(r"recruit|talent|sourcer")
SECURITY_KEYWORDS = re.compile(r"\bciso\b|security|infosec|compliance")
TECHNOLOGY_KEYWORDS = re.compile(r"technology|infrastructure|platform|security|compliance|\bdata\b")


@dataclass(frozen=True)
class NormalizedTitle:
    normalized_title: str
    ladder: str
    department: str
    persona: str


def _first_match(text: str, matchers: List[Tuple[str, List[re.Pattern]]], default: str) -> str:
    for label, patterns in matchers:
        if any(p.search(text) for p in patterns):
            return label
    return default


def detect_department(title: str) -> str:
    return _first_match(title.lower(), DEPARTMENT_MATCHERS, "OTHER")


def detect_ladder(title: str) -> str:
    return _first_match(title.lower(), LADDER_MATCHERS, "OTHER")


def to_canonical(title: str, ladder: str, department: str) -> str:
    """Canonical display title; IC and OTHER titles pass through unchanged."""
    t = title.lower()
    if ladder == "C-SUITE":
        for pattern, canonical in CHIEF_OFFICER_TITLES:
            if pattern.search(t):
                return canonical
        return "Chief Executive Officer"

    if ladder in RUNG_LABELS:
        rung = RUNG_LABELS[ladder]
        if department == "OTHER":
            return rung
        return f"{rung} of {DEPARTMENT_LABELS[department]}"

    return title


def derive_persona(ladder: str, department: str, title: str) -> str:
    t = title.lower()
    if RECRUITING_KEYWORDS.search(t):
        return "RECRUITER"
    if department == "FINANCE":
        return "FINANCE_OPS"
    if department == "HR":
        return "PEOPLE_OPS"
    if SECURITY_KEYWORDS.search(t):
        return "TECH_DECISION_MAKER"

    if ladder in ("C-SUITE", "VP", "DIRECTOR"):
        if department in TECH_DEPARTMENTS or TECHNOLOGY_KEYWORDS.search(t):
            return "TECH_DECISION_MAKER"
        return "BUSINESS_DECISION_MAKER"

    if ladder == "MANAGER" and department in TECH_DEPARTMENTS:
        return "TECH_DECISION_MAKER"

    return "INDIVIDUAL_CONTRIBUTOR"


def normalize_title_and_persona(raw_title: Optional[str]) -> Optional[NormalizedTitle]:
    """Classify a raw job title; None for empty or whitespace-only input."""
    title = (raw_title or "").strip()
    if not title:
        return None

    department = detect_department(title)
    ladder = detect_ladder(title)
    return NormalizedTitle(
        normalized_title=to_canonical(title, ladder, department),
        ladder=ladder,
        department=department,
        persona=derive_persona(ladder, department, title),
    )
