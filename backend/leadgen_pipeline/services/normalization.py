"""
Edge normalizers and quality guards for scraped lead data.

Every function here is total: malformed input degrades to an empty/safe value
(``""``, ``None``, ``False``, ``[]``) instead of raising, so one bad field never
aborts a whole extraction.
"""

import re
import html
import base64
import binascii
import codecs
import logging
from urllib.parse import unquote
from typing import Any, Dict, List, Mapping, Optional, Union
import phonenumbers
from nameparser import HumanName
from disposable_email_domains import blocklist as disposable_domains

from leadgen_pipeline.schemas.candidate import ContactInput, SanitizedContact

logger = logging.getLogger(__name__)


# ============================================================================
# LOOKUP TABLES
# ============================================================================

# Header/navigation labels that leak into person-name fields
NAV_LABELS = frozenset([
    "about", "about us", "our story", "who we are",
    "team", "our team", "meet the team", "leadership", "leadership team", "people", "staff",
    "contact", "contact me", "contact us", "get in touch", "reach out",
    "careers", "jobs", "join us", "work with us",
    "company", "company info", "company profile",
    "press", "press & media", "media", "newsroom",
    "blog", "articles", "resources", "learn more",
    "privacy policy", "terms of service", "terms", "legal",
    "support", "help", "faq", "documentation", "home",
])

# Whitespace-stripped lowercase key -> readable label
CONCATENATION_FIXES = {
    "contactme": "Contact me",
    "contactus": "Contact us",
    "getintouch": "Get in touch",
    "reachout": "Reach out",
    "aboutus": "About us",
    "ourstory": "Our story",
    "whoweare": "Who we are",
    "meettheteam": "Meet the team",
    "teammembers": "Team members",
    "leadershipteam": "Leadership team",
    "careerspage": "Careers page",
    "joinus": "Join us",
    "workwithus": "Work with us",
    "pressmedia": "Press & media",
    "newsroom": "Newsroom",
    "privacypolicy": "Privacy policy",
    "termsofservice": "Terms of service",
    "learnmore": "Learn more",
    "resources": "Resources",
}

TECH_ALIASES = {
    "reactjs": "React", "react": "React",
    "vuejs": "Vue.js", "vue": "Vue.js",
    "angularjs": "Angular", "angular": "Angular",
    "nextjs": "Next.js", "next": "Next.js",
    "nuxtjs": "Nuxt.js", "nuxt": "Nuxt.js",
    "gatsby": "Gatsby",
    "nodejs": "Node.js", "node": "Node.js",
    "expressjs": "Express", "express": "Express",
    "laravel": "Laravel",
    "rails": "Ruby on Rails", "ruby on rails": "Ruby on Rails",
    "django": "Django",
    "wordpress": "WordPress", "wp": "WordPress",
    "shopifyplus": "Shopify", "shopify": "Shopify",
    "hubspot": "HubSpot",
    "salesforce": "Salesforce",
    "pardot": "Pardot",
    "marketo": "Marketo",
    "intercom": "Intercom",
    "zendesk": "Zendesk",
    "drift": "Drift",
}

EMAIL_SHAPE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Obfuscated "@" / "." spellings: "[at]", "(dot)", " at ", fullwidth "＠"
OBFUSCATED_AT = re.compile(
    r"\s*[\[\(\{<]\s*(?:at|@|arroba)\s*[\]\)\}>]\s*|\s+(?:at|arroba)\s+|\s*\uFF20\s*",
    re.IGNORECASE,
)
OBFUSCATED_DOT = re.compile(
    r"\s*[\[\(\{<]\s*(?:dot|punkt|\.)\s*[\]\)\}>]\s*|\s+(?:dot|punkt)\s+",
    re.IGNORECASE,
)
ZERO_WIDTH = re.compile(r"[\u200B-\u200D\u2060\uFEFF]")
EMAIL_IN_TEXT = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

LOW_VALUE_EMAIL_PATTERNS = [
    re.compile(r"no[-_]?reply@"),
    re.compile(r"do[-_]?not[-_]?reply@"),
    re.compile(r"^(mailer[-_]?daemon|bounces?|autoresponder)@"),
    re.compile(r"@(example|domain|email|placeholder)\.com$"),
    re.compile(r"@example\.(org|net)$"),
    re.compile(r"@sentry"),
    re.compile(r"@wix"),
    re.compile(r"@squarespace"),
]

ROLE_EMAIL_LOCALS = frozenset([
    "info", "contact", "hello", "support", "help", "sales", "billing",
    "admin", "webmaster", "postmaster", "service", "cs", "customer",
    "team", "hr", "jobs", "careers", "press", "media",
    "marketing", "growth", "pr", "communications", "news",
    "finance", "accounting", "legal", "compliance", "security",
    "recruiting", "talent", "people", "it", "ops", "operations",
])


# ============================================================================
# STRING HELPERS
# ============================================================================

def collapse_repeats(value: Optional[str]) -> str:
    """Drop consecutive duplicate tokens, case-insensitively ("Direct Direct" -> "Direct")."""
    tokens = (value or "").split()
    out = []
    for i, token in enumerate(tokens):
        if i == 0 or token.lower() != tokens[i - 1].lower():
            out.append(token)
    return " ".join(out)


def capitalize_words(value: Optional[str]) -> str:
    return " ".join(word[0].upper() + word[1:].lower() for word in (value or "").split())


def prefer_informative(a: Optional[str], b: Optional[str]) -> str:
    """Return the longer of two trimmed strings; ties keep ``a``."""
    a = (a or "").strip()
    b = (b or "").strip()
    return b if len(b) > len(a) else a


def merge_string_sets(a: Any, b: Any) -> List[str]:
    """Ordered union of two string lists, trimmed, blanks dropped."""
    merged = []
    for source in (a, b):
        if not isinstance(source, (list, tuple)):
            continue
        for item in source:
            text = str(item).strip() if item is not None else ""
            if text and text not in merged:
                merged.append(text)
    return merged


def normalize_domain(raw: Optional[str]) -> str:
    """"https://www.Acme.com/about" -> "acme.com"."""
    if not raw:
        return ""
    domain = str(raw).strip().lower()
    domain = re.sub(r"^[a-z][a-z0-9+.-]*://", "", domain)
    domain = re.split(r"[/?#]", domain, maxsplit=1)[0]
    domain = domain.split("@")[-1].split(":")[0]
    if domain.startswith("www."):
        domain = domain[4:]
    return domain.strip(".")


# ============================================================================
# EDGE NORMALIZERS
# ============================================================================

def fix_concatenated_words(raw: Optional[str]) -> str:
    """
    Turn scraped headings into readable labels.

    "ContactUs" -> "Contact us", "meet-the-team" -> "Meet the team",
    "Direct Direct Line" -> "Direct Line". Idempotent.
    """
    if not raw:
        return ""
    s = str(raw).strip()
    s = re.sub(r"([a-z])([A-Z])", r"\1 \2", s)
    s = re.sub(r"[-_]+", " ", s)
    s = collapse_repeats(s)

    key = "".join(s.split()).lower()
    return CONCATENATION_FIXES.get(key, s)


def is_nav_label(raw: Optional[str]) -> bool:
    if not raw:
        return False
    return fix_concatenated_words(raw).lower() in NAV_LABELS


def _decode_escapes(text: str) -> str:
    text = ZERO_WIDTH.sub("", html.unescape(text))
    text = re.sub(r"\\x([0-9A-Fa-f]{2})", lambda m: chr(int(m.group(1), 16)), text)
    text = re.sub(r"\\u([0-9A-Fa-f]{4})", lambda m: chr(int(m.group(1), 16)), text)
    if re.search(r"%[0-9A-Fa-f]{2}", text):
        text = unquote(text)
    return text


def _replace_at_and_dot(text: str) -> str:
    text = re.sub(r"\s+", " ", text)
    text = OBFUSCATED_AT.sub("@", text)
    return OBFUSCATED_DOT.sub(".", text)


def _decode_base64(payload: str) -> str:
    try:
        decoded = base64.b64decode(payload, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return ""
    return decoded if "@" in decoded else ""


def extract_emails(text: Optional[str], hrefs: Optional[List[str]] = None) -> List[str]:
    """
    Find email addresses in page text and link targets, undoing common
    obfuscation on the way.

    Handles "[at]"/"(dot)"/" at " spellings, zero-width characters, HTML
    entities, ``\\xNN``/``\\uNNNN`` and percent escapes, ROT13 ``znvygb:``
    links, ``mailto:`` hrefs and base64 payloads in href query strings.
    Results are lowercased and de-duplicated in order of appearance.
    """
    found: List[str] = []

    def collect(value: str) -> None:
        for match in EMAIL_IN_TEXT.findall(_replace_at_and_dot(value)):
            email = match.lower()
            if email not in found:
                found.append(email)

    decoded = _decode_escapes(str(text or ""))
    rot13_links = re.findall(r"znvygb:\S+", decoded, re.IGNORECASE)
    collect(re.sub(r"znvygb:\S+", " ", decoded, flags=re.IGNORECASE))
    for segment in rot13_links:
        collect(codecs.encode(segment, "rot13"))

    for href in hrefs or []:
        href = _decode_escapes(str(href or "")).strip()
        if href.lower().startswith("mailto:"):
            collect(href[len("mailto:"):].split("?", 1)[0])
            continue
        payload = re.search(r"[?&#=]([A-Za-z0-9+/]{8,}={0,2})$", href)
        if payload:
            collect(_decode_base64(payload.group(1)))
        collect(href)

    return found


def deobfuscate_email(raw: Optional[str]) -> str:
    """
    Recover a single address from an obfuscated email field.

    "jane [at] acme [dot] com" -> "jane@acme.com",
    "mailto:Jane@Acme.io?subject=Hi" -> "jane@acme.io". Values with no
    recoverable address come back stripped and otherwise untouched.
    """
    if not raw:
        return ""
    text = str(raw).strip()
    if text.lower().startswith("mailto:"):
        text = text[len("mailto:"):].split("?", 1)[0]
    emails = extract_emails(text)
    return emails[0] if emails else text


def should_ignore_email(raw: Optional[str]) -> bool:
    """
    True when an address is not worth keeping.

    Empty input is ignored (fail-closed), as are malformed addresses,
    no-reply/bounce senders, placeholder and disposable domains and
    CMS/monitoring infrastructure (wix, squarespace, sentry).
    """
    if not raw:
        return True
    email = str(raw).strip().lower()
    if not EMAIL_SHAPE.match(email):
        return True
    if email.split("@", 1)[1] in disposable_domains:
        return True
    return any(pattern.search(email) for pattern in LOW_VALUE_EMAIL_PATTERNS)


def classify_email(raw: Optional[str]) -> str:
    """Return "personal", "role", "generic" or "unknown"."""
    email = (raw or "").strip().lower()
    if not EMAIL_SHAPE.match(email):
        return "unknown"
    local = email.split("@", 1)[0]
    if local in ROLE_EMAIL_LOCALS:
        return "role"
    if re.search(r"[._-]", local):
        return "personal"
    return "generic"


def normalize_tech_stack(value: Any) -> List[str]:
    """Canonicalize a tech list or ``,``/``;``/newline separated string."""
    if isinstance(value, str):
        tokens = re.split(r"[,;\n]", value)
    elif isinstance(value, (list, tuple)):
        tokens = [str(item) for item in value if item]
    else:
        return []

    stack = []
    for token in tokens:
        token = token.strip()
        if not token:
            continue
        canonical = TECH_ALIASES.get(token.lower()) or capitalize_words(token)
        if canonical not in stack:
            stack.append(canonical)
    return stack


def normalize_phone_digits(raw: Optional[str]) -> str:
    """
    Display-format a phone number.

    11 digits starting with 1 -> "+1 (AAA) MMM-EEEE"; 10 digits ->
    "(AAA) MMM-EEEE"; anything else -> "+<digits>"; no digits -> "".
    """
    digits = re.sub(r"\D+", "", str(raw or ""))
    if not digits:
        return ""
    if len(digits) == 11 and digits.startswith("1"):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[0:3]}) {digits[3:6]}-{digits[6:]}"
    return f"+{digits}"


def to_e164(phone: Optional[str], default_region: str = "US") -> Optional[str]:
    """E.164 form of a phone number, or None when it does not validate."""
    if not phone:
        return None

    try:
        cleaned = re.sub(r"[\s\-\(\)\.]", "", phone)
        parsed = phonenumbers.parse(cleaned, default_region)
        if phonenumbers.is_valid_number(parsed):
            return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    except phonenumbers.NumberParseException:
        logger.debug(f"Failed to parse phone number: {phone}")

    return None


def split_name(full_name: Optional[str]) -> Dict[str, Optional[str]]:
    if not full_name:
        return {"first_name": None, "last_name": None}
    parsed = HumanName(full_name)
    return {
        "first_name": parsed.first or None,
        "last_name": parsed.last or None,
    }


def normalize_name_candidate(raw: Optional[str]) -> str:
    """Clean a person-name candidate; navigation labels are rejected with ""."""
    s = fix_concatenated_words(raw)
    if is_nav_label(s):
        return ""
    return capitalize_words(collapse_repeats(s))


# ============================================================================
# CONTACTS
# ============================================================================

def sanitize_contact(contact: Union[ContactInput, Mapping[str, Any]]) -> Optional[SanitizedContact]:
    """
    Apply the per-field quality gates to a scraped contact.

    Returns None when nothing identifying survives: no name, no email and
    no phone.
    """
    if isinstance(contact, ContactInput):
        raw = contact
    else:
        raw = ContactInput.model_validate(dict(contact or {}))

    name = normalize_name_candidate(raw.name)

    email = deobfuscate_email(raw.email) or None
    if email and should_ignore_email(email):
        email = None
    elif email:
        email = email.lower()

    phone = normalize_phone_digits(raw.phone) or None
    title = fix_concatenated_words(raw.title) or None

    linkedin = (raw.linkedin or "").strip()
    if "linkedin.com/" not in linkedin.lower():
        linkedin = None

    if not name and not email and not phone:
        return None

    return SanitizedContact(
        name=name,
        **split_name(name),
        email=email,
        email_class=classify_email(email),
        phone=phone,
        phone_e164=to_e164(phone),
        title=title,
        linkedin=linkedin,
    )


def merge_contacts(a: SanitizedContact, b: SanitizedContact) -> SanitizedContact:
    """Combine two records for the same person, keeping the more informative value per field."""
    name = prefer_informative(a.name, b.name)
    email = a.email or b.email
    phone = a.phone or b.phone
    return SanitizedContact(
        name=name,
        **split_name(name),
        email=email,
        email_class=classify_email(email),
        phone=phone,
        phone_e164=a.phone_e164 or b.phone_e164,
        title=prefer_informative(a.title, b.title) or None,
        linkedin=a.linkedin or b.linkedin,
    )
