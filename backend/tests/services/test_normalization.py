# tests/services/test_normalization.py
"""
Tests for the edge normalizers and contact quality gates.

Run with: pytest tests/services/test_normalization.py -v
"""

import random
import string

import pytest

from leadgen_pipeline.schemas.candidate import ContactInput, SanitizedContact
from leadgen_pipeline.services.normalization import (
    capitalize_words,
    classify_email,
    collapse_repeats,
    deobfuscate_email,
    extract_emails,
    fix_concatenated_words,
    is_nav_label,
    merge_contacts,
    merge_string_sets,
    normalize_domain,
    normalize_name_candidate,
    normalize_phone_digits,
    normalize_tech_stack,
    prefer_informative,
    sanitize_contact,
    should_ignore_email,
    to_e164,
)

pytestmark = pytest.mark.unit


def _random_label(rng):
    alphabet = string.ascii_letters + "  -_" + "éß"
    words = ["contact", "us", "Team", "aboutUs", "ContactMe", "Direct", "direct"]
    parts = []
    for _ in range(rng.randint(0, 6)):
        if rng.random() < 0.5:
            parts.append(rng.choice(words))
        else:
            parts.append("".join(rng.choice(alphabet) for _ in range(rng.randint(1, 8))))
    return rng.choice(["", " ", "-", "_"]).join(parts)


# ============================================================================
# TEST: fix_concatenated_words
# ============================================================================

class TestFixConcatenatedWords:

    @pytest.mark.parametrize("raw,expected", [
        ("ContactMe", "Contact me"),
        ("contactus", "Contact us"),
        ("about-us", "About us"),
        ("meet_the_team", "Meet the team"),
        ("JaneSmith", "Jane Smith"),
        ("Direct Direct Line", "Direct Line"),
        ("  lots   of   space ", "lots of space"),
    ])
    def test_known_cases(self, raw, expected):
        assert fix_concatenated_words(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_input(self, raw):
        assert fix_concatenated_words(raw) == ""

    @pytest.mark.parametrize("seed", range(25))
    def test_idempotent(self, seed):
        rng = random.Random(seed)
        for _ in range(40):
            s = _random_label(rng)
            once = fix_concatenated_words(s)
            assert fix_concatenated_words(once) == once

    def test_collapse_then_dictionary_is_stable(self):
        once = fix_concatenated_words("about about us")
        assert once == "About us"
        assert fix_concatenated_words(once) == once


# ============================================================================
# TEST: nav labels & names
# ============================================================================

class TestNavLabelsAndNames:

    @pytest.mark.parametrize("raw", ["Contact Us", "ABOUT", "privacy policy", "OurTeam", "get-in-touch"])
    def test_nav_labels_detected(self, raw):
        assert is_nav_label(raw) is True

    @pytest.mark.parametrize("raw", [None, "", "Jane Smith", "Acme Robotics"])
    def test_non_nav_labels(self, raw):
        assert is_nav_label(raw) is False

    def test_name_candidate_rejects_nav_label(self):
        assert normalize_name_candidate("Contact Us") == ""

    def test_name_candidate_splits_and_title_cases(self):
        result = normalize_name_candidate("JaneSmith")
        assert result == "Jane Smith"
        assert result != "Contact Us"

    def test_name_candidate_collapses_repeats(self):
        assert normalize_name_candidate("jane jane DOE") == "Jane Doe"


# ============================================================================
# TEST: emails
# ============================================================================

class TestEmails:

    @pytest.mark.parametrize("email", [
        "noreply@acme.com",
        "no-reply@acme.com",
        "do_not_reply@acme.com",
        "donotreply@acme.com",
        "mailer-daemon@acme.com",
        "jane@example.com",
        "jane@domain.com",
        "info@wix.com",
        "abc123@sentry.io",
        "hello@squarespace.com",
        "someone@mailinator.com",
        "not-an-email",
        "two@@ats.com",
        "",
        None,
    ])
    def test_ignored(self, email):
        assert should_ignore_email(email) is True

    @pytest.mark.parametrize("email", ["jane@acme.com", "Jane.Doe@Acme.co.uk", "sales@acme.io"])
    def test_kept(self, email):
        assert should_ignore_email(email) is False

    @pytest.mark.parametrize("email,expected", [
        ("info@acme.com", "role"),
        ("sales@acme.com", "role"),
        ("jane.doe@acme.com", "personal"),
        ("j_doe@acme.com", "personal"),
        ("jane@acme.com", "generic"),
        ("garbage", "unknown"),
        (None, "unknown"),
    ])
    def test_classify_email(self, email, expected):
        assert classify_email(email) == expected


class TestEmailDeobfuscation:

    @pytest.mark.parametrize("raw,expected", [
        ("jane [at] acme [dot] com", "jane@acme.com"),
        ("jane(at)acme(dot)io", "jane@acme.io"),
        ("Jane at Acme dot co dot uk", "jane@acme.co.uk"),
        ("jane\u200b@acme\u200d.com", "jane@acme.com"),
        ("jane&#64;acme&#46;com", "jane@acme.com"),
        ("jane\\x40acme.com", "jane@acme.com"),
        ("jane%40acme.com", "jane@acme.com"),
        ("mailto:Jane@Acme.io?subject=Hello", "jane@acme.io"),
        ("jane@acme.at", "jane@acme.at"),
    ])
    def test_deobfuscate(self, raw, expected):
        assert deobfuscate_email(raw) == expected

    @pytest.mark.parametrize("raw", ["", None])
    def test_deobfuscate_empty(self, raw):
        assert deobfuscate_email(raw) == ""

    def test_unrecoverable_value_passes_through(self):
        assert deobfuscate_email("  not-an-email ") == "not-an-email"

    def test_extract_from_text(self):
        text = "Sales: sales [at] acme [dot] com | Press: PRESS@acme.com, sales@acme.com"
        assert extract_emails(text) == ["sales@acme.com", "press@acme.com"]

    def test_extract_rot13_mailto(self):
        assert extract_emails('<a href="znvygb:wnar@npzr.pbz">Email</a>') == ["jane@acme.com"]

    def test_extract_from_hrefs(self):
        hrefs = [
            "mailto:max%40acme.io?subject=Hi",
            "https://acme.io/contact?e=amFuZUBhY21lLmlv",
            "https://acme.io/about",
        ]
        assert extract_emails("", hrefs) == ["max@acme.io", "jane@acme.io"]

    def test_extract_nothing(self):
        assert extract_emails(None) == []
        assert extract_emails("Meet us at the office") == []


# ============================================================================
# TEST: tech stack, phones, strings
# ============================================================================

class TestTechStack:

    def test_aliases_and_dedupe(self):
        assert normalize_tech_stack(["reactjs", "React", "nodejs", "stripe"]) == ["React", "Node.js", "Stripe"]

    def test_delimited_string(self):
        assert normalize_tech_stack("wordpress; hubspot\nreact,, ") == ["WordPress", "HubSpot", "React"]

    @pytest.mark.parametrize("value", [None, 42, {"techStack": ["react"]}])
    def test_unsupported_input(self, value):
        assert normalize_tech_stack(value) == []


class TestPhones:

    @pytest.mark.parametrize("raw,expected", [
        ("1-555-867-5309", "+1 (555) 867-5309"),
        ("5558675309", "(555) 867-5309"),
        ("(555) 867 5309", "(555) 867-5309"),
        ("+44 20 7946 0958", "+442079460958"),
        ("", ""),
        (None, ""),
        ("call us!", ""),
    ])
    def test_normalize_phone_digits(self, raw, expected):
        assert normalize_phone_digits(raw) == expected

    def test_e164_valid_number(self):
        assert to_e164("+1 (201) 555-0123") == "+12015550123"

    @pytest.mark.parametrize("raw", [None, "", "12", "not a phone"])
    def test_e164_invalid(self, raw):
        assert to_e164(raw) is None


class TestStringHelpers:

    def test_collapse_repeats(self):
        assert collapse_repeats("Direct direct DIRECT line") == "Direct line"

    def test_capitalize_words(self):
        assert capitalize_words("jANE   doe") == "Jane Doe"

    @pytest.mark.parametrize("a,b,expected", [
        ("Acme", "Acme Robotics GmbH", "Acme Robotics GmbH"),
        ("Acme Robotics", "Acme", "Acme Robotics"),
        (None, " Acme ", "Acme"),
        ("same", "size", "same"),
    ])
    def test_prefer_informative(self, a, b, expected):
        assert prefer_informative(a, b) == expected

    def test_merge_string_sets(self):
        assert merge_string_sets(["React", " Vue "], ["Vue", "", None, "Go"]) == ["React", "Vue", "Go"]
        assert merge_string_sets(None, "not a list") == []

    @pytest.mark.parametrize("raw,expected", [
        ("https://www.Acme.com/about?x=1", "acme.com"),
        ("acme.com", "acme.com"),
        ("http://sub.acme.io:8080", "sub.acme.io"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize_domain(self, raw, expected):
        assert normalize_domain(raw) == expected


# ============================================================================
# TEST: sanitize_contact / merge_contacts
# ============================================================================

class TestSanitizeContact:

    def test_rejects_contact_with_nothing_usable(self):
        assert sanitize_contact({"name": "Contact Us", "email": "info@wix.com", "phone": ""}) is None

    def test_full_contact(self):
        contact = sanitize_contact({
            "name": "JaneSmith",
            "email": "Jane.Smith@Acme.com",
            "phone": "1-555-867-5309",
            "title": "VicePresident",
            "linkedin": " https://www.linkedin.com/in/janesmith ",
        })

        assert isinstance(contact, SanitizedContact)
        assert contact.name == "Jane Smith"
        assert contact.first_name == "Jane"
        assert contact.last_name == "Smith"
        assert contact.email == "jane.smith@acme.com"
        assert contact.email_class == "personal"
        assert contact.phone == "+1 (555) 867-5309"
        assert contact.title == "Vice President"
        assert contact.linkedin == "https://www.linkedin.com/in/janesmith"
        assert contact.dedupe_key == "jane.smith@acme.com"

    def test_phone_only_contact_is_kept(self):
        contact = sanitize_contact(ContactInput(phone="5558675309"))
        assert contact is not None
        assert contact.name == ""
        assert contact.email is None
        assert contact.phone == "(555) 867-5309"

    def test_bad_email_dropped_but_name_kept(self):
        contact = sanitize_contact({"name": "jane doe", "email": "noreply@acme.com"})
        assert contact.name == "Jane Doe"
        assert contact.email is None
        assert contact.email_class == "unknown"

    def test_non_linkedin_url_dropped(self):
        contact = sanitize_contact({"name": "Jane Doe", "linkedin": "https://twitter.com/jane"})
        assert contact.linkedin is None

    def test_non_string_values_do_not_raise(self):
        contact = sanitize_contact({"name": 12345, "phone": 5558675309})
        assert contact.phone == "(555) 867-5309"

    def test_merge_prefers_informative(self):
        a = sanitize_contact({"name": "Jane", "email": "jane@acme.com"})
        b = sanitize_contact({"name": "Jane Smith", "phone": "5558675309", "title": "CTO"})

        merged = merge_contacts(a, b)

        assert merged.name == "Jane Smith"
        assert merged.last_name == "Smith"
        assert merged.email == "jane@acme.com"
        assert merged.phone == "(555) 867-5309"
        assert merged.title == "CTO"

    def test_obfuscated_email_is_recovered(self):
        contact = sanitize_contact({"name": "Jane Doe", "email": "Jane.Doe [at] acme [dot] com"})
        assert contact.email == "jane.doe@acme.com"
        assert contact.dedupe_key == "jane.doe@acme.com"

    def test_obfuscated_low_value_email_still_dropped(self):
        contact = sanitize_contact({"name": "Jane Doe", "email": "noreply (at) acme (dot) com"})
        assert contact.email is None
