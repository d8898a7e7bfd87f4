"""
Substring match scoring for free-text company fields.
"""
from typing import Any
from .base import BaseScorer


class MatchScorer(BaseScorer):
    """
    1.0 if any target occurs in any of the given texts, else 0.0.

    Config format:
    {
        "targets": ["fintech", "saas"],
        "bidirectional": false   # also accept text contained in a target
    }

    Matching is case-insensitive. Empty texts never match, so a missing
    field cannot satisfy a bidirectional match.
    """

    def calculate_score(self, value: Any) -> float:
        texts = self._as_texts(value)
        targets = self._as_texts(self.config.get("targets", []))
        if not texts or not targets:
            return 0.0

        bidirectional = self.config.get("bidirectional", False)
        for target in targets:
            for text in texts:
                if target in text or (bidirectional and text in target):
                    return 1.0
        return 0.0

    def get_explanation(self, value: Any, score: float) -> str:
        targets = self.config.get("targets", [])
        if score == 1.0:
            return f"Match: {value!r} matches one of {targets}"
        return f"No match: {value!r} not in {targets}"
