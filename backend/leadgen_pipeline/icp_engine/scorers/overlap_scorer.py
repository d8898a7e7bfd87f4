"""
Set-overlap scoring for list fields such as a tech stack.
"""
from typing import Any
from .base import BaseScorer


class OverlapScorer(BaseScorer):
    """
    Fraction of required tokens present in the value list.

    Config format:
    {
        "required": ["React", "Salesforce"]
    }

    A required token counts as present when it is a case-insensitive
    substring of any value ("react" is present in ["React Native"]).
    """

    def calculate_score(self, value: Any) -> float:
        required = self._as_texts(self.config.get("required", []))
        if not required:
            return 0.0
        present = self._as_texts(value)

        matched = sum(1 for token in required if any(token in item for item in present))
        return min(1.0, matched / len(required))

    def get_explanation(self, value: Any, score: float) -> str:
        required = self.config.get("required", [])
        return f"Overlap: {score * len(required):.0f}/{len(required)} required values present"
