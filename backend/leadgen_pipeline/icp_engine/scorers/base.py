"""
Base scorer interface for ICP category scoring.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List


class BaseScorer(ABC):
    """Abstract base for all category scorers."""

    def __init__(self, config: Dict[str, Any]):
        """
        Args:
            config: Scorer configuration (targets, matching options)
        """
        self.config = config

    @abstractmethod
    def calculate_score(self, value: Any) -> float:
        """
        Calculate score for given value.

        Args:
            value: The field value (or list of values) to score

        Returns:
            Score between 0.0 and 1.0
        """
        pass

    def get_explanation(self, value: Any, score: float) -> str:
        """
        Return human-readable explanation of score.
        """
        return f"Score: {score:.2f}"

    @staticmethod
    def _as_texts(value: Any) -> List[str]:
        """Lowercased non-empty strings from a scalar or an iterable."""
        if value is None:
            return []
        if isinstance(value, str):
            values: Iterable[Any] = [value]
        elif isinstance(value, (list, tuple, set)):
            values = value
        else:
            values = [value]
        return [str(v).strip().lower() for v in values if v is not None and str(v).strip()]
