"""
Scorer factory and registry.
"""
from .base import BaseScorer
from .match_scorer import MatchScorer
from .overlap_scorer import OverlapScorer

# Registry of available scorers
SCORER_REGISTRY = {
    "match": MatchScorer,
    "overlap": OverlapScorer,
}


def get_scorer(scorer_type: str, config: dict) -> BaseScorer:
    """
    Factory function to create appropriate scorer.

    Args:
        scorer_type: Type of scorer (match, overlap)
        config: Scorer configuration

    Returns:
        Instantiated scorer

    Raises:
        ValueError: If scorer_type not found in registry
    """
    scorer_class = SCORER_REGISTRY.get(scorer_type)

    if not scorer_class:
        raise ValueError(
            f"Unknown scorer type: {scorer_type}. "
            f"Available: {list(SCORER_REGISTRY.keys())}"
        )

    return scorer_class(config)


__all__ = ["BaseScorer", "MatchScorer", "OverlapScorer", "SCORER_REGISTRY", "get_scorer"]
