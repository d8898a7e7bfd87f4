"""
Crawl-order ranking for URLs discovered on a company site.

    ranker = LLMRefinementRanker(HeuristicLinkRanker(), model)
    ordered = await ranker.rank("acme.com", urls, LinkContext(icp=icp))

The heuristic order is always computed and is what callers get back whenever
the model is missing, slow, wrong or down. Either way the result is a
permutation of the normalized, de-duplicated input URLs.
"""

import re
import json
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit

from pydantic import ValidationError

from leadgen_pipeline.config import settings
from leadgen_pipeline.policy import DEFAULT_POLICY, ScoringPolicy
from leadgen_pipeline.schemas.icp import ICPConfig
from leadgen_pipeline.services.llm_client import LanguageModel, get_language_model

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a pragmatic web data extraction strategist."


def normalize_url(url: Any) -> str:
    """scheme://host/path?query with the host lowercased; fragment and port dropped."""
    raw = str(url or "").strip()
    try:
        parts = urlsplit(raw)
        host = parts.hostname
    except ValueError:
        return raw
    if not parts.scheme or not host:
        return raw

    path = parts.path or "/"
    query = f"?{parts.query}" if parts.query else ""
    return f"{parts.scheme.lower()}://{host}{path}{query}"


def prepare_urls(urls: Iterable[Any]) -> List[str]:
    """Normalize and de-duplicate, preserving first-seen order."""
    unique = []
    seen = set()
    for url in urls or []:
        normalized = normalize_url(url)
        if normalized and normalized not in seen:
            seen.add(normalized)
            unique.append(normalized)
    return unique


@dataclass
class LinkContext:
    icp: Optional[Union[ICPConfig, Mapping[str, Any]]] = None
    visited: Sequence[str] = field(default_factory=list)  # pages already crawled this job
    text_cues: Sequence[str] = field(default_factory=list)  # meta descriptions, snippets

    def icp_config(self) -> Optional[ICPConfig]:
        if self.icp is None or isinstance(self.icp, ICPConfig):
            return self.icp
        try:
            return ICPConfig.model_validate(self.icp)
        except ValidationError as e:
            logger.debug(f"Ignoring invalid ICP in link context: {e}")
            return None


class BaseLinkRanker(ABC):

    @abstractmethod
    async def rank(self, domain: str, urls: Sequence[str], context: Optional[LinkContext] = None) -> List[str]:
        """Return the URLs ordered from highest to lowest expected contact yield."""
        pass


class HeuristicLinkRanker(BaseLinkRanker):
    """Deterministic path-keyword scoring."""

    def __init__(self, policy: ScoringPolicy = DEFAULT_POLICY):
        self.weights = policy.link
        extensions = "|".join(re.escape(ext) for ext in self.weights.static_asset_extensions)
        self._static_asset = re.compile(rf"\.(?:{extensions})(?:\?|#|$)", re.IGNORECASE)

    def score(self, url: str, context: Optional[LinkContext] = None, visited: Optional[set] = None) -> int:
        u = url.lower()
        score = 0

        for rule in self.weights.rules:
            if any(keyword in u for keyword in rule.keywords):
                score += rule.points

        if self._static_asset.search(u):
            score += self.weights.static_asset_penalty

        icp = context.icp_config() if context else None
        if icp:
            for token in list(icp.geos) + list(icp.industries):
                if token.lower() in u:
                    score += self.weights.icp_token_bonus

        if visited is None and context:
            visited = set(prepare_urls(context.visited))
        if visited and url in visited:
            score += self.weights.visited_penalty

        return score

    def order(self, urls: Sequence[str], context: Optional[LinkContext] = None) -> Tuple[List[str], Dict[str, int]]:
        """Heuristic order plus the per-URL scores. ``urls`` must already be prepared."""
        visited = set(prepare_urls(context.visited)) if context else set()
        scores = {url: self.score(url, context, visited) for url in urls}
        return sorted(urls, key=lambda u: scores[u], reverse=True), scores

    async def rank(self, domain: str, urls: Sequence[str], context: Optional[LinkContext] = None) -> List[str]:
        ordered, _ = self.order(prepare_urls(urls), context)
        return ordered


class LLMRefinementRanker(BaseLinkRanker):
    """
    Asks a language model to reorder the heuristic ranking.

    Only URLs from the candidate set are kept from the model's answer; any
    it omits follow in heuristic order. Every failure returns the base
    ranker's order unchanged.
    """

    def __init__(
        self,
        base: HeuristicLinkRanker,
        model: Optional[LanguageModel],
        max_candidates: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.base = base
        self.model = model
        self.max_candidates = max_candidates or settings.LINK_RANKER_MAX_CANDIDATES
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS

    async def rank(self, domain: str, urls: Sequence[str], context: Optional[LinkContext] = None) -> List[str]:
        unique = prepare_urls(urls)
        heuristic, scores = self.base.order(unique, context)
        if not heuristic or self.model is None:
            return heuristic

        prompt = self.build_prompt(domain, heuristic[:self.max_candidates], scores, context)
        try:
            text = await asyncio.wait_for(self.model.generate(prompt, system=SYSTEM_PROMPT), self.timeout)
            return merge_model_order(parse_url_array(text), heuristic)
        except Exception as e:
            logger.debug(f"LLM link ranking unavailable for {domain}, using heuristic order: {e}")
            return heuristic

    @staticmethod
    def build_prompt(domain: str, urls: Sequence[str], scores: Dict[str, int],
                     context: Optional[LinkContext] = None) -> str:
        icp = context.icp_config() if context else None
        icp_line = icp.summary() if icp else "ICP: Any"
        signals = "\n".join(f"- {url} | heuristic={scores.get(url, 0)}" for url in urls)
        return (
            "You are ranking internal/company URLs for contact discovery.\n"
            f"Domain: {domain}\n"
            f"{icp_line}\n"
            "Signals:\n"
            f"{signals}\n\n"
            "Goal: Return the URLs sorted from highest to lowest expected contact yield.\n"
            "Consider pages likely to contain emails or leadership/team info first.\n"
            "Respond with a JSON array of URLs in ranked order."
        )


def parse_url_array(text: Optional[str]) -> List[Any]:
    """Parse the model's JSON array, tolerating markdown code fences."""
    text = (text or "").strip()

    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

    if text.startswith("json"):
        text = text[4:].strip()

    result = json.loads(text)
    if not isinstance(result, list):
        raise ValueError(f"Expected a JSON array, got {type(result).__name__}")
    return result


def merge_model_order(model_urls: Sequence[Any], heuristic: Sequence[str]) -> List[str]:
    known = set(heuristic)
    ranked = []
    for item in model_urls:
        if not isinstance(item, str):
            continue
        url = normalize_url(item)
        if url in known and url not in ranked:
            ranked.append(url)

    taken = set(ranked)
    return ranked + [url for url in heuristic if url not in taken]


async def rank_links(
    user_id: Optional[str],
    domain: str,
    urls: Sequence[str],
    context: Optional[LinkContext] = None,
    model: Optional[LanguageModel] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> List[str]:
    """
    Rank crawl candidates for ``domain``.

    The model is only consulted for an identified caller; when ``model`` is
    not given it is resolved with get_language_model(). Never raises.
    """
    heuristic = HeuristicLinkRanker(policy)
    if not user_id:
        return await heuristic.rank(domain, urls, context)

    if model is None:
        model = get_language_model(user_id)
    return await LLMRefinementRanker(heuristic, model).rank(domain, urls, context)
