"""
Collaborator contracts for the lead-gen pipeline.

The SERP provider, enrichment crawler and autonomous agent live outside this
package; the orchestrator only sees these interfaces. Implementations may
return the result models below or plain dicts with the same (camelCase or
snake_case) keys.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _ProviderResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @classmethod
    def coerce(cls, value: Any):
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.model_validate(dict(value))
        raise TypeError(f"{cls.__name__} expected, got {type(value).__name__}")


class SerpSearchResult(_ProviderResult):
    created_candidates: int = Field(default=0, ge=0)
    source_events: int = Field(default=0, ge=0)
    unique_domains: List[str] = Field(default_factory=list)

    @field_validator("unique_domains", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return v or []


class EnrichmentOutcome(_ProviderResult):
    enriched: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    contacts_created: int = Field(default=0, ge=0)


class AgentRunResult(_ProviderResult):
    companies_saved: int = Field(default=0, ge=0)
    contacts_saved: int = Field(default=0, ge=0)
    iterations: int = Field(default=0, ge=0)


ResultLike = Union[BaseModel, Dict[str, Any]]


class SerpSearchProvider(ABC):
    """Discovers candidate companies for a job and persists them."""

    @abstractmethod
    async def search(self, job_id: str, user_id: str) -> ResultLike:
        pass


class EnrichmentProvider(ABC):
    """Crawls/enriches up to ``limit`` candidates of a job."""

    @abstractmethod
    async def enrich(self, job_id: str, limit: int, user_id: str) -> ResultLike:
        pass


class AutonomousAgent(ABC):
    """Self-directed discovery loop; owns its own retries."""

    @abstractmethod
    async def run(
        self,
        job_id: str,
        user_id: str,
        icp_config: Dict[str, Any],
        pool_id: str,
        target_count: int,
    ) -> ResultLike:
        pass
