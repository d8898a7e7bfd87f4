"""
Pydantic schemas for lead-gen jobs: status, provider toggles, counters, log entries.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class JobStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCESS, JobStatus.FAILED)


class JobProviders(BaseModel):
    """
    Provider toggles stored on the job.

    Only an explicit ``False`` disables a provider; missing/None means enabled.
    """
    model_config = ConfigDict(populate_by_name=True)

    serp: bool = True
    crawler: bool = True
    agentic_ai: bool = Field(default=True, alias="agenticAI")

    @field_validator("serp", "crawler", "agentic_ai", mode="before")
    @classmethod
    def none_means_enabled(cls, v):
        return True if v is None else v

    @classmethod
    def from_stored(cls, raw: Optional[Dict[str, Any]]) -> "JobProviders":
        return cls.model_validate(raw or {})

    def to_stored(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class JobCounters(BaseModel):
    """
    Job counters. Every field is a monotonically non-decreasing integer;
    unknown keys written by other tools are preserved.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    companies_found: int = 0
    candidates_created: int = 0
    contacts_created: int = 0
    source_events: int = 0
    companies_enriched: int = 0
    enrichment_failed: int = 0
    agent_iterations: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def none_is_zero(cls, v):
        return 0 if v is None else v

    @classmethod
    def from_stored(cls, raw: Optional[Dict[str, Any]]) -> "JobCounters":
        return cls.model_validate(raw or {})

    def merged_with(self, delta: "JobCounters") -> "JobCounters":
        """Add ``delta`` field by field; negative deltas are ignored."""
        merged = self.model_dump()
        for name in JobCounters.model_fields:
            merged[name] = getattr(self, name) + max(0, getattr(delta, name))
        return JobCounters.model_validate(merged)

    def __add__(self, other: "JobCounters") -> "JobCounters":
        return self.merged_with(other)

    def to_stored(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class JobLogEntry(BaseModel):
    """One append-only job log line."""

    ts: str
    level: Optional[str] = None  # "ERROR" for stage failures
    msg: str

    @classmethod
    def now(cls, msg: str, level: Optional[str] = None) -> "JobLogEntry":
        return cls(ts=datetime.now(timezone.utc).isoformat(), level=level, msg=msg)

    def to_stored(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
