"""
Pydantic schemas for the ICP (Ideal Customer Profile) configuration.

Pools store the configuration as camelCase JSON (``companySizes``,
``techStack``, ``excludeDomains``...). Both that form and snake_case are
accepted on input.
"""
from typing import Optional, List, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _clean_list(value: Any) -> List[str]:
    """Accept a list or a comma/semicolon separated string; drop blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.replace(";", ",").split(",")
    if not isinstance(value, (list, tuple, set)):
        return []
    cleaned = []
    for item in value:
        if item is None:
            continue
        text = str(item).strip()
        if text:
            cleaned.append(text)
    return cleaned


class ICPLimits(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    max_companies: Optional[int] = Field(default=None, ge=1)
    max_contacts_per_company: Optional[int] = Field(default=None, ge=1)


class ICPConfig(BaseModel):
    """User-authored targeting profile. Immutable for the duration of a job."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    industries: List[str] = Field(default_factory=list)
    company_sizes: List[str] = Field(default_factory=list)
    geos: List[str] = Field(default_factory=list)
    tech_stack: List[str] = Field(default_factory=list)
    titles: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    exclude_domains: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    limits: ICPLimits = Field(default_factory=ICPLimits)

    @field_validator(
        "industries", "company_sizes", "geos", "tech_stack", "titles", "languages", "exclude_domains",
        mode="before"
    )
    @classmethod
    def normalize_lists(cls, v):
        return _clean_list(v)

    @field_validator("limits", mode="before")
    @classmethod
    def default_limits(cls, v):
        return v if v is not None else {}

    @classmethod
    def from_stored(cls, raw: Optional[dict]) -> Optional["ICPConfig"]:
        """Build from a pool's stored JSON; None/empty means no ICP is configured."""
        if not raw:
            return None
        return cls.model_validate(raw)

    def has_targeting(self) -> bool:
        """True if at least one scored targeting dimension is configured."""
        return bool(self.industries or self.company_sizes or self.geos or self.tech_stack or self.titles)

    def has_company_targeting(self) -> bool:
        """True if any company-level category (everything but titles) is configured."""
        return bool(self.industries or self.company_sizes or self.geos or self.tech_stack)

    def summary(self) -> str:
        """One-line description used in LLM prompts."""
        return (
            f"ICP: industries={', '.join(self.industries) or 'Any'}, "
            f"geos={', '.join(self.geos) or 'Any'}, "
            f"titles={', '.join(self.titles) or 'Any'}"
        )

    def to_stored(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
