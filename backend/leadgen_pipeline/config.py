"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./leadgen.db"

    # Language model (link ranking)
    ANTHROPIC_API_KEY: Optional[str] = None
    LLM_MODEL: str = "claude-haiku-4-5-20251001"
    LLM_MAX_TOKENS: int = 2048
    LLM_TIMEOUT_SECONDS: float = 20.0

    # Feature Flags
    ENABLE_LLM_LINK_RANKING: bool = True

    # Pipeline Configuration
    LINK_RANKER_MAX_CANDIDATES: int = 25  # URLs shown to the model
    ENRICHMENT_BATCH_LIMIT: int = 50  # Companies enriched per run
    AGENT_DEFAULT_TARGET_COMPANIES: int = 100  # Used when the ICP sets no maxCompanies

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


settings = Settings()
