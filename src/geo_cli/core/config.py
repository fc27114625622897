"""Configuration: environment settings and the explicit pipeline configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = Path.home() / ".geo-cli" / "intel.db"


class PipelineConfig(BaseModel):
    """Rate-limit and retry policy for one citation batch.

    Delays are cooperative yield points between steps; tests set them to zero.
    """

    verify_timeout: float = Field(default=8.0, gt=0, description="Reachability timeout (seconds)")
    verify_delay_ms: int = Field(default=200, ge=0, description="Pause after each verification")
    analyze_delay_ms: int = Field(default=1000, ge=0, description="Pause after each deep analysis")
    extract_delay_ms: int = Field(default=250, ge=0, description="Pause after content extraction")
    max_retries: int = Field(default=2, ge=0, le=5, description="Analyzer retries after first try")
    retry_base_delay: float = Field(
        default=1.0, ge=0, description="First backoff delay; doubles per retry"
    )
    concurrency: int = Field(default=1, ge=1, le=16, description="Citations processed at once")
    max_batch_size: int = Field(default=35, ge=1, description="Citations per batch")
    max_deep_batch_size: int = Field(
        default=20, ge=1, description="Citations per batch when deep analysis is on"
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables or ``.env``."""

    # Deep-content analyzer (OpenAI-compatible chat completions)
    GROQ_API_KEY: str = Field(default="", description="Analyzer API key; empty disables analysis")
    GROQ_API_URL: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="Chat-completions endpoint",
    )
    GROQ_MODEL: str = Field(default="llama-3.1-8b-instant", description="Analyzer model id")
    ANALYZER_TIMEOUT: float = Field(default=30.0, gt=0, description="Analyzer request timeout")

    # Page content extraction
    TAVILY_API_KEY: str = Field(default="", description="Tavily key for raw page extraction")
    TAVILY_API_URL: str = Field(default="https://api.tavily.com/search")

    # Storage
    GEO_DB_PATH: Path = Field(default=DEFAULT_DB_PATH, description="SQLite intelligence store")

    # Pipeline policy
    GEO_VERIFY_TIMEOUT: float = Field(default=8.0, gt=0)
    GEO_VERIFY_DELAY_MS: int = Field(default=200, ge=0)
    GEO_ANALYZE_DELAY_MS: int = Field(default=1000, ge=0)
    GEO_MAX_RETRIES: int = Field(default=2, ge=0, le=5)
    GEO_CONCURRENCY: int = Field(default=1, ge=1, le=16)

    # Logging
    LOG_LEVEL: str = Field(default="WARNING", description="Logging level")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @property
    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(
            verify_timeout=self.GEO_VERIFY_TIMEOUT,
            verify_delay_ms=self.GEO_VERIFY_DELAY_MS,
            analyze_delay_ms=self.GEO_ANALYZE_DELAY_MS,
            max_retries=self.GEO_MAX_RETRIES,
            concurrency=self.GEO_CONCURRENCY,
        )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Return the process-wide settings, read once."""
    return Settings()
