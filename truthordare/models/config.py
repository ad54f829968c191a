"""Application configuration models.

Validated with pydantic after ConfigManager has loaded the YAML file and
substituted ${VAR} references from the environment.
"""

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_AI_API_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_AI_MODEL = "llama-3.3-70b-versatile"


def _env_first(*names: str, default: str = "") -> str:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return default


def _is_unresolved(value: str) -> bool:
    # safe_substitute leaves ${VAR} in place when VAR is not set
    return value.startswith("${") and value.endswith("}")


class DatabaseSettings(BaseModel):
    """Relational store connection settings"""

    url: str = Field(
        default="sqlite+aiosqlite:///truthordare.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(default=False, description="Log emitted SQL")


class AISettings(BaseModel):
    """OpenAI-compatible chat completion provider settings"""

    api_key: str = Field(
        default_factory=lambda: _env_first("OPENAI_API_KEY", "GROQ_API_KEY"),
        description="Bearer token; empty means the provider is unconfigured",
    )
    api_url: str = Field(
        default_factory=lambda: _env_first(
            "AI_API_URL", "GROQ_API_URL", default=DEFAULT_AI_API_URL
        )
    )
    model: str = Field(
        default_factory=lambda: _env_first(
            "AI_MODEL", "GROQ_MODEL", default=DEFAULT_AI_MODEL
        )
    )
    timeout_seconds: float = Field(default=60.0, gt=0.0, le=600.0)

    @field_validator("api_key", mode="before")
    @classmethod
    def resolve_api_key(cls, v: object) -> str:
        if v is None or (isinstance(v, str) and (not v or _is_unresolved(v))):
            return _env_first("OPENAI_API_KEY", "GROQ_API_KEY")
        return str(v)

    @field_validator("api_url", mode="before")
    @classmethod
    def resolve_api_url(cls, v: object) -> str:
        if v is None or (isinstance(v, str) and (not v or _is_unresolved(v))):
            return _env_first("AI_API_URL", "GROQ_API_URL", default=DEFAULT_AI_API_URL)
        return str(v)

    @field_validator("model", mode="before")
    @classmethod
    def resolve_model(cls, v: object) -> str:
        if v is None or (isinstance(v, str) and (not v or _is_unresolved(v))):
            return _env_first("AI_MODEL", "GROQ_MODEL", default=DEFAULT_AI_MODEL)
        return str(v)


class RetryConfig(BaseModel):
    """Retry policy for a single generation combination

    Fixed delay by default. Exponential mode doubles the base delay per
    attempt and applies jitter; only the wait changes, never the
    retry/no-retry decision.
    """

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts (1 initial + N-1 retries)",
    )
    base_delay_seconds: float = Field(
        default=60.0,
        ge=0.0,
        le=3600.0,
        description="Delay between attempts (base for exponential mode)",
    )
    max_delay_seconds: float = Field(default=300.0, ge=0.0, le=3600.0)
    jitter_factor: float = Field(default=0.1, ge=0.0, le=0.5)
    backoff: Literal["fixed", "exponential"] = "fixed"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "max_attempts": 3,
                "base_delay_seconds": 60.0,
                "backoff": "fixed",
            }
        }
    )


class CleanupSettings(BaseModel):
    """Retention cleanup job settings"""

    enabled: bool = True
    schedule: str = Field(default="0 0 * * 0", description="Crontab expression")
    retention_months: int = Field(default=2, ge=0, le=120)


class GenerationSettings(BaseModel):
    """Automatic content generation job settings"""

    enabled: bool = True
    schedule: str = Field(default="0 2 * * 0", description="Crontab expression")
    count_per_combination: int = Field(default=5, ge=1, le=50)
    max_retries: int = Field(default=3, ge=1, le=10)
    retry_delay_seconds: float = Field(default=60.0, ge=0.0, le=3600.0)
    backoff: Literal["fixed", "exponential"] = "fixed"
    inter_combination_delay_seconds: float = Field(
        default=0.5,
        ge=0.0,
        le=60.0,
        description="Pause after every combination to respect provider rate limits",
    )
    temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, ge=1, le=32000)

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_retries,
            base_delay_seconds=self.retry_delay_seconds,
            max_delay_seconds=max(self.retry_delay_seconds, 300.0),
            backoff=self.backoff,
        )


class SchedulerSettings(BaseModel):
    """Scheduler and job settings"""

    enabled: bool = True
    timezone: str = "UTC"
    misfire_grace_time: int = Field(default=300, ge=1)
    shutdown_timeout_seconds: float = Field(default=30.0, gt=0.0)
    cleanup: CleanupSettings = Field(default_factory=CleanupSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True


class AppConfig(BaseModel):
    """Root configuration"""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    ai: AISettings = Field(default_factory=AISettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
