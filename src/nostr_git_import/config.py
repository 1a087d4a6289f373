"""Configuration settings for nostr-git-import."""

from datetime import UTC, datetime
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitConfig(BaseModel):
    """Configuration for provider request pacing and retry behavior.

    Controls the minimum spacing between requests and how long to wait
    before retrying a request the provider rejected.
    """

    seconds_between_requests: float = Field(
        default=0.25,
        ge=0.0,
        description="Minimum seconds between two requests for the same (provider, method)",
    )
    secondary_rate_wait: float = Field(
        default=60.0,
        ge=0.0,
        description="Seconds to wait after a secondary (abuse) rate limit without a hint",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum retries for a single operation before giving up",
    )
    backoff_base: float = Field(
        default=1.0,
        ge=0.0,
        description="Base delay in seconds for exponential backoff on transient errors",
    )
    max_backoff: float = Field(
        default=30.0,
        ge=0.0,
        description="Upper bound for a single exponential backoff delay",
    )
    max_rate_limit_wait: float = Field(
        default=900.0,
        ge=0.0,
        description="Upper bound for waiting on a primary rate limit reset",
    )


class PublishConfig(BaseModel):
    """Configuration for batched event publishing.

    Controls how many signed events are published together and
    how long to pause between batches.
    """

    batch_size: int = Field(
        default=30,
        ge=1,
        le=1000,
        description="Events per publish batch",
    )
    batch_delay_ms: int = Field(
        default=250,
        ge=0,
        description="Pause after each batch in milliseconds",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class ImportConfig(BaseModel):
    """Options for a single import run.

    Supplied once per ``import_repository`` call and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    mirror_issues: bool = Field(default=True, description="Import issues")
    mirror_pull_requests: bool = Field(default=True, description="Import pull requests")
    mirror_comments: bool = Field(default=True, description="Import issue and PR comments")

    since_date: datetime | None = Field(
        default=None,
        description="Only import items created at or after this moment",
    )

    relays: list[str] = Field(
        default_factory=list,
        description="Relays advertised in the repository announcement",
    )
    relay_batch_size: int | None = Field(
        default=None,
        ge=1,
        description="Events per publish batch (falls back to settings)",
    )
    relay_batch_delay_ms: int | None = Field(
        default=None,
        ge=0,
        description="Pause between batches in milliseconds (falls back to settings)",
    )

    fork_repo: bool = Field(
        default=False,
        description="Fork repositories the token owner does not own",
    )
    fork_name: str | None = Field(
        default=None,
        description="Name for the fork (defaults to '{repo}-imported')",
    )

    page_size: int = Field(default=100, ge=1, le=100, description="Items per provider page")
    progress_every: int = Field(
        default=1,
        ge=1,
        description="Emit a streaming progress update every N items",
    )

    @field_validator("since_date")
    @classmethod
    def _ensure_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Provider API
    # --------------------------------------------------------------------------
    github_token: str = Field(
        default="",
        description="GitHub personal access token",
    )

    # --------------------------------------------------------------------------
    # Nostr
    # --------------------------------------------------------------------------
    nostr_secret_key: str = Field(
        default="",
        description="Importing user's secret key (hex or nsec) used by the CLI signer",
    )
    default_relays: list[str] = Field(
        default_factory=list,
        description="Relays used when none are given on the command line",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Rate Limiting & Publishing
    # --------------------------------------------------------------------------
    rate_limit: RateLimitConfig = Field(
        default_factory=RateLimitConfig,
        description="Request pacing and retry configuration",
    )
    publish: PublishConfig = Field(
        default_factory=PublishConfig,
        description="Batched publishing configuration",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
