"""Tests for configuration settings."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from nostr_git_import.config import (
    ImportConfig,
    PublishConfig,
    RateLimitConfig,
    Settings,
    get_settings,
)


class TestSettings:
    """Tests for Settings class."""

    def test_settings_defaults(self):
        """Test default values are correct."""
        settings = Settings(_env_file=None)

        assert settings.github_token == ""
        assert settings.nostr_secret_key == ""
        assert settings.default_relays == []
        assert settings.environment == "development"
        assert settings.log_level == "INFO"

    def test_settings_from_env(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv("GITHUB_TOKEN", "test_token_123")
        monkeypatch.setenv("NOSTR_SECRET_KEY", "ab" * 32)
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.github_token == "test_token_123"
        assert settings.nostr_secret_key == "ab" * 32
        assert settings.environment == "production"
        assert settings.log_level == "DEBUG"

    def test_default_relays_from_json_env(self, monkeypatch):
        """List settings are parsed from JSON."""
        monkeypatch.setenv("DEFAULT_RELAYS", '["wss://a.example", "wss://b.example"]')

        settings = Settings(_env_file=None)

        assert settings.default_relays == ["wss://a.example", "wss://b.example"]

    def test_nested_settings_from_env(self, monkeypatch):
        """Nested configs use the double-underscore delimiter."""
        monkeypatch.setenv("RATE_LIMIT__MAX_RETRIES", "5")
        monkeypatch.setenv("PUBLISH__BATCH_SIZE", "50")
        monkeypatch.setenv("LOGGING__SERIALIZE", "true")

        settings = Settings(_env_file=None)

        assert settings.rate_limit.max_retries == 5
        assert settings.publish.batch_size == 50
        assert settings.logging.serialize is True

    def test_settings_environment_validation(self, monkeypatch):
        """Test that invalid environment value is rejected."""
        monkeypatch.setenv("ENVIRONMENT", "invalid")

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_settings_log_level_validation(self, monkeypatch):
        """Test that invalid log level is rejected."""
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_get_settings_cached(self):
        """get_settings returns the same instance until the cache is cleared."""
        assert get_settings() is get_settings()


class TestRateLimitConfig:
    """Tests for RateLimitConfig."""

    def test_defaults(self):
        config = RateLimitConfig()

        assert config.seconds_between_requests == 0.25
        assert config.max_retries == 3
        assert config.secondary_rate_wait == 60.0

    def test_max_retries_bounds(self):
        with pytest.raises(ValidationError):
            RateLimitConfig(max_retries=11)
        with pytest.raises(ValidationError):
            RateLimitConfig(max_retries=-1)


class TestPublishConfig:
    """Tests for PublishConfig."""

    def test_defaults(self):
        config = PublishConfig()

        assert config.batch_size == 30
        assert config.batch_delay_ms == 250

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            PublishConfig(batch_size=0)


class TestImportConfig:
    """Tests for per-run ImportConfig."""

    def test_defaults(self):
        config = ImportConfig()

        assert config.mirror_issues is True
        assert config.mirror_pull_requests is True
        assert config.mirror_comments is True
        assert config.fork_repo is False
        assert config.relays == []
        assert config.page_size == 100

    def test_frozen(self):
        config = ImportConfig()

        with pytest.raises(ValidationError):
            config.mirror_issues = False  # type: ignore[misc]

    def test_naive_since_date_becomes_utc(self):
        config = ImportConfig(since_date=datetime(2024, 1, 1))

        assert config.since_date == datetime(2024, 1, 1, tzinfo=UTC)

    def test_page_size_capped(self):
        with pytest.raises(ValidationError):
            ImportConfig(page_size=101)
