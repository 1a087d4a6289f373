"""Pytest configuration and shared fixtures.

Usage Guide:
- For provider-neutral models: import factories from tests.factories
- For raw GitHub payloads: import dicts from tests.fixtures.github_responses
- For end-to-end pipeline tests: use the fakes in tests.fakes
"""

from datetime import UTC, datetime

import pytest

from nostr_git_import.config import get_settings
from nostr_git_import.events import derive_platform_keypair

# -----------------------------------------------------------------------------
# Test Timeline Constants
#
# All hardcoded dates should reference these constants for consistency.
# -----------------------------------------------------------------------------
JAN_10 = datetime(2024, 1, 10, 9, 0, 0, tzinfo=UTC)  # Oldest issue opened
JAN_15 = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)  # Default created_at
JAN_20 = datetime(2024, 1, 20, 16, 0, 0, tzinfo=UTC)  # Later activity

JAN_10_ISO = "2024-01-10T09:00:00Z"
JAN_15_ISO = "2024-01-15T10:00:00Z"
JAN_20_ISO = "2024-01-20T16:00:00Z"

# Fixed clock for the import run
IMPORT_TIMESTAMP = 1_700_000_000

# Importing user's key pair (deterministic)
USER_KEYPAIR = derive_platform_keypair("test", "importer")

RELAY = "wss://relay.example.com"


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per process; tests must not leak env changes."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def user_keypair():
    return USER_KEYPAIR
