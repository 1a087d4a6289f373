"""Enums for import operations."""

from enum import Enum


class CommentFetchMode(str, Enum):
    """How comments are fetched from the provider."""

    BULK = "bulk"
    """One repository-wide listing, single pass."""

    PER_PARENT = "per_parent"
    """One listing per published issue and pull request."""


class OutputFormat(str, Enum):
    """Output format for CLI commands."""

    TEXT = "text"
    """Human-readable text output."""

    JSON = "json"
    """Machine-readable JSON output."""
