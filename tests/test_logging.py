"""Tests for logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from loguru import logger

from nostr_git_import.logging import (
    LogContext,
    console_format,
    get_logger,
    is_configured,
    reset_logging,
    setup_logging,
)

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Generator[None, None, None]:
    """Reset loguru state before and after each test."""
    reset_logging()
    yield
    reset_logging()


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_sets_configured_flag(self) -> None:
        """Test that setup_logging sets the configured flag."""
        assert not is_configured()
        setup_logging(level="INFO")
        assert is_configured()

    def test_setup_logging_verbose_overrides_level(self) -> None:
        """Test that verbose flag sets DEBUG level."""
        messages: list[str] = []
        setup_logging(level="WARNING", verbose=True)

        handler_id = logger.add(lambda msg: messages.append(str(msg)))
        try:
            logger.bind(name="test").debug("debug message")
            assert any("debug message" in msg for msg in messages)
        finally:
            logger.remove(handler_id)

    def test_setup_logging_with_file(self, tmp_path: Path) -> None:
        """Test file logging setup."""
        log_file = tmp_path / "import.log"
        setup_logging(level="INFO", log_file=log_file)

        logger.bind(name="test").info("Test file message")
        logger.complete()

        assert log_file.exists()
        assert "Test file message" in log_file.read_text()

    def test_reset_logging_clears_flag(self) -> None:
        setup_logging(level="INFO")
        reset_logging()
        assert not is_configured()


class TestInterceptHandler:
    """Tests for stdlib logging interception."""

    def test_intercept_stdlib_logging(self) -> None:
        """Test that stdlib logging is routed to loguru."""
        messages: list[str] = []
        setup_logging(level="DEBUG")

        handler_id = logger.add(lambda msg: messages.append(str(msg)))
        try:
            logging.getLogger("test_stdlib_intercept").warning("Hello from stdlib")
            assert any("Hello from stdlib" in msg for msg in messages)
        finally:
            logger.remove(handler_id)

    def test_http_loggers_quiet_above_debug(self) -> None:
        """httpx and githubkit loggers stay at WARNING unless debugging."""
        setup_logging(level="INFO")

        assert logging.getLogger("httpx").level >= logging.WARNING
        assert logging.getLogger("githubkit").level >= logging.WARNING

    def test_http_loggers_verbose_in_debug(self) -> None:
        setup_logging(level="INFO", verbose=True)

        assert logging.getLogger("httpx").level == logging.DEBUG


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_binds_name(self) -> None:
        """Test that get_logger binds the module name."""
        messages: list[str] = []
        setup_logging(level="DEBUG")

        handler_id = logger.add(
            lambda msg: messages.append(str(msg)),
            format="{extra} | {message}",
        )
        try:
            get_logger("my_test_module").info("Test message")
            assert any("my_test_module" in msg for msg in messages)
        finally:
            logger.remove(handler_id)


class TestContextBinding:
    """Tests for LogContext."""

    def test_log_context_manager(self) -> None:
        """Context is bound inside the block and dropped after."""
        messages: list[str] = []
        setup_logging(level="DEBUG")

        handler_id = logger.add(
            lambda msg: messages.append(str(msg)),
            format="{extra} | {message}",
        )
        try:
            with LogContext(repo="octocat/hello-world", platform="github"):
                get_logger("test").info("inside")
            get_logger("test").info("outside")

            inside = next(msg for msg in messages if "inside" in msg)
            outside = next(msg for msg in messages if "outside" in msg)
            assert "octocat/hello-world" in inside
            assert "octocat/hello-world" not in outside
        finally:
            logger.remove(handler_id)


class TestConsoleFormat:
    """Tests for the console line format."""

    def test_plain_record(self) -> None:
        fmt = console_format({"extra": {"name": "nostr_git_import.sync"}})
        assert "{extra[repo]}" not in fmt
        assert fmt.endswith("{exception}")

    def test_record_with_repo(self) -> None:
        fmt = console_format({"extra": {"name": "x", "repo": "octocat/hello-world"}})
        assert "{extra[repo]}" in fmt
