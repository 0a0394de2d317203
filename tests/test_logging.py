"""
Tests for rhiexec.logging module.

Tests the logging interface including:
- Verbosity levels of the default logger
- Silent logger
- Global logger configuration
- emit() protecting callers from sink failures
"""

from __future__ import annotations

import pytest

from rhiexec.logging import (
    DefaultLogger,
    SilentLogger,
    emit,
    get_global_logger,
    get_logger,
    set_global_logger,
)

pytestmark = pytest.mark.unit


class TestDefaultLogger:
    """Tests for DefaultLogger output."""

    def test_step_always_printed(self, capsys):
        """Test that steps print regardless of verbosity."""
        DefaultLogger().step(1, 4, "Loading configuration...")
        assert capsys.readouterr().out == "[1/4] Loading configuration...\n"

    def test_warning_always_printed(self, capsys):
        """Test that warnings print regardless of verbosity."""
        DefaultLogger().warning("COMPAT", "SDK version incompatibility")
        assert capsys.readouterr().out == "[COMPAT] WARNING: SDK version incompatibility\n"

    def test_verbose_and_debug_hidden_by_default(self, capsys):
        """Test that verbose and debug are off by default."""
        logger = DefaultLogger()
        logger.verbose("STATE", "hidden")
        logger.debug("SCAN", "hidden")
        assert capsys.readouterr().out == ""

    def test_verbose_mode(self, capsys):
        """Test that verbose mode shows verbose but not debug."""
        logger = get_logger(verbose=True)
        logger.verbose("STATE", "shown")
        logger.debug("SCAN", "hidden")
        assert capsys.readouterr().out == "[STATE] shown\n"

    def test_debug_implies_verbose(self, capsys):
        """Test that debug mode shows both levels."""
        logger = get_logger(debug=True)
        logger.verbose("STATE", "a")
        logger.debug("SCAN", "b")
        assert capsys.readouterr().out == "[STATE] a\n[SCAN] b\n"


class TestGlobalLogger:
    """Tests for the global logger slot."""

    def test_default_is_silent(self):
        """Test that library code is quiet unless configured."""
        assert isinstance(get_global_logger(), SilentLogger)

    def test_set_global_logger(self, recording_logger):
        """Test replacing the global logger."""
        set_global_logger(recording_logger)
        emit(None, "warning", "COMPAT", "routed")
        assert recording_logger.messages("warning") == ["routed"]


class TestEmit:
    """Tests for emit."""

    def test_routes_to_level(self, recording_logger):
        """Test that emit calls the method named by level."""
        emit(recording_logger, "debug", "SCAN", "message")
        assert recording_logger.records == [("debug", "SCAN", "message")]

    def test_sink_exception_is_dropped(self, exploding_logger):
        """Test that a failing sink does not raise into the caller."""
        emit(exploding_logger, "warning", "COMPAT", "message")
