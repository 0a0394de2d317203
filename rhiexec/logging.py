# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Logging interface for rhiexec.

This module provides the progress and diagnostics sink used by the engine.
Library modules log through it without depending on the CLI. The logger can
be configured globally or passed as a parameter for better isolation.

The logger supports four output levels:
- Step: Always printed (for progress indicators)
- Warning: Always printed (compatibility rejections, skipped roots)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

Example:
    Configure global logger:
        ```python
        from rhiexec.logging import get_logger, set_global_logger

        logger = get_logger(verbose=True, debug=False)
        set_global_logger(logger)
        ```

    Use in library code:
        ```python
        from rhiexec.logging import get_global_logger

        logger = get_global_logger()
        logger.step(1, 3, "Loading manifest...")
        logger.verbose("STATE", "Checking install state for all users")
        logger.debug("SCAN", "Ignoring non-version folder: logs")
        ```

Note:
    The default logger is silent, so library functions won't print anything
    unless explicitly configured. The CLI configures the global logger when
    commands are executed.
"""

from __future__ import annotations

from typing import Literal, Protocol

Level = Literal["verbose", "debug", "warning"]


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator.

        Args:
            step: Current step number (1-based).
            total: Total number of steps.
            message: Step description.
        """
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "STATE", "CONFIG").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "SCAN", "COMPAT").
            message: Log message.
        """
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning regardless of verbosity.

        Args:
            prefix: Message prefix (e.g., "COMPAT").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Default logger implementation that prints to stdout.

    This logger respects verbose and debug flags and formats output
    consistently with the CLI output format.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        """Initialize logger with verbosity settings.

        Args:
            verbose: If True, print verbose messages.
            debug: If True, print debug messages (implies verbose).
        """
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator."""
        print(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message (only when verbose mode is active)."""
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message (only when debug mode is active)."""
        if self._debug:
            print(f"[{prefix}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning message."""
        print(f"[{prefix}] WARNING: {message}")


class SilentLogger:
    """Logger that suppresses all output.

    Useful for programmatic usage when output is not desired.
    """

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Get a logger instance with specified verbosity.

    Args:
        verbose: If True, logger will print verbose messages.
        debug: If True, logger will print debug messages (implies verbose).

    Returns:
        A logger instance configured with the specified verbosity.
    """
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Get the global logger instance.

    Returns:
        The current global logger instance.
    """
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        This affects all library functions that fall back to
        get_global_logger() when no logger is passed. For better isolation,
        pass logger instances directly to functions instead.
    """
    global _global_logger
    _global_logger = logger


def emit(logger: Logger | None, level: Level, prefix: str, message: str) -> None:
    """Send a message to a logger without letting the sink fail the caller.

    The compatibility resolver and the install-state engine log every rule
    evaluation and every decision through this function. Their return
    values must not depend on whether the sink accepted the message, so
    any exception raised by the sink is dropped here.

    Args:
        logger: Logger to write to. None selects the global logger.
        level: One of "verbose", "debug" or "warning".
        prefix: Message prefix.
        message: Log message.
    """
    sink = logger if logger is not None else get_global_logger()
    try:
        getattr(sink, level)(prefix, message)
    except Exception:
        pass
