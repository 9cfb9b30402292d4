"""Standardized CLI error codes and error handling.

Provides consistent exit codes for the shift engine CLI.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

LOG = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Standard CLI exit codes."""
    SUCCESS = 0
    ERROR = 1
    USAGE = 2
    CONFIG_ERROR = 3
    NOT_FOUND = 6
    INTERRUPTED = 130  # Standard for Ctrl+C


@dataclass
class CLIError(Exception):
    """CLI error with exit code and message."""
    message: str
    code: ExitCode = ExitCode.ERROR
    hint: Optional[str] = None

    def __str__(self) -> str:
        return self.message


class ConfigError(CLIError):
    """Configuration or input-data error."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.CONFIG_ERROR, hint)


class UsageError(CLIError):
    """Usage/argument error."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.USAGE, hint)


def handle_error(error: BaseException, verbose: bool = False) -> int:
    """Report an exception on stderr and return the exit code to use.

    Args:
        error: The exception to handle.
        verbose: If True, log the stack trace for unexpected errors.
    """
    if isinstance(error, CLIError):
        print(f"Error: {error.message}", file=sys.stderr)
        if error.hint:
            print(f"Hint: {error.hint}", file=sys.stderr)
        return error.code

    if isinstance(error, KeyboardInterrupt):
        print("\nInterrupted.", file=sys.stderr)
        return ExitCode.INTERRUPTED

    print(f"Error: {error}", file=sys.stderr)
    if verbose:
        LOG.exception("Unhandled error", exc_info=error)
    return ExitCode.ERROR
