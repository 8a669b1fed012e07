"""Shared types for vaultpush.

This module defines enums used by the backup core, the remote adapters
and the CLI.
"""

from __future__ import annotations

import logging
from enum import Enum


class LogLevel(str, Enum):
    """Level of a backup log event.

    WARN and ERROR events are counted for the end-of-job summary.
    """

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def logging_level(self) -> int:
        """Get the equivalent standard library logging level."""
        return _LOGGING_LEVELS[self]


_LOGGING_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class AttemptOutcome(str, Enum):
    """Outcome of one iteration of the upload loop."""

    SUCCESS = "success"
    WRITE_FAILED = "write_failed"
    VERIFY_MISMATCH = "verify_mismatch"
    VERIFY_SKIPPED_WRITE_FAILED = "verify_skipped_write_failed"

    @property
    def write_failed(self) -> bool:
        """Check if the attempt never got its bytes to the remote store."""
        return self in (
            AttemptOutcome.WRITE_FAILED,
            AttemptOutcome.VERIFY_SKIPPED_WRITE_FAILED,
        )


class TerminalOutcome(str, Enum):
    """Final, caller-visible result of one backup run."""

    COMMITTED = "committed"
    COMPRESSION_FAILED = "compression_failed"
    READ_FAILED = "read_failed"
    TRANSFER_EXHAUSTED = "transfer_exhausted"
    CANCELLED = "cancelled"

    @property
    def succeeded(self) -> bool:
        """Check if the backup reached the remote store."""
        return self is TerminalOutcome.COMMITTED
