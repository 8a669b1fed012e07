"""Job-scoped event accounting.

This module provides:
- LogEvent: An immutable log entry
- Accounting: Event sink that counts warnings and errors for one job
- format_event_line: The "timestamp<TAB>level<TAB>message" record format
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TextIO

from vaultpush.core.types import LogLevel

logger = logging.getLogger("vaultpush.backup")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_event_line(timestamp: datetime, level: str, message: str) -> str:
    """Format one log record as a tab-separated line (without newline)."""
    return f"{timestamp.strftime(TIMESTAMP_FORMAT)}\t{level}\t{message}"


@dataclass(frozen=True)
class LogEvent:
    """One entry in a job's log. Never mutated once recorded."""

    timestamp: datetime
    level: LogLevel
    message: str

    def format(self) -> str:
        """Render the event in the log file format."""
        return format_event_line(self.timestamp, self.level.value, self.message)


@dataclass(frozen=True)
class AccountingSummary:
    """Counter snapshot reported at the end of a run."""

    warnings: int
    errors: int


@dataclass
class Accounting:
    """Structured event sink for one backup job.

    Every WARN and ERROR event is counted exactly once. Events are forwarded
    to the ``vaultpush.backup`` logger and, unless ``persist`` is False,
    appended to the job log file.

    Attributes:
        log_file: Open text stream for persisted events (None = not persisted).
        events: Recorded events, in order.
    """

    log_file: TextIO | None = None
    events: list[LogEvent] = field(default_factory=list)
    _warnings: int = field(default=0, repr=False)
    _errors: int = field(default=0, repr=False)

    def record(self, level: LogLevel, message: str, persist: bool = True) -> LogEvent:
        """Record an event.

        Args:
            level: Event level.
            message: Human-readable message.
            persist: Write the event to the log file (False = screen only).

        Returns:
            The recorded event.
        """
        event = LogEvent(timestamp=datetime.now(), level=level, message=message)
        self.events.append(event)

        if level is LogLevel.WARN:
            self._warnings += 1
        elif level is LogLevel.ERROR:
            self._errors += 1

        logger.log(level.logging_level, message)

        if persist and self.log_file is not None:
            self.log_file.write(event.format() + "\n")
            self.log_file.flush()

        return event

    def info(self, message: str, persist: bool = True) -> LogEvent:
        return self.record(LogLevel.INFO, message, persist)

    def warn(self, message: str, persist: bool = True) -> LogEvent:
        return self.record(LogLevel.WARN, message, persist)

    def error(self, message: str, persist: bool = True) -> LogEvent:
        return self.record(LogLevel.ERROR, message, persist)

    @property
    def warnings(self) -> int:
        """Number of WARN events recorded so far."""
        return self._warnings

    @property
    def errors(self) -> int:
        """Number of ERROR events recorded so far."""
        return self._errors

    def summary(self) -> AccountingSummary:
        """Snapshot the counters."""
        return AccountingSummary(warnings=self._warnings, errors=self._errors)
