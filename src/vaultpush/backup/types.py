"""Shared types and dataclasses for backup runs.

This module provides:
- BackupError, CompressionFailedError: Exception classes
- EnvironmentSetupError, JobInUseError: Scoped resource failures
- CompressionResult: Per-job outcome of archive construction
- TransferAttempt: One iteration of the upload loop
- BackupReport: What a backup run returns to its caller
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from vaultpush.core.types import AttemptOutcome, TerminalOutcome


class BackupError(Exception):
    """Base exception for backup errors."""


class CompressionFailedError(BackupError):
    """No input file could be added to the archive."""

    def __init__(self, destination: Path, failed: list[Path]) -> None:
        self.destination = destination
        self.failed = failed
        super().__init__(
            f"No file could be added to {destination} ({len(failed)} failures)"
        )


class SetupStage(str, Enum):
    """Which part of the backup environment could not be prepared."""

    TEMPDIR = "tempdir"
    LOG = "log"


class EnvironmentSetupError(BackupError):
    """The job work directory or log file could not be prepared."""

    def __init__(self, stage: SetupStage, message: str) -> None:
        self.stage = stage
        super().__init__(message)


class JobInUseError(BackupError):
    """Another run in this process already owns the job identifier."""


@dataclass
class CompressionResult:
    """Outcome of archive construction.

    Both lists keep input order. Together they hold every input path exactly
    as often as it was listed.
    """

    succeeded: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Check if nothing was archived."""
        return not self.succeeded

    def accounts_for(self, files: list[Path]) -> bool:
        """Check that succeeded and failed together match the inputs."""
        return Counter(self.succeeded) + Counter(self.failed) == Counter(files)


@dataclass
class TransferAttempt:
    """One iteration of the upload loop.

    Attributes:
        attempt_number: 1-based position in the loop.
        outcome: What happened on this attempt.
        bytes_written: Bytes the remote store accepted (0 on write failure).
        remote_digest: Digest of the bytes read back, if verification ran.
        error: Description of the failure, if any.
    """

    attempt_number: int
    outcome: AttemptOutcome
    bytes_written: int = 0
    remote_digest: str | None = None
    error: str | None = None


@dataclass
class BackupReport:
    """Result of a backup run.

    Attributes:
        job_id: Identifier of the job.
        outcome: Terminal outcome of the run.
        attempts: Upload attempts in order.
        compression: Archive construction result (None if it never completed).
        local_digest: Digest of the local archive (None before hashing).
        remote_name: Name the verified bytes live under remotely, if committed.
        renamed: False when the commit rename failed and the artifact is
            still under its temporary name.
        warnings: Number of WARN events recorded during the run.
        errors: Number of ERROR events recorded during the run.
    """

    job_id: str
    outcome: TerminalOutcome
    attempts: list[TransferAttempt] = field(default_factory=list)
    compression: CompressionResult | None = None
    local_digest: str | None = None
    remote_name: str | None = None
    renamed: bool = False
    warnings: int = 0
    errors: int = 0

    @property
    def succeeded(self) -> bool:
        """Check if the backup was committed."""
        return self.outcome.succeeded

    @property
    def last_attempt(self) -> TransferAttempt | None:
        """Get the final upload attempt, if any was made."""
        return self.attempts[-1] if self.attempts else None
