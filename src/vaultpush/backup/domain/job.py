"""Backup job state machine.

States:
    PENDING -> COMPRESSED -> UPLOADING -> VERIFIED -> COMMITTED
                                       -> COMMITTED (verification disabled)
    Any non-terminal state -> FAILED

All state transitions are validated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, auto
from pathlib import Path

from vaultpush.backup.types import CompressionResult, TransferAttempt
from vaultpush.core.config import DEFAULT_MAX_ATTEMPTS

ARCHIVE_EXTENSION = ".zip"
TEMP_SUFFIX = ".tmp"


class JobStatus(IntEnum):
    """Status of a backup job."""

    PENDING = auto()
    COMPRESSED = auto()
    UPLOADING = auto()
    VERIFIED = auto()
    COMMITTED = auto()
    FAILED = auto()


# Valid state transitions
VALID_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.COMPRESSED, JobStatus.FAILED},
    JobStatus.COMPRESSED: {JobStatus.UPLOADING, JobStatus.FAILED},
    JobStatus.UPLOADING: {
        JobStatus.VERIFIED,
        JobStatus.COMMITTED,
        JobStatus.FAILED,
    },
    JobStatus.VERIFIED: {JobStatus.COMMITTED, JobStatus.FAILED},
    JobStatus.COMMITTED: set(),  # Terminal
    JobStatus.FAILED: set(),  # Terminal
}

# Statuses in which the local archive exists and is non-empty
ARCHIVE_STATUSES = frozenset(
    {JobStatus.COMPRESSED, JobStatus.UPLOADING, JobStatus.VERIFIED, JobStatus.COMMITTED}
)


class InvalidTransitionError(Exception):
    """Raised when attempting invalid state transition."""

    pass


def validate_job_id(job_id: str) -> str:
    """Check that a job identifier is a plain file name.

    The identifier names the work directory, the log file and the remote
    objects. It must never point outside the directory it is joined to.

    Returns:
        The identifier, unchanged.

    Raises:
        ValueError: If the identifier is empty, "." or "..", or contains a
            path separator or NUL byte.
    """
    if not job_id:
        raise ValueError("A backup job needs a non-empty identifier")
    if job_id in (".", ".."):
        raise ValueError(f"Job identifier cannot be {job_id!r}")
    if any(c in job_id for c in ("/", "\\", "\0")):
        raise ValueError(f"Job identifier cannot contain path separators: {job_id!r}")
    return job_id


def default_job_id() -> str:
    """Get a timestamp identifier (YYYYMMDDHHMMSS) for a new job."""
    return datetime.now().strftime("%Y%m%d%H%M%S")


@dataclass
class BackupJob:
    """One backup run.

    Attributes:
        id: Identifier, used to derive local and remote archive names.
        files: Source paths in the order they were supplied (duplicates allowed).
        archive_path: Local path of the archive built for this job.
        max_attempts: Upper bound on upload attempts.
        verify: Whether to compare digests before commit.
        status: Current status.
        compression: Archive construction result, once built.
        attempts: Upload attempts in order.
    """

    id: str
    files: list[Path]
    archive_path: Path
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    verify: bool = True
    status: JobStatus = JobStatus.PENDING
    compression: CompressionResult | None = None
    attempts: list[TransferAttempt] = field(default_factory=list)

    def __post_init__(self) -> None:
        validate_job_id(self.id)
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.files = [Path(f) for f in self.files]
        self.archive_path = Path(self.archive_path)

    @property
    def archive_name(self) -> str:
        """Name of the archive, locally and under its final remote name."""
        return f"{self.id}{ARCHIVE_EXTENSION}"

    @property
    def temp_name(self) -> str:
        """Remote name used while the upload is in flight."""
        return f"{self.archive_name}{TEMP_SUFFIX}"

    def transition_to(self, new_status: JobStatus) -> None:
        """Transition to a new status with validation."""
        if new_status not in VALID_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot transition from {self.status.name} to {new_status.name}"
            )
        self.status = new_status

    def fail(self) -> None:
        """Mark the job as failed (no-op if already terminal)."""
        if not self.is_terminal:
            self.transition_to(JobStatus.FAILED)

    def record_attempt(self, attempt: TransferAttempt) -> None:
        """Append an upload attempt, keeping attempts ordered and bounded."""
        expected = len(self.attempts) + 1
        if attempt.attempt_number != expected:
            raise ValueError(
                f"Attempt {attempt.attempt_number} recorded out of order (expected {expected})"
            )
        if attempt.attempt_number > self.max_attempts:
            raise ValueError(
                f"Attempt {attempt.attempt_number} exceeds max_attempts={self.max_attempts}"
            )
        self.attempts.append(attempt)

    @property
    def has_archive(self) -> bool:
        """Check if the job's status allows a local archive to exist."""
        return self.status in ARCHIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        """Check if the job is in a terminal state."""
        return self.status in (JobStatus.COMMITTED, JobStatus.FAILED)
