"""Domain modules for backup business rules.

This package centralizes the job lifecycle:
- job: BackupJob state machine and artifact naming

Architecture:
    domain/ contains pure business logic without external dependencies.
    Archive building, remote calls and logging stay in the backup package.
"""

from vaultpush.backup.domain.job import (
    ARCHIVE_EXTENSION,
    TEMP_SUFFIX,
    VALID_TRANSITIONS,
    BackupJob,
    InvalidTransitionError,
    JobStatus,
    default_job_id,
    validate_job_id,
)

__all__ = [
    "ARCHIVE_EXTENSION",
    "TEMP_SUFFIX",
    "VALID_TRANSITIONS",
    "BackupJob",
    "InvalidTransitionError",
    "JobStatus",
    "default_job_id",
    "validate_job_id",
]
