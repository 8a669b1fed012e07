"""Backup runs: archive, upload, verify, commit.

Architecture:
    FileCollector → ArchiveBuilder → digest → TransferEngine → RemoteStore

Components:
- **FileCollector**: Expands user paths into an ordered file list
- **ArchiveBuilder**: Compresses files into one ZIP, per-file failures tolerated
- **TransferEngine**: Bounded retry loop writing to ``{id}.zip.tmp``,
  verifying the read-back digest and committing to ``{id}.zip``
- **Accounting**: Job-scoped event sink counting warnings and errors
- **open_backup_environment**: Work directory and log file for one job
- **run_backup**: Everything above in one call
"""

from vaultpush.backup.accounting import (
    Accounting,
    AccountingSummary,
    LogEvent,
    format_event_line,
)
from vaultpush.backup.archive import ArchiveBuilder
from vaultpush.backup.collector import DEFAULT_EXCLUDE_PATTERNS, FileCollector
from vaultpush.backup.domain import (
    BackupJob,
    InvalidTransitionError,
    JobStatus,
    default_job_id,
    validate_job_id,
)
from vaultpush.backup.engine import TransferEngine
from vaultpush.backup.environment import BackupEnvironment, open_backup_environment
from vaultpush.backup.service import run_backup
from vaultpush.backup.types import (
    BackupError,
    BackupReport,
    CompressionFailedError,
    CompressionResult,
    EnvironmentSetupError,
    JobInUseError,
    SetupStage,
    TransferAttempt,
)

__all__ = [
    # Accounting
    "Accounting",
    "AccountingSummary",
    "LogEvent",
    "format_event_line",
    # Archive
    "ArchiveBuilder",
    # Collector
    "DEFAULT_EXCLUDE_PATTERNS",
    "FileCollector",
    # Domain
    "BackupJob",
    "InvalidTransitionError",
    "JobStatus",
    "default_job_id",
    "validate_job_id",
    # Engine
    "TransferEngine",
    # Environment
    "BackupEnvironment",
    "open_backup_environment",
    # Service
    "run_backup",
    # Types
    "BackupError",
    "BackupReport",
    "CompressionFailedError",
    "CompressionResult",
    "EnvironmentSetupError",
    "JobInUseError",
    "SetupStage",
    "TransferAttempt",
]
