"""Shared configuration classes for vaultpush.

This module defines the configuration used by the backup core and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_TIMEOUT = 30.0  # seconds, per remote operation
DEFAULT_COMPRESSION_LEVEL = 6


@dataclass
class BackupConfig:
    """Configuration for one backup run.

    Attributes:
        remote: Remote directory locator (e.g., "ftp://user:pw@host:21/backups/").
        max_attempts: Upper bound on upload attempts.
        verify: Whether to compare remote and local digests before commit.
        timeout: Timeout in seconds applied to every remote operation.
        retry_delay: Initial delay in seconds between attempts (0 = immediately).
        log_dir: Directory for the job log file (default: the job work directory).
        work_root: Parent of the job work directory (default: system temp dir).
        compression_level: zlib level used for the archive (0-9).
    """

    remote: str
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    verify: bool = True
    timeout: float = DEFAULT_TIMEOUT
    retry_delay: float = 0.0
    log_dir: Path | None = None
    work_root: Path | None = None
    compression_level: int = DEFAULT_COMPRESSION_LEVEL

    def __post_init__(self) -> None:
        """Normalize the locator and validate bounds."""
        if not self.remote:
            raise ValueError("A remote locator is required")
        if not self.remote.endswith("/"):
            self.remote = self.remote + "/"
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay cannot be negative, got {self.retry_delay}")
        if not 0 <= self.compression_level <= 9:
            raise ValueError(
                f"compression_level must be between 0 and 9, got {self.compression_level}"
            )
        if self.log_dir is not None:
            self.log_dir = Path(self.log_dir)
        if self.work_root is not None:
            self.work_root = Path(self.work_root)

    @property
    def scheme(self) -> str:
        """Get the locator scheme in lower case.

        Returns:
            Scheme such as "ftp", "file" or "https".
        """
        return self.remote.split("://", 1)[0].lower() if "://" in self.remote else ""
