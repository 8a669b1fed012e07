"""Scoped resources for a backup run.

This module provides:
- BackupEnvironment: Work directory, log file and accounting for one job
- open_backup_environment: Context manager that acquires and releases them
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from vaultpush.backup.accounting import Accounting
from vaultpush.backup.domain.job import ARCHIVE_EXTENSION, validate_job_id
from vaultpush.backup.types import EnvironmentSetupError, JobInUseError, SetupStage

logger = logging.getLogger(__name__)

_active_jobs: set[str] = set()
_active_lock = threading.Lock()


@dataclass
class BackupEnvironment:
    """Resources exclusively owned by one running job.

    Attributes:
        job_id: Identifier of the job.
        work_dir: Job work directory (deleted on release).
        log_path: Path of the job log file.
        accounting: Event sink writing to the log file.
    """

    job_id: str
    work_dir: Path
    log_path: Path
    accounting: Accounting
    _log_file: TextIO | None = field(default=None, repr=False)
    _released: bool = field(default=False, repr=False)

    @property
    def archive_path(self) -> Path:
        """Local path for the job archive."""
        return self.work_dir / f"{self.job_id}{ARCHIVE_EXTENSION}"

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Close the log file and delete the work directory.

        Safe to call more than once.
        """
        if self._released:
            return
        self._released = True

        try:
            self.accounting.info("Releasing backup environment.", persist=False)
            if self._log_file is not None:
                self._log_file.close()
                self.accounting.log_file = None
            shutil.rmtree(self.work_dir, ignore_errors=True)
        finally:
            with _active_lock:
                _active_jobs.discard(self.job_id)


def _claim(job_id: str) -> None:
    with _active_lock:
        if job_id in _active_jobs:
            raise JobInUseError(f"Backup job {job_id} is already running")
        _active_jobs.add(job_id)


def _release_claim(job_id: str) -> None:
    with _active_lock:
        _active_jobs.discard(job_id)


def _prepare_work_dir(job_id: str, work_root: Path | None) -> Path:
    root = Path(work_root) if work_root is not None else Path(tempfile.gettempdir())
    work_dir = root / job_id
    try:
        if work_dir.exists():
            logger.info(f"{work_dir} already exists and is deleted.")
            shutil.rmtree(work_dir)
        work_dir.mkdir(parents=True)
    except OSError as e:
        raise EnvironmentSetupError(
            SetupStage.TEMPDIR, f"Could not create work directory {work_dir}: {e}"
        ) from e
    return work_dir


@contextmanager
def open_backup_environment(
    job_id: str,
    log_dir: Path | None = None,
    work_root: Path | None = None,
) -> Iterator[BackupEnvironment]:
    """Acquire the resources of a backup run.

    Creates ``{work_root}/{job_id}/`` (removing a stale one left by an
    earlier run) and opens ``{log_dir}/{job_id}.log``. Everything is
    released when the block exits, however it exits.

    Args:
        job_id: Identifier of the job.
        log_dir: Directory for the log file (default: the work directory).
        work_root: Parent of the work directory (default: system temp dir).

    Yields:
        The BackupEnvironment for the job.

    Raises:
        ValueError: If the job identifier is not a plain file name.
        JobInUseError: If the job identifier is already active.
        EnvironmentSetupError: If the work directory or log file cannot be
            created.
    """
    validate_job_id(job_id)
    _claim(job_id)
    try:
        work_dir = _prepare_work_dir(job_id, work_root)

        log_path = (Path(log_dir) if log_dir is not None else work_dir) / f"{job_id}.log"
        try:
            log_file = open(log_path, "w", encoding="utf-8")
        except OSError as e:
            shutil.rmtree(work_dir, ignore_errors=True)
            raise EnvironmentSetupError(
                SetupStage.LOG, f"Could not open log file {log_path}: {e}"
            ) from e
    except BaseException:
        _release_claim(job_id)
        raise

    env = BackupEnvironment(
        job_id=job_id,
        work_dir=work_dir,
        log_path=log_path,
        accounting=Accounting(log_file=log_file),
        _log_file=log_file,
    )
    env.accounting.info("Backup started.")
    env.accounting.info(f"The backup identifier is {job_id}")
    env.accounting.info(f"The temporary directory is {work_dir}")
    env.accounting.info(f"The log file is {log_path}")

    try:
        yield env
    finally:
        env.release()
