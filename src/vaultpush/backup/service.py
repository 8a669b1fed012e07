"""One-call backup entry point.

Wires the collector, the scoped environment, the remote store and the
transfer engine together for callers such as the CLI.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from vaultpush.backup.archive import ArchiveBuilder
from vaultpush.backup.collector import FileCollector
from vaultpush.backup.domain.job import BackupJob, default_job_id, validate_job_id
from vaultpush.backup.engine import TransferEngine
from vaultpush.backup.environment import open_backup_environment
from vaultpush.backup.types import BackupReport
from vaultpush.core.config import BackupConfig
from vaultpush.remote.base import RemoteStore
from vaultpush.remote.locator import RemoteLocator, create_store

logger = logging.getLogger(__name__)


def run_backup(
    config: BackupConfig,
    paths: Iterable[str | Path],
    job_id: str | None = None,
    exclude: list[str] | None = None,
    store: RemoteStore | None = None,
    cancel_check: Callable[[], bool] | None = None,
) -> BackupReport:
    """Back up paths to the configured remote directory.

    Args:
        config: Backup configuration.
        paths: Files and directories to include.
        job_id: Job identifier (default: current timestamp).
        exclude: Extra patterns skipped inside directories.
        store: Remote store to use instead of one built from config.remote.
        cancel_check: Optional function returning True to stop between attempts.

    Returns:
        BackupReport for the run.

    Raises:
        ValueError: If job_id is not a plain file name.
        LocatorError: If config.remote cannot be parsed.
        RemoteConfigurationError: If the remote directory does not exist.
        EnvironmentSetupError: If the work directory or log file cannot be
            created.
        JobInUseError: If another run in this process uses the same job id.
    """
    job_id = validate_job_id(job_id or default_job_id())
    files = FileCollector(exclude).collect(paths)

    owns_store = store is None
    if store is None:
        locator = RemoteLocator.parse(config.remote)
        logger.info(f"Using remote {locator.redacted()}")
        store = create_store(locator, timeout=config.timeout)

    try:
        store.check_directory()

        with open_backup_environment(job_id, config.log_dir, config.work_root) as env:
            env.accounting.info(f"Setup of {len(files)} files to backup.", persist=False)
            job = BackupJob(
                id=job_id,
                files=files,
                archive_path=env.archive_path,
                max_attempts=config.max_attempts,
                verify=config.verify,
            )
            engine = TransferEngine(
                store,
                builder=ArchiveBuilder(config.compression_level),
                cancel_check=cancel_check,
                retry_delay=config.retry_delay,
            )
            return engine.run(job, env.accounting)
    finally:
        if owns_store:
            store.close()
