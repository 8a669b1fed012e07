"""Transfer engine: compress, upload, verify, commit.

States:
    Idle -> Compressing -> Hashing -> Uploading(i) -> Verifying(i)
         -> Committed | RetryOrFail(i + 1) | Aborted

The archive is always uploaded under a temporary name first. It is only
renamed to its final name once the bytes read back from the remote store
have the same digest as the local archive, so the final name never points
at a partial or corrupted upload.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from vaultpush.backup.accounting import Accounting
from vaultpush.backup.archive import ArchiveBuilder
from vaultpush.backup.domain.job import BackupJob, JobStatus
from vaultpush.backup.retry import backoff_delay
from vaultpush.backup.types import (
    BackupReport,
    CompressionFailedError,
    CompressionResult,
    TransferAttempt,
)
from vaultpush.core.fingerprint import digest, digests_match
from vaultpush.core.types import AttemptOutcome, TerminalOutcome
from vaultpush.remote.base import RemoteStore, RemoteStoreError

logger = logging.getLogger(__name__)


class TransferEngine:
    """Runs one backup job to a terminal outcome.

    Transient failures (a failed write, a digest mismatch) are recorded as
    attempt outcomes and retried up to the job's max_attempts. Nothing in
    run() raises for a failed backup: the caller gets a BackupReport.
    """

    def __init__(
        self,
        store: RemoteStore,
        builder: ArchiveBuilder | None = None,
        cancel_check: Callable[[], bool] | None = None,
        retry_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Remote store the archive is uploaded into.
            builder: Archive builder (default: ArchiveBuilder()).
            cancel_check: Optional function returning True to stop before the
                next attempt. An attempt already running always completes.
            retry_delay: Initial delay in seconds between attempts, doubled
                after each failure (0 = retry immediately).
            sleep: Sleep function (replaceable in tests).
        """
        self._store = store
        self._builder = builder or ArchiveBuilder()
        self._cancel_check = cancel_check
        self._retry_delay = retry_delay
        self._sleep = sleep

    def run(self, job: BackupJob, accounting: Accounting | None = None) -> BackupReport:
        """Run a backup job.

        Args:
            job: A PENDING job.
            accounting: Event sink for the job (default: a fresh Accounting).

        Returns:
            BackupReport with the terminal outcome, attempts and counters.
        """
        if job.status is not JobStatus.PENDING:
            raise ValueError(f"Job {job.id} has already run (status {job.status.name})")

        accounting = accounting or Accounting()
        report = BackupReport(job_id=job.id, outcome=TerminalOutcome.TRANSFER_EXHAUSTED)

        report.outcome = self._run(job, accounting, report)
        report.attempts = list(job.attempts)
        report.compression = job.compression

        accounting.info(
            f"Backup finished with {accounting.errors} errors "
            f"and {accounting.warnings} warnings."
        )
        summary = accounting.summary()
        report.warnings = summary.warnings
        report.errors = summary.errors
        return report

    def _run(
        self, job: BackupJob, accounting: Accounting, report: BackupReport
    ) -> TerminalOutcome:
        accounting.info(
            f"Start backup id {job.id} for {len(job.files)} files into {self._store.location}"
        )
        accounting.info("The files included into backup are:")
        for path in job.files:
            accounting.info(str(path))

        # Compressing
        try:
            job.compression = self._builder.build(job.files, job.archive_path, accounting)
        except CompressionFailedError as e:
            job.compression = CompressionResult(failed=list(e.failed))
            self._abort(job, accounting)
            return TerminalOutcome.COMPRESSION_FAILED
        except OSError as e:
            accounting.error(f"Failed trying to open {job.archive_path}: {e}")
            job.compression = CompressionResult(failed=list(job.files))
            self._abort(job, accounting)
            return TerminalOutcome.COMPRESSION_FAILED
        job.transition_to(JobStatus.COMPRESSED)

        # Hashing
        try:
            data = job.archive_path.read_bytes()
        except OSError as e:
            accounting.error(f"Failed to get data from compressed file: {e}. Aborting.")
            self._abort(job, accounting)
            return TerminalOutcome.READ_FAILED
        if not data:
            accounting.error("Compressed file is empty. Aborting.")
            self._abort(job, accounting)
            return TerminalOutcome.READ_FAILED

        local_digest = digest(data)
        report.local_digest = local_digest
        accounting.info(f"{local_digest} is the SHA-256 of the compressed file")
        accounting.info(f"Got {len(data)} bytes from compressed file.", persist=False)
        job.transition_to(JobStatus.UPLOADING)

        # Uploading / verifying
        for attempt_number in range(1, job.max_attempts + 1):
            if attempt_number > 1:
                delay = backoff_delay(attempt_number - 1, self._retry_delay)
                if delay > 0:
                    accounting.info(
                        f"Waiting {delay:.1f}s before attempt #{attempt_number}.",
                        persist=False,
                    )
                    self._sleep(delay)

            if self._cancel_check and self._cancel_check():
                accounting.warn(f"Backup cancelled before attempt #{attempt_number}.")
                self._abort(job, accounting)
                return TerminalOutcome.CANCELLED

            attempt = self._attempt(job, attempt_number, data, local_digest, accounting)
            job.record_attempt(attempt)

            if attempt.outcome is AttemptOutcome.SUCCESS:
                if job.verify:
                    job.transition_to(JobStatus.VERIFIED)
                report.renamed = self._commit(job, accounting)
                report.remote_name = job.archive_name if report.renamed else job.temp_name
                job.transition_to(JobStatus.COMMITTED)
                accounting.info(f"Success of backup on attempt #{attempt_number}.")
                return TerminalOutcome.COMMITTED

        last = job.attempts[-1]
        accounting.error(
            f"Backup failed after {len(job.attempts)} attempts "
            f"(last outcome: {last.outcome.value}). "
            f"{job.temp_name} is left on the remote store for inspection."
        )
        self._abort(job, accounting)
        return TerminalOutcome.TRANSFER_EXHAUSTED

    def _attempt(
        self,
        job: BackupJob,
        attempt_number: int,
        data: bytes,
        local_digest: str,
        accounting: Accounting,
    ) -> TransferAttempt:
        """Write the archive to the temporary name and verify it."""
        accounting.info(
            f"Attempt #{attempt_number} to send {job.archive_name} to {self._store.location}.",
            persist=False,
        )

        written = 0
        error: str | None = None
        try:
            written = self._store.write(job.temp_name, data, overwrite=True)
        except RemoteStoreError as e:
            error = str(e)

        if error is None and written != len(data):
            error = f"{written} of {len(data)} bytes written"

        if error is not None:
            accounting.error(
                f"Failed to write data into remote file on attempt #{attempt_number}: {error}"
            )
            if job.verify:
                accounting.info(
                    f"Skipping verification because the write failed on attempt #{attempt_number}.",
                    persist=False,
                )
                outcome = AttemptOutcome.VERIFY_SKIPPED_WRITE_FAILED
            else:
                outcome = AttemptOutcome.WRITE_FAILED
            return TransferAttempt(attempt_number, outcome, bytes_written=written, error=error)

        accounting.info(f"Wrote {written} bytes into remote file.", persist=False)

        if not job.verify:
            accounting.warn("Verification is off. Skipping.")
            return TransferAttempt(attempt_number, AttemptOutcome.SUCCESS, bytes_written=written)

        remote_digest: str | None = None
        try:
            remote_digest = digest(self._store.read(job.temp_name))
        except RemoteStoreError as e:
            error = f"could not read back {job.temp_name}: {e}"

        if digests_match(local_digest, remote_digest):
            accounting.info("The digest of the remote file matches the local compressed file.")
            return TransferAttempt(
                attempt_number,
                AttemptOutcome.SUCCESS,
                bytes_written=written,
                remote_digest=remote_digest,
            )

        if remote_digest is None:
            accounting.warn(f"Verification failed on attempt #{attempt_number}: {error}")
        else:
            error = "digest mismatch"
            accounting.warn(
                f"Remote digest ({remote_digest}) and local digest ({local_digest}) differ."
            )
        accounting.info(f"Fail of backup on attempt #{attempt_number}.")
        return TransferAttempt(
            attempt_number,
            AttemptOutcome.VERIFY_MISMATCH,
            bytes_written=written,
            remote_digest=remote_digest,
            error=error,
        )

    def _commit(self, job: BackupJob, accounting: Accounting) -> bool:
        """Promote the temporary object to the final name.

        Returns:
            True if renamed, False if the verified bytes stay under the
            temporary name.
        """
        final_name = job.archive_name
        temp_name = job.temp_name

        if not self._store.atomic_replace:
            try:
                self._store.delete_if_exists(final_name)
            except RemoteStoreError as e:
                accounting.warn(f"Could not delete previous {final_name}: {e}")

        try:
            self._store.rename_or_replace(temp_name, final_name)
        except RemoteStoreError as e:
            accounting.warn(
                f"Could not rename {temp_name} to {final_name}: {e}. "
                "The uploaded backup is valid; rename it manually."
            )
            return False

        accounting.info(f"{temp_name} committed as {final_name}.")
        return True

    def _abort(self, job: BackupJob, accounting: Accounting) -> None:
        """Fail the job and remove its local archive."""
        job.fail()
        try:
            job.archive_path.unlink(missing_ok=True)
        except OSError as e:
            accounting.warn(f"Could not remove local archive {job.archive_path}: {e}")
