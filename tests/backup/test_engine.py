"""Tests for the transfer engine."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.fakes import MemoryStore
from vaultpush.backup.accounting import Accounting
from vaultpush.backup.domain import BackupJob, JobStatus
from vaultpush.backup.engine import TransferEngine
from vaultpush.backup.types import CompressionResult
from vaultpush.core.fingerprint import digest
from vaultpush.core.types import AttemptOutcome, LogLevel, TerminalOutcome

FINAL = "job.zip"
TEMP = "job.zip.tmp"


def make_job(files: list[Path], tmp_path: Path, **kwargs: object) -> BackupJob:
    work = tmp_path / "work"
    work.mkdir(exist_ok=True)
    archive = work / FINAL
    return BackupJob(id="job", files=files, archive_path=archive, **kwargs)  # type: ignore[arg-type]


class EmptyArchiveBuilder:
    """Builder that produces a zero-byte archive."""

    def build(self, files, destination, accounting=None):  # type: ignore[no-untyped-def]
        Path(destination).write_bytes(b"")
        return CompressionResult(succeeded=list(files))


class TestHappyPath:
    """Tests for a run that commits on the first attempt."""

    def test_commits(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore()
        job = make_job(source_files, tmp_path)

        report = TransferEngine(store).run(job)

        assert report.outcome is TerminalOutcome.COMMITTED
        assert report.succeeded
        assert report.renamed is True
        assert report.remote_name == FINAL
        assert job.status == JobStatus.COMMITTED
        assert len(report.attempts) == 1
        assert report.attempts[0].outcome is AttemptOutcome.SUCCESS
        assert report.attempts[0].remote_digest == report.local_digest
        assert set(store.objects) == {FINAL}
        assert digest(store.objects[FINAL]) == report.local_digest

    def test_uploads_to_temp_name_first(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore()
        TransferEngine(store).run(make_job(source_files, tmp_path))

        assert store.operations("write") == [TEMP]
        assert store.operations("read") == [TEMP]
        assert store.operations("rename") == [TEMP]

    def test_compression_accounts_for_every_input(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        files = source_files + [source_files[0]]
        report = TransferEngine(MemoryStore()).run(make_job(files, tmp_path))

        assert report.compression is not None
        assert report.compression.accounts_for(files)
        assert len(report.compression.succeeded) == 4

    def test_finished_line_is_last(self, source_files: list[Path], tmp_path: Path) -> None:
        accounting = Accounting()
        TransferEngine(MemoryStore()).run(make_job(source_files, tmp_path), accounting)

        assert accounting.events[-1].message == "Backup finished with 0 errors and 0 warnings."

    def test_rejects_job_that_already_ran(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        job = make_job(source_files, tmp_path)
        engine = TransferEngine(MemoryStore())
        engine.run(job)

        with pytest.raises(ValueError, match="already run"):
            engine.run(job)


class TestRetryBound:
    """Tests that the attempt loop stops at max_attempts."""

    @pytest.mark.parametrize("max_attempts", [1, 3, 5])
    def test_always_failing_writes(
        self, source_files: list[Path], tmp_path: Path, max_attempts: int
    ) -> None:
        store = MemoryStore(fail_writes=lambda n: True)
        job = make_job(source_files, tmp_path, max_attempts=max_attempts)

        report = TransferEngine(store).run(job)

        assert report.outcome is TerminalOutcome.TRANSFER_EXHAUSTED
        assert len(report.attempts) == max_attempts
        assert store.write_count == max_attempts
        assert FINAL not in store.objects
        assert all(a.outcome.write_failed for a in report.attempts)
        assert report.errors == max_attempts + 1

    def test_attempts_numbered_in_order(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore(fail_writes=lambda n: True)
        report = TransferEngine(store).run(make_job(source_files, tmp_path))

        assert [a.attempt_number for a in report.attempts] == [1, 2, 3]

    def test_write_failure_skips_verification(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        store = MemoryStore(fail_writes=lambda n: True)
        report = TransferEngine(store).run(make_job(source_files, tmp_path, max_attempts=2))

        assert store.operations("read") == []
        assert all(
            a.outcome is AttemptOutcome.VERIFY_SKIPPED_WRITE_FAILED for a in report.attempts
        )

    def test_local_archive_removed_on_failure(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        job = make_job(source_files, tmp_path)
        TransferEngine(MemoryStore(fail_writes=lambda n: True)).run(job)

        assert job.status == JobStatus.FAILED
        assert not job.archive_path.exists()


class TestPartialInputAndRetry:
    """One missing input and one failed write still commit."""

    def test_missing_file_then_retry(self, source_files: list[Path], tmp_path: Path) -> None:
        present = source_files[0]
        missing = tmp_path / "B"
        store = MemoryStore(fail_writes=lambda n: n == 1)
        job = make_job([present, missing], tmp_path)

        report = TransferEngine(store).run(job)

        assert report.outcome is TerminalOutcome.COMMITTED
        assert len(report.attempts) == 2
        assert report.attempts[0].outcome.write_failed
        assert report.attempts[1].outcome is AttemptOutcome.SUCCESS
        assert report.compression is not None
        assert report.compression.succeeded == [present]
        assert report.compression.failed == [missing]
        assert report.warnings >= 1
        assert report.errors >= 1


class TestCorruption:
    """Tests that corrupted uploads are never committed."""

    def test_always_corrupted(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore(corrupt_writes=lambda n: True)

        report = TransferEngine(store).run(make_job(source_files, tmp_path))

        assert report.outcome is TerminalOutcome.TRANSFER_EXHAUSTED
        assert FINAL not in store.objects
        assert TEMP in store.objects
        for attempt in report.attempts:
            assert attempt.outcome is AttemptOutcome.VERIFY_MISMATCH
            assert attempt.remote_digest is not None
            assert attempt.remote_digest != report.local_digest

    def test_existing_final_untouched(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore(corrupt_writes=lambda n: True, watch_name=FINAL)
        store.objects[FINAL] = b"previous backup"

        TransferEngine(store).run(make_job(source_files, tmp_path))

        assert store.objects[FINAL] == b"previous backup"
        assert set(store.final_snapshots) == {b"previous backup"}

    def test_corrupted_once_then_committed(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        store = MemoryStore(corrupt_writes=lambda n: n == 1)

        report = TransferEngine(store).run(make_job(source_files, tmp_path))

        assert report.outcome is TerminalOutcome.COMMITTED
        assert [a.outcome for a in report.attempts] == [
            AttemptOutcome.VERIFY_MISMATCH,
            AttemptOutcome.SUCCESS,
        ]
        assert digest(store.objects[FINAL]) == report.local_digest

    def test_unreadable_read_back_is_mismatch(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        class VanishingStore(MemoryStore):
            def read(self, name: str) -> bytes:
                self.objects.pop(name, None)
                return super().read(name)

        store = VanishingStore()
        report = TransferEngine(store).run(make_job(source_files, tmp_path, max_attempts=1))

        assert report.outcome is TerminalOutcome.TRANSFER_EXHAUSTED
        assert report.attempts[0].outcome is AttemptOutcome.VERIFY_MISMATCH
        assert report.attempts[0].remote_digest is None


class TestAtomicVisibility:
    """The final name only ever holds the previous or the new archive."""

    def test_atomic_store(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore(corrupt_writes=lambda n: n == 1, watch_name=FINAL)
        store.objects[FINAL] = b"previous backup"

        TransferEngine(store).run(make_job(source_files, tmp_path))

        new = store.objects[FINAL]
        assert set(store.final_snapshots) == {b"previous backup", new}
        first_new = store.final_snapshots.index(new)
        assert all(s == new for s in store.final_snapshots[first_new:])

    def test_non_atomic_store_deletes_then_renames(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        """Without atomic replace the final name is briefly absent, never partial."""
        store = MemoryStore(atomic_replace=False, watch_name=FINAL)
        store.objects[FINAL] = b"previous backup"

        TransferEngine(store).run(make_job(source_files, tmp_path))

        new = store.objects[FINAL]
        assert set(store.final_snapshots) <= {b"previous backup", None, new}
        assert store.operations("delete") == [FINAL]
        assert store.final_snapshots[-2:] == [None, new]

    def test_atomic_store_never_deletes(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore()
        TransferEngine(store).run(make_job(source_files, tmp_path))
        assert store.operations("delete") == []


class TestVerificationOff:
    """Tests for runs with verification disabled."""

    def test_single_attempt_no_read(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore()
        job = make_job(source_files, tmp_path, verify=False)

        report = TransferEngine(store).run(job)

        assert report.outcome is TerminalOutcome.COMMITTED
        assert len(report.attempts) == 1
        assert store.operations("read") == []
        assert report.attempts[0].remote_digest is None
        assert report.warnings == 1

    def test_write_failure_outcome(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore(fail_writes=lambda n: True)
        job = make_job(source_files, tmp_path, verify=False, max_attempts=1)

        report = TransferEngine(store).run(job)

        assert report.attempts[0].outcome is AttemptOutcome.WRITE_FAILED


class TestShortWrite:
    """A write that reports fewer bytes than sent is a failed write."""

    def test_short_write(self, source_files: list[Path], tmp_path: Path) -> None:
        class ShortStore(MemoryStore):
            def write(self, name: str, data: bytes, overwrite: bool = True) -> int:
                return super().write(name, data, overwrite) - 1

        store = ShortStore()
        report = TransferEngine(store).run(make_job(source_files, tmp_path, max_attempts=2))

        assert report.outcome is TerminalOutcome.TRANSFER_EXHAUSTED
        assert all(a.outcome.write_failed for a in report.attempts)
        assert "bytes written" in (report.attempts[0].error or "")


class TestCompressionFailures:
    """Tests for runs that never reach the upload loop."""

    def test_all_files_missing(self, tmp_path: Path) -> None:
        store = MemoryStore()
        files = [tmp_path / "x", tmp_path / "y"]
        job = make_job(files, tmp_path)

        report = TransferEngine(store).run(job)

        assert report.outcome is TerminalOutcome.COMPRESSION_FAILED
        assert store.operations("write") == []
        assert report.attempts == []
        assert report.compression is not None
        assert report.compression.failed == files
        assert not job.archive_path.exists()

    def test_container_cannot_be_created(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        job = BackupJob(
            id="job",
            files=source_files,
            archive_path=tmp_path / "no" / "such" / FINAL,
        )
        report = TransferEngine(MemoryStore()).run(job)

        assert report.outcome is TerminalOutcome.COMPRESSION_FAILED
        assert report.errors == 1

    def test_empty_archive_is_read_failure(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        store = MemoryStore()
        engine = TransferEngine(store, builder=EmptyArchiveBuilder())  # type: ignore[arg-type]

        report = engine.run(make_job(source_files, tmp_path))

        assert report.outcome is TerminalOutcome.READ_FAILED
        assert store.operations("write") == []


class TestCommitFailure:
    """A failed rename leaves a valid backup under the temporary name."""

    def test_rename_failure(self, source_files: list[Path], tmp_path: Path) -> None:
        store = MemoryStore(fail_rename=True)

        report = TransferEngine(store).run(make_job(source_files, tmp_path))

        assert report.outcome is TerminalOutcome.COMMITTED
        assert report.renamed is False
        assert report.remote_name == TEMP
        assert digest(store.objects[TEMP]) == report.local_digest
        assert report.warnings == 1


class TestCancellation:
    """Tests for cancel_check between attempts."""

    def test_cancel_before_second_attempt(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        store = MemoryStore(fail_writes=lambda n: True)
        engine = TransferEngine(store, cancel_check=lambda: store.write_count >= 1)
        job = make_job(source_files, tmp_path)

        report = engine.run(job)

        assert report.outcome is TerminalOutcome.CANCELLED
        assert len(report.attempts) == 1
        assert job.status == JobStatus.FAILED
        assert not job.archive_path.exists()

    def test_cancel_before_first_attempt(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        store = MemoryStore()
        report = TransferEngine(store, cancel_check=lambda: True).run(
            make_job(source_files, tmp_path)
        )

        assert report.outcome is TerminalOutcome.CANCELLED
        assert store.operations("write") == []


class TestBackoff:
    """Tests for waiting between attempts."""

    def test_no_wait_by_default(self, source_files: list[Path], tmp_path: Path) -> None:
        sleeps: list[float] = []
        engine = TransferEngine(MemoryStore(fail_writes=lambda n: True), sleep=sleeps.append)
        engine.run(make_job(source_files, tmp_path))
        assert sleeps == []

    def test_exponential_wait(self, source_files: list[Path], tmp_path: Path) -> None:
        sleeps: list[float] = []
        engine = TransferEngine(
            MemoryStore(fail_writes=lambda n: True),
            retry_delay=1.0,
            sleep=sleeps.append,
        )
        engine.run(make_job(source_files, tmp_path))
        assert sleeps == [1.0, 2.0]


class TestEventLevels:
    """Tests for the events a failed transfer records."""

    def test_exhaustion_is_an_error(self, source_files: list[Path], tmp_path: Path) -> None:
        accounting = Accounting()
        TransferEngine(MemoryStore(corrupt_writes=lambda n: True)).run(
            make_job(source_files, tmp_path), accounting
        )

        errors = [e.message for e in accounting.events if e.level is LogLevel.ERROR]
        assert len(errors) == 1
        assert errors[0].startswith("Backup failed after 3 attempts")
        assert accounting.warnings == 3
