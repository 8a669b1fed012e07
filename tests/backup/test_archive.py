"""Tests for archive construction."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from vaultpush.backup.accounting import Accounting
from vaultpush.backup.archive import ArchiveBuilder, archive_member_name
from vaultpush.backup.types import CompressionFailedError
from vaultpush.core.types import LogLevel


class TestArchiveMemberName:
    """Tests for archive_member_name()."""

    def test_strips_root(self) -> None:
        assert archive_member_name(Path("/home/user/a.txt")) == "home/user/a.txt"

    def test_relative_unchanged(self) -> None:
        assert archive_member_name(Path("docs/a.txt")) == "docs/a.txt"


class TestArchiveBuilder:
    """Tests for ArchiveBuilder.build()."""

    def test_all_files_added(self, source_files: list[Path], tmp_path: Path) -> None:
        dest = tmp_path / "job.zip"
        result = ArchiveBuilder().build(source_files, dest)

        assert result.succeeded == source_files
        assert result.failed == []
        with zipfile.ZipFile(dest) as zf:
            assert len(zf.namelist()) == 3
            assert zf.testzip() is None

    def test_content_preserved(self, source_files: list[Path], tmp_path: Path) -> None:
        dest = tmp_path / "job.zip"
        ArchiveBuilder().build(source_files, dest)

        with zipfile.ZipFile(dest) as zf:
            name = archive_member_name(source_files[0].resolve())
            assert zf.read(name) == b"0123456789"

    def test_missing_file_is_not_fatal(self, source_files: list[Path], tmp_path: Path) -> None:
        """A file that can't be added is recorded and the build continues."""
        missing = tmp_path / "missing.txt"
        files = [source_files[0], missing, source_files[1]]
        accounting = Accounting()

        result = ArchiveBuilder().build(files, tmp_path / "job.zip", accounting)

        assert result.succeeded == [source_files[0], source_files[1]]
        assert result.failed == [missing]
        assert result.accounts_for(files)
        assert accounting.warnings == 1

    def test_directory_is_a_failure(self, source_files: list[Path], tmp_path: Path) -> None:
        """Only regular files are archived."""
        subdir = source_files[0].parent
        files = [source_files[0], subdir]
        result = ArchiveBuilder().build(files, tmp_path / "job.zip")
        assert result.failed == [subdir]

    def test_duplicates_counted_twice_archived_once(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        files = [source_files[0], source_files[0]]
        dest = tmp_path / "job.zip"

        result = ArchiveBuilder().build(files, dest)

        assert result.succeeded == files
        assert result.accounts_for(files)
        with zipfile.ZipFile(dest) as zf:
            assert len(zf.namelist()) == 1

    def test_replaces_existing_archive(self, source_files: list[Path], tmp_path: Path) -> None:
        """An archive is never appended to."""
        dest = tmp_path / "job.zip"
        ArchiveBuilder().build(source_files, dest)
        ArchiveBuilder().build(source_files[:1], dest)

        with zipfile.ZipFile(dest) as zf:
            assert len(zf.namelist()) == 1

    def test_all_missing_raises(self, tmp_path: Path) -> None:
        """Zero successes is a hard failure and leaves no container behind."""
        files = [tmp_path / "x", tmp_path / "y"]
        dest = tmp_path / "job.zip"
        accounting = Accounting()

        with pytest.raises(CompressionFailedError) as excinfo:
            ArchiveBuilder().build(files, dest, accounting)

        assert excinfo.value.failed == files
        assert not dest.exists()
        assert accounting.warnings == 3  # two files + abort notice

    def test_empty_input_raises(self, tmp_path: Path) -> None:
        with pytest.raises(CompressionFailedError):
            ArchiveBuilder().build([], tmp_path / "job.zip")

    def test_summary_logged(self, source_files: list[Path], tmp_path: Path) -> None:
        accounting = Accounting()
        ArchiveBuilder().build(source_files + [tmp_path / "nope"], tmp_path / "j.zip", accounting)

        messages = [e.message for e in accounting.events if e.level is LogLevel.INFO]
        assert "Compression finished with 3 successes and 1 failures." in messages

    def test_uncreatable_destination_raises_oserror(
        self, source_files: list[Path], tmp_path: Path
    ) -> None:
        with pytest.raises(OSError):
            ArchiveBuilder().build(source_files, tmp_path / "no" / "such" / "dir" / "j.zip")
