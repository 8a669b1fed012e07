"""Tests for backup input collection."""

from __future__ import annotations

from pathlib import Path

import pytest

from vaultpush.backup.collector import FileCollector


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """Create a small directory tree."""
    root = tmp_path / "tree"
    (root / "sub").mkdir(parents=True)
    (root / "cache").mkdir()
    (root / "b.txt").write_text("b")
    (root / "a.txt").write_text("a")
    (root / "sub" / "c.txt").write_text("c")
    (root / "sub" / "draft.tmp").write_text("tmp")
    (root / "cache" / "blob").write_text("blob")
    (root / ".DS_Store").write_text("")
    return root


class TestFileCollector:
    """Tests for FileCollector.collect()."""

    def test_explicit_files_keep_order(self, tmp_path: Path) -> None:
        b = tmp_path / "b"
        a = tmp_path / "a"
        b.write_text("b")
        a.write_text("a")

        assert FileCollector().collect([b, a, b]) == [b, a, b]

    def test_missing_paths_kept(self, tmp_path: Path) -> None:
        """Missing files are passed on so compression can report them."""
        missing = tmp_path / "missing.txt"
        assert FileCollector().collect([missing]) == [missing]

    def test_relative_paths_made_absolute(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "x.txt").write_text("x")

        result = FileCollector().collect(["x.txt"])

        assert result == [tmp_path / "x.txt"]
        assert result[0].is_absolute()

    def test_explicit_file_not_excluded(self, tmp_path: Path) -> None:
        """Exclude patterns only apply inside expanded directories."""
        swap = tmp_path / "notes.swp"
        swap.write_text("x")
        assert FileCollector().collect([swap]) == [swap]

    def test_directory_expanded_sorted(self, tree: Path) -> None:
        result = FileCollector().collect([tree])

        assert result == [
            tree / "a.txt",
            tree / "b.txt",
            tree / "cache" / "blob",
            tree / "sub" / "c.txt",
        ]

    def test_extra_exclude_prunes_directory(self, tree: Path) -> None:
        result = FileCollector(exclude=["cache"]).collect([tree])

        assert tree / "cache" / "blob" not in result
        assert tree / "a.txt" in result

    def test_symlinks_skipped(self, tree: Path) -> None:
        link = tree / "link.txt"
        try:
            link.symlink_to(tree / "a.txt")
        except OSError:
            pytest.skip("symlinks not supported")

        assert link not in FileCollector().collect([tree])
