"""Input file selection for backups.

This module provides:
- FileCollector: Turns user-supplied paths into an ordered list of files
- DEFAULT_EXCLUDE_PATTERNS: Names skipped when expanding directories
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

# Skipped only inside expanded directories, never when listed explicitly
DEFAULT_EXCLUDE_PATTERNS = [
    ".DS_Store",
    "Thumbs.db",
    "*.tmp",
    "*.swp",
    "~*",
]


class FileCollector:
    """Collects the files to include in a backup.

    Explicit paths are kept in the given order, even when missing, so that
    the archive builder can record them as failures. Directories are expanded
    recursively in sorted order.
    """

    def __init__(self, exclude: list[str] | None = None) -> None:
        """Initialize with exclude patterns.

        Args:
            exclude: Extra fnmatch patterns matched against names and
                relative paths inside expanded directories.
        """
        self._patterns = list(DEFAULT_EXCLUDE_PATTERNS)
        if exclude:
            self._patterns.extend(exclude)

    def collect(self, paths: Iterable[str | Path]) -> list[Path]:
        """Expand paths into absolute file paths.

        Args:
            paths: Files and directories supplied by the caller.

        Returns:
            Absolute paths in order (duplicates preserved).
        """
        files: list[Path] = []
        for raw in paths:
            path = Path(raw).expanduser().absolute()
            if path.is_dir():
                expanded = self._expand(path)
                logger.debug(f"Expanded {path} to {len(expanded)} files")
                files.extend(expanded)
            else:
                files.append(path)
        return files

    def should_exclude(self, path: Path, base_path: Path) -> bool:
        """Check if a path found inside a directory should be skipped.

        Args:
            path: Absolute path to check.
            base_path: The directory being expanded.

        Returns:
            True if the path should be excluded.
        """
        if path.is_symlink():
            return True

        try:
            rel_str = str(path.relative_to(base_path)).replace("\\", "/")
        except ValueError:
            rel_str = path.name

        return any(
            fnmatch.fnmatch(rel_str, pattern) or fnmatch.fnmatch(path.name, pattern)
            for pattern in self._patterns
        )

    def _expand(self, directory: Path) -> list[Path]:
        """List regular files below a directory, sorted, excluding matches."""
        found: list[Path] = []
        for entry in sorted(directory.rglob("*")):
            if self.should_exclude(entry, directory):
                continue
            parents = _parents_within(entry, directory)
            if any(self.should_exclude(parent, directory) for parent in parents):
                continue
            if entry.is_file():
                found.append(entry)
        return found


def _parents_within(path: Path, base: Path) -> list[Path]:
    """Get the ancestors of path strictly below base."""
    parents = []
    for parent in path.parents:
        if parent == base:
            break
        parents.append(parent)
    return parents
