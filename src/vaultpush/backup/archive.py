"""Archive construction.

This module provides:
- ArchiveBuilder: Compresses a list of files into one ZIP archive,
  recording per-file successes and failures
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path, PurePath

from vaultpush.backup.accounting import Accounting
from vaultpush.backup.types import CompressionFailedError, CompressionResult
from vaultpush.core.config import DEFAULT_COMPRESSION_LEVEL

logger = logging.getLogger(__name__)


def archive_member_name(path: Path) -> str:
    """Get the name a file is stored under inside the archive.

    The drive and root are stripped so the archive never holds absolute names.
    """
    pure = PurePath(path)
    parts = pure.parts[1:] if pure.anchor else pure.parts
    return "/".join(p for p in parts if p not in ("", ".", ".."))


class ArchiveBuilder:
    """Builds the ZIP archive for a backup job.

    A file that cannot be added is recorded as a failure and does not stop
    the build. The build only fails if no file at all could be added.
    """

    def __init__(self, compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> None:
        """Initialize the builder.

        Args:
            compression_level: zlib level (0-9) for deflated members.
        """
        self._compression_level = compression_level

    def build(
        self,
        files: list[Path],
        destination: Path,
        accounting: Accounting | None = None,
    ) -> CompressionResult:
        """Compress files into a new archive at destination.

        Anything already at destination is replaced.

        Args:
            files: Source paths, in order.
            destination: Path of the archive to create.
            accounting: Event sink for per-file results (optional).

        Returns:
            CompressionResult with the succeeded and failed paths.

        Raises:
            CompressionFailedError: If no file could be added.
            OSError: If the archive container itself cannot be created.
        """
        accounting = accounting or Accounting()
        destination = Path(destination)
        result = CompressionResult()
        added: set[str] = set()

        zf = zipfile.ZipFile(
            destination,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self._compression_level,
        )
        accounting.info(f"{destination} open.", persist=False)

        try:
            for path in files:
                path = Path(path)
                error = self._add(zf, path, added)
                if error is None:
                    result.succeeded.append(path)
                    accounting.info(f"{path} successfully added.")
                else:
                    result.failed.append(path)
                    accounting.warn(f"Failed to add {path}: {error}")
        finally:
            try:
                zf.close()
                accounting.info(f"{destination} closed.", persist=False)
            except OSError as e:
                accounting.warn(f"Failed trying to close {destination}: {e}")

        accounting.info(
            f"Compression finished with {len(result.succeeded)} successes "
            f"and {len(result.failed)} failures."
        )

        if result.is_empty:
            accounting.warn("No success on compression. Aborting...")
            destination.unlink(missing_ok=True)
            raise CompressionFailedError(destination, result.failed)

        return result

    def _add(self, zf: zipfile.ZipFile, path: Path, added: set[str]) -> str | None:
        """Add one file to the archive.

        Returns:
            None on success, otherwise a description of the failure.
        """
        if not path.exists():
            return "file not found"
        if not path.is_file():
            return "not a regular file"

        arcname = archive_member_name(path.resolve())
        if arcname in added:
            logger.debug(f"{path} already archived as {arcname}")
            return None

        try:
            zf.write(path, arcname=arcname)
        except OSError as e:
            return str(e)

        added.add(arcname)
        return None
