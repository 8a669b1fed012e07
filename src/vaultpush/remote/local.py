"""Local directory store (file:// locators).

Useful for backups to mounted network shares, and for testing.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from pathlib import Path
from typing import TypeVar

from vaultpush.core.config import DEFAULT_TIMEOUT
from vaultpush.remote.base import (
    RemoteConfigurationError,
    RemoteObjectNotFoundError,
    RemoteStore,
    RemoteStoreError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalDirStore(RemoteStore):
    """Store objects as files in an existing directory.

    Renames use os.replace, which swaps the target atomically. Each
    operation runs in a worker thread and is abandoned after ``timeout``
    seconds, so a hung network mount fails the operation instead of the run.
    """

    atomic_replace = True

    def __init__(self, base_path: Path | str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the store.

        Args:
            base_path: Target directory. It is not created.
            timeout: Seconds each filesystem operation may take.
        """
        self._base_path = Path(base_path).expanduser().absolute()
        self._timeout = timeout

    @property
    def location(self) -> str:
        return f"Local directory: {self._base_path}"

    def _path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise RemoteStoreError(f"Invalid object name: {name!r}")
        return self._base_path / name

    def _bounded(self, description: str, func: Callable[[], T]) -> T:
        """Run func in a worker thread, giving up after the store timeout.

        A timed-out worker is left to finish on its own; the executor is not
        waited for.
        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="vaultpush-local")
        try:
            future = executor.submit(func)
            try:
                return future.result(timeout=self._timeout)
            except FuturesTimeoutError as e:
                logger.warning(f"{description} timed out after {self._timeout}s")
                raise RemoteStoreError(
                    f"{description} timed out after {self._timeout}s"
                ) from e
        finally:
            executor.shutdown(wait=False)

    def write(self, name: str, data: bytes, overwrite: bool = True) -> int:
        path = self._path(name)
        mode = "wb" if overwrite else "xb"

        def write_file() -> int:
            with open(path, mode) as f:
                written = f.write(data)
                f.flush()
                os.fsync(f.fileno())
            return written

        try:
            return self._bounded(f"Writing {name}", write_file)
        except FileExistsError as e:
            raise RemoteStoreError(f"{name} already exists in {self._base_path}") from e
        except OSError as e:
            raise RemoteStoreError(f"Could not write {name}: {e}") from e

    def read(self, name: str) -> bytes:
        path = self._path(name)
        try:
            return self._bounded(f"Reading {name}", path.read_bytes)
        except FileNotFoundError as e:
            raise RemoteObjectNotFoundError(f"Object not found: {name}") from e
        except OSError as e:
            raise RemoteStoreError(f"Could not read {name}: {e}") from e

    def delete_if_exists(self, name: str) -> bool:
        path = self._path(name)
        try:
            self._bounded(f"Deleting {name}", path.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise RemoteStoreError(f"Could not delete {name}: {e}") from e
        return True

    def rename_or_replace(self, old_name: str, new_name: str) -> None:
        old_path = self._path(old_name)
        new_path = self._path(new_name)
        try:
            self._bounded(
                f"Renaming {old_name} to {new_name}",
                lambda: os.replace(old_path, new_path),
            )
        except OSError as e:
            raise RemoteStoreError(f"Could not rename {old_name} to {new_name}: {e}") from e

    def check_directory(self) -> None:
        if not self._bounded(f"Checking {self._base_path}", self._base_path.is_dir):
            raise RemoteConfigurationError(
                f"Target directory does not exist: {self._base_path}"
            )
