"""Remote store abstraction for backup archives.

This module provides:
- Abstract interface for a key-addressable remote byte store
- Exception classes raised by store adapters
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class RemoteStoreError(Exception):
    """A remote operation failed or timed out."""


class RemoteObjectNotFoundError(RemoteStoreError):
    """Raised when a remote object does not exist."""


class RemoteConfigurationError(RemoteStoreError):
    """The remote target directory is missing or unusable.

    Stores never create the target directory themselves.
    """


class RemoteStore(ABC):
    """Abstract interface for the directory a backup is uploaded into.

    Object names are plain file names relative to the store's directory.
    Every operation is bounded by the store's timeout.
    """

    #: True if rename_or_replace swaps an existing target in one step.
    atomic_replace: bool = False

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of the store (no secrets)."""

    @abstractmethod
    def write(self, name: str, data: bytes, overwrite: bool = True) -> int:
        """Store bytes under a name.

        Args:
            name: Object name.
            data: Bytes to store.
            overwrite: Replace an existing object with the same name.

        Returns:
            Number of bytes written.

        Raises:
            RemoteStoreError: If the write fails, or the object exists and
                overwrite is False.
        """

    @abstractmethod
    def read(self, name: str) -> bytes:
        """Read back an object.

        Raises:
            RemoteObjectNotFoundError: If the object doesn't exist.
            RemoteStoreError: If the read fails.
        """

    @abstractmethod
    def delete_if_exists(self, name: str) -> bool:
        """Delete an object if present.

        Returns:
            True if an object was deleted, False if there was none.
        """

    @abstractmethod
    def rename_or_replace(self, old_name: str, new_name: str) -> None:
        """Rename an object, replacing any object at the new name.

        Raises:
            RemoteStoreError: If the rename fails.
        """

    @abstractmethod
    def check_directory(self) -> None:
        """Check that the target directory exists.

        Raises:
            RemoteConfigurationError: If it doesn't.
        """

    def close(self) -> None:
        """Release any connection held by the store."""

    def __enter__(self) -> RemoteStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
