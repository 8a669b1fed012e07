"""FTP store (ftp:// and ftps:// locators).

Each operation opens its own control connection, so a connection dropped
during one attempt never poisons the next one.
"""

from __future__ import annotations

import ftplib
import io
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from vaultpush.core.config import DEFAULT_TIMEOUT
from vaultpush.remote.base import (
    RemoteConfigurationError,
    RemoteObjectNotFoundError,
    RemoteStore,
    RemoteStoreError,
)

logger = logging.getLogger(__name__)

DEFAULT_FTP_PORT = 21


def _is_missing(error: ftplib.error_perm) -> bool:
    """Check if a permanent FTP error means "no such file"."""
    return str(error).startswith("550")


class FTPStore(RemoteStore):
    """Store objects in a directory on an FTP server.

    FTP has no portable rename-over-existing, so commits delete the old
    object before renaming the new one into place.
    """

    atomic_replace = False

    def __init__(
        self,
        host: str,
        directory: str = "/",
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        use_tls: bool = False,
        ftp_factory: Callable[..., ftplib.FTP] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            host: Server host name.
            directory: Target directory on the server. It is not created.
            port: Server port (default: 21).
            username: Login name (default: anonymous).
            password: Login password.
            timeout: Socket timeout in seconds for every operation.
            use_tls: Use explicit FTPS with a protected data channel.
            ftp_factory: Callable returning an unconnected FTP object
                (default: ftplib.FTP or ftplib.FTP_TLS).
        """
        self._host = host
        self._directory = directory or "/"
        self._port = port or DEFAULT_FTP_PORT
        self._username = username or "anonymous"
        self._password = password or ""
        self._timeout = timeout
        self._use_tls = use_tls
        if ftp_factory is None:
            ftp_factory = ftplib.FTP_TLS if use_tls else ftplib.FTP
        self._ftp_factory = ftp_factory

    @property
    def location(self) -> str:
        scheme = "ftps" if self._use_tls else "ftp"
        return f"FTP: {scheme}://{self._host}:{self._port}{self._directory}"

    @contextmanager
    def _session(self) -> Iterator[ftplib.FTP]:
        """Open a logged-in connection positioned in the target directory."""
        ftp = self._ftp_factory(timeout=self._timeout)
        try:
            ftp.connect(self._host, self._port)
            ftp.login(self._username, self._password)
            if self._use_tls and isinstance(ftp, ftplib.FTP_TLS):
                ftp.prot_p()
        except ftplib.all_errors as e:
            ftp.close()
            raise RemoteStoreError(f"Could not connect to {self.location}: {e}") from e

        try:
            try:
                ftp.cwd(self._directory)
            except ftplib.error_perm as e:
                raise RemoteConfigurationError(
                    f"Target directory does not exist on server: {self._directory} ({e})"
                ) from e
            yield ftp
        finally:
            try:
                ftp.quit()
            except ftplib.all_errors:
                ftp.close()

    def write(self, name: str, data: bytes, overwrite: bool = True) -> int:
        written = 0

        def count(block: bytes) -> None:
            nonlocal written
            written += len(block)

        try:
            with self._session() as ftp:
                if not overwrite and name in self._list(ftp):
                    raise RemoteStoreError(f"{name} already exists on {self.location}")
                ftp.storbinary(f"STOR {name}", io.BytesIO(data), callback=count)
        except ftplib.all_errors as e:
            raise RemoteStoreError(f"Could not write {name}: {e}") from e
        return written

    def read(self, name: str) -> bytes:
        buffer = io.BytesIO()
        try:
            with self._session() as ftp:
                ftp.retrbinary(f"RETR {name}", buffer.write)
        except ftplib.error_perm as e:
            if _is_missing(e):
                raise RemoteObjectNotFoundError(f"Object not found: {name}") from e
            raise RemoteStoreError(f"Could not read {name}: {e}") from e
        except ftplib.all_errors as e:
            raise RemoteStoreError(f"Could not read {name}: {e}") from e
        return buffer.getvalue()

    def delete_if_exists(self, name: str) -> bool:
        try:
            with self._session() as ftp:
                ftp.delete(name)
        except ftplib.error_perm as e:
            if _is_missing(e):
                return False
            raise RemoteStoreError(f"Could not delete {name}: {e}") from e
        except ftplib.all_errors as e:
            raise RemoteStoreError(f"Could not delete {name}: {e}") from e
        return True

    def rename_or_replace(self, old_name: str, new_name: str) -> None:
        try:
            with self._session() as ftp:
                ftp.rename(old_name, new_name)
        except ftplib.all_errors as e:
            raise RemoteStoreError(f"Could not rename {old_name} to {new_name}: {e}") from e

    def check_directory(self) -> None:
        try:
            with self._session():
                pass
        except RemoteConfigurationError:
            raise
        except ftplib.all_errors as e:
            raise RemoteStoreError(f"Could not reach {self.location}: {e}") from e

    def _list(self, ftp: ftplib.FTP) -> list[str]:
        try:
            return ftp.nlst()
        except ftplib.error_perm as e:
            # Some servers answer 550 for an empty directory
            if _is_missing(e):
                return []
            raise
