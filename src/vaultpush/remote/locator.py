"""Remote locators and the store factory.

A locator is a URI naming a remote *directory*:

    scheme://[user[:password]@]host[:port]/path/

Supported schemes: file, ftp, ftps, http/https (WebDAV), s3.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import unquote, urlsplit, urlunsplit

from vaultpush.core.config import DEFAULT_TIMEOUT
from vaultpush.remote.base import RemoteStore

SUPPORTED_SCHEMES = ("file", "ftp", "ftps", "http", "https", "s3")


class LocatorError(ValueError):
    """Raised when a remote locator cannot be parsed or is unsupported."""


@dataclass(frozen=True)
class RemoteLocator:
    """Parsed remote directory locator.

    Attributes:
        scheme: Lower-case scheme.
        host: Host name (bucket name for s3, empty for file).
        port: Explicit port, if any.
        username: User from the locator, if any.
        password: Password from the locator, if any.
        path: Directory path, always ending in "/".
    """

    scheme: str
    host: str
    port: int | None
    username: str | None
    password: str | None
    path: str

    @classmethod
    def parse(cls, locator: str) -> RemoteLocator:
        """Parse a locator string.

        A missing trailing "/" is added: locators always name a directory.

        Raises:
            LocatorError: If the locator is malformed or the scheme unsupported.
        """
        if "://" not in locator:
            raise LocatorError(f"Not a remote locator (missing scheme): {locator!r}")

        parts = urlsplit(locator)
        scheme = parts.scheme.lower()
        if scheme not in SUPPORTED_SCHEMES:
            raise LocatorError(
                f"Unsupported scheme {scheme!r} (expected one of {', '.join(SUPPORTED_SCHEMES)})"
            )
        if parts.query or parts.fragment:
            raise LocatorError(f"Locators cannot carry a query or fragment: {locator!r}")

        try:
            port = parts.port
        except ValueError as e:
            raise LocatorError(f"Invalid port in locator: {e}") from e

        host = parts.hostname or ""
        if scheme != "file" and not host:
            raise LocatorError(f"Locator has no host: {locator!r}")

        path = unquote(parts.path) or "/"
        if not path.endswith("/"):
            path += "/"

        return cls(
            scheme=scheme,
            host=host,
            port=port,
            username=unquote(parts.username) if parts.username else None,
            password=unquote(parts.password) if parts.password else None,
            path=path,
        )

    @property
    def netloc(self) -> str:
        """Host and port, without credentials."""
        return f"{self.host}:{self.port}" if self.port else self.host

    def redacted(self) -> str:
        """Render the locator with the password masked, for logs."""
        userinfo = ""
        if self.username:
            userinfo = self.username + (":***" if self.password else "") + "@"
        return urlunsplit((self.scheme, userinfo + self.netloc, self.path, "", ""))


def create_store(
    locator: str | RemoteLocator,
    timeout: float = DEFAULT_TIMEOUT,
    verify_ssl: bool = True,
) -> RemoteStore:
    """Factory function to create a RemoteStore from a locator.

    Args:
        locator: Locator string or parsed locator.
        timeout: Timeout in seconds for each remote operation.
        verify_ssl: Verify certificates for https locators.

    Returns:
        Configured RemoteStore instance.

    Raises:
        LocatorError: If the locator is invalid or unsupported.
    """
    if isinstance(locator, str):
        locator = RemoteLocator.parse(locator)

    if locator.scheme == "file":
        from vaultpush.remote.local import LocalDirStore

        if locator.host and locator.host != "localhost":
            raise LocatorError(f"file:// locators must be local, got host {locator.host!r}")
        return LocalDirStore(locator.path, timeout=timeout)

    if locator.scheme in ("ftp", "ftps"):
        from vaultpush.remote.ftp import FTPStore

        return FTPStore(
            host=locator.host,
            directory=locator.path,
            port=locator.port,
            username=locator.username,
            password=locator.password,
            timeout=timeout,
            use_tls=locator.scheme == "ftps",
        )

    if locator.scheme in ("http", "https"):
        from vaultpush.remote.webdav import WebDAVStore

        base_url = urlunsplit((locator.scheme, locator.netloc, locator.path, "", ""))
        return WebDAVStore(
            base_url=base_url,
            username=locator.username,
            password=locator.password,
            timeout=timeout,
            verify_ssl=verify_ssl,
        )

    if locator.scheme == "s3":
        from vaultpush.remote.s3 import S3Store

        return S3Store(
            bucket=locator.host,
            prefix=locator.path,
            access_key=locator.username,
            secret_key=locator.password,
            timeout=timeout,
        )

    raise LocatorError(f"Unsupported scheme: {locator.scheme}")
