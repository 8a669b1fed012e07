"""WebDAV store (http:// and https:// locators).

This module provides:
- WebDAVStore: PUT/GET/DELETE objects and MOVE them into place with
  ``Overwrite: T``, which replaces the target in one server-side step
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from vaultpush.core.config import DEFAULT_TIMEOUT
from vaultpush.remote.base import (
    RemoteConfigurationError,
    RemoteObjectNotFoundError,
    RemoteStore,
    RemoteStoreError,
)

logger = logging.getLogger(__name__)


class WebDAVStore(RemoteStore):
    """Store objects in a WebDAV collection."""

    atomic_replace = True

    def __init__(
        self,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            base_url: URL of the target collection (credentials stripped).
            username: HTTP basic auth user.
            password: HTTP basic auth password.
            timeout: Request timeout in seconds.
            verify_ssl: Whether to verify SSL certificates.
            transport: Optional httpx transport (for testing).
        """
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        auth = (username, password or "") if username else None
        self._client = httpx.Client(
            auth=auth,
            timeout=timeout,
            verify=verify_ssl,
            transport=transport,
        )

    @property
    def location(self) -> str:
        return f"WebDAV: {self._base_url}"

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def _url(self, name: str) -> str:
        return self._base_url + quote(name)

    def _request(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        try:
            return self._client.request(method, url, **kwargs)  # type: ignore[arg-type]
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"{method} {url} failed: {e}") from e

    def write(self, name: str, data: bytes, overwrite: bool = True) -> int:
        headers = {"Content-Type": "application/octet-stream"}
        if not overwrite:
            headers["If-None-Match"] = "*"
        response = self._request("PUT", self._url(name), content=data, headers=headers)
        if response.status_code == 412:
            raise RemoteStoreError(f"{name} already exists on {self.location}")
        if response.status_code == 409:
            raise RemoteConfigurationError(
                f"Target collection does not exist: {self._base_url}"
            )
        if response.status_code not in (200, 201, 204):
            raise RemoteStoreError(f"PUT {name} returned HTTP {response.status_code}")
        return len(data)

    def read(self, name: str) -> bytes:
        response = self._request("GET", self._url(name))
        if response.status_code == 404:
            raise RemoteObjectNotFoundError(f"Object not found: {name}")
        if response.status_code != 200:
            raise RemoteStoreError(f"GET {name} returned HTTP {response.status_code}")
        return response.content

    def delete_if_exists(self, name: str) -> bool:
        response = self._request("DELETE", self._url(name))
        if response.status_code == 404:
            return False
        if response.status_code not in (200, 204):
            raise RemoteStoreError(f"DELETE {name} returned HTTP {response.status_code}")
        return True

    def rename_or_replace(self, old_name: str, new_name: str) -> None:
        response = self._request(
            "MOVE",
            self._url(old_name),
            headers={"Destination": self._url(new_name), "Overwrite": "T"},
        )
        if response.status_code not in (201, 204):
            raise RemoteStoreError(
                f"MOVE {old_name} to {new_name} returned HTTP {response.status_code}"
            )

    def check_directory(self) -> None:
        response = self._request("PROPFIND", self._base_url, headers={"Depth": "0"})
        if response.status_code == 404:
            raise RemoteConfigurationError(
                f"Target collection does not exist: {self._base_url}"
            )
        if response.status_code not in (200, 207):
            raise RemoteStoreError(
                f"PROPFIND {self._base_url} returned HTTP {response.status_code}"
            )
