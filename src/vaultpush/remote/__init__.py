"""Remote stores that backups are uploaded into.

Components:
- **RemoteStore**: Abstract write/read/delete/rename interface
- **LocalDirStore**: file:// (mounted shares, tests)
- **FTPStore**: ftp:// and ftps://
- **WebDAVStore**: http:// and https://
- **S3Store**: s3:// (needs the optional boto3 dependency)
- **RemoteLocator / create_store**: Locator parsing and store factory
"""

from vaultpush.remote.base import (
    RemoteConfigurationError,
    RemoteObjectNotFoundError,
    RemoteStore,
    RemoteStoreError,
)
from vaultpush.remote.ftp import FTPStore
from vaultpush.remote.local import LocalDirStore
from vaultpush.remote.locator import (
    SUPPORTED_SCHEMES,
    LocatorError,
    RemoteLocator,
    create_store,
)
from vaultpush.remote.webdav import WebDAVStore

__all__ = [
    # Base
    "RemoteConfigurationError",
    "RemoteObjectNotFoundError",
    "RemoteStore",
    "RemoteStoreError",
    # Stores
    "FTPStore",
    "LocalDirStore",
    "WebDAVStore",
    # Locators
    "SUPPORTED_SCHEMES",
    "LocatorError",
    "RemoteLocator",
    "create_store",
]
