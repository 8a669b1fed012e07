"""S3-compatible store (s3:// locators) for AWS, OVH, MinIO, etc."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vaultpush.core.config import DEFAULT_TIMEOUT
from vaultpush.remote.base import (
    RemoteConfigurationError,
    RemoteObjectNotFoundError,
    RemoteStore,
    RemoteStoreError,
)

if TYPE_CHECKING:
    from typing import Any

_MISSING_CODES = ("404", "NoSuchKey", "NotFound")

logger = logging.getLogger(__name__)


class S3Store(RemoteStore):
    """Store objects under a key prefix in an S3 bucket.

    S3 has no rename. A commit copies the temporary key onto the final key
    (readers see either the old or the new object) and then deletes the
    temporary key.
    """

    atomic_replace = True

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize S3 storage.

        Args:
            bucket: S3 bucket name.
            prefix: Key prefix acting as the target directory.
            endpoint_url: Custom endpoint URL (for OVH, MinIO, etc.).
            access_key: AWS access key ID (default: boto3 credential chain).
            secret_key: AWS secret access key.
            region: AWS region (default: us-east-1).
            timeout: Connect and read timeout in seconds.
        """
        import boto3
        from botocore.config import Config

        self._bucket = bucket
        self._prefix = prefix.strip("/") + "/" if prefix.strip("/") else ""
        self._endpoint_url = endpoint_url
        self._client: Any = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 1},
            ),
        )

    @property
    def location(self) -> str:
        if self._endpoint_url:
            return f"S3: {self._endpoint_url}/{self._bucket}/{self._prefix}"
        return f"S3: s3://{self._bucket}/{self._prefix}"

    def _key(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def write(self, name: str, data: bytes, overwrite: bool = True) -> int:
        from botocore.exceptions import BotoCoreError, ClientError

        if not overwrite and self._exists(name):
            raise RemoteStoreError(f"{name} already exists on {self.location}")
        try:
            self._client.put_object(Bucket=self._bucket, Key=self._key(name), Body=data)
        except (BotoCoreError, ClientError) as e:
            raise RemoteStoreError(f"Could not write {name}: {e}") from e
        return len(data)

    def read(self, name: str) -> bytes:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            response = self._client.get_object(Bucket=self._bucket, Key=self._key(name))
            body: bytes = response["Body"].read()
            return body
        except ClientError as e:
            if e.response["Error"]["Code"] in _MISSING_CODES:
                raise RemoteObjectNotFoundError(f"Object not found: {name}") from e
            raise RemoteStoreError(f"Could not read {name}: {e}") from e
        except BotoCoreError as e:
            raise RemoteStoreError(f"Could not read {name}: {e}") from e

    def delete_if_exists(self, name: str) -> bool:
        from botocore.exceptions import BotoCoreError, ClientError

        if not self._exists(name):
            return False
        try:
            self._client.delete_object(Bucket=self._bucket, Key=self._key(name))
        except (BotoCoreError, ClientError) as e:
            raise RemoteStoreError(f"Could not delete {name}: {e}") from e
        return True

    def rename_or_replace(self, old_name: str, new_name: str) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client.copy_object(
                Bucket=self._bucket,
                Key=self._key(new_name),
                CopySource={"Bucket": self._bucket, "Key": self._key(old_name)},
            )
        except (BotoCoreError, ClientError) as e:
            raise RemoteStoreError(f"Could not rename {old_name} to {new_name}: {e}") from e

        # The final key already holds the new object.
        try:
            self._client.delete_object(Bucket=self._bucket, Key=self._key(old_name))
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"Could not remove {old_name} after copying to {new_name}: {e}")

    def check_directory(self) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError as e:
            raise RemoteConfigurationError(f"Bucket is not reachable: {self._bucket} ({e})") from e
        except BotoCoreError as e:
            raise RemoteStoreError(f"Could not reach {self.location}: {e}") from e

    def _exists(self, name: str) -> bool:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client.head_object(Bucket=self._bucket, Key=self._key(name))
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in _MISSING_CODES:
                return False
            raise RemoteStoreError(f"Could not stat {name}: {e}") from e
        except BotoCoreError as e:
            raise RemoteStoreError(f"Could not stat {name}: {e}") from e
