"""Content fingerprints for vaultpush.

This module provides:
- SHA-256 digests of byte blobs (local archive or remote object)
- Streamed digests of local files
- Constant-time digest comparison
"""

import hashlib
import hmac
from pathlib import Path

HASH_ALGORITHM = "sha256"
DIGEST_SIZE = 32  # bytes
READ_BLOCK_SIZE = 8192


def digest(data: bytes) -> str:
    """Compute the SHA-256 digest of a byte blob.

    Args:
        data: Bytes to fingerprint.

    Returns:
        Hexadecimal SHA-256 digest string (64 characters).
    """
    return hashlib.sha256(data).hexdigest()


def digest_file(path: Path) -> str:
    """Compute the SHA-256 digest of a file.

    Reads the file in blocks to handle large archives efficiently.

    Args:
        path: Path to the file to hash.

    Returns:
        Hexadecimal SHA-256 digest string.
    """
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(READ_BLOCK_SIZE), b""):
            hasher.update(block)
    return hasher.hexdigest()


def digests_match(expected: str, actual: str | None) -> bool:
    """Check whether two digests are equal.

    Args:
        expected: Digest of the local archive.
        actual: Digest of the remote copy, or None if it could not be read.

    Returns:
        True only if both digests are present and identical.
    """
    if actual is None:
        return False
    return hmac.compare_digest(expected.lower(), actual.lower())
