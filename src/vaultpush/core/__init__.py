"""Core module - Shared configuration, fingerprints, and enums."""

from vaultpush.core.config import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT,
    BackupConfig,
)
from vaultpush.core.fingerprint import digest, digest_file, digests_match
from vaultpush.core.types import AttemptOutcome, LogLevel, TerminalOutcome

__all__ = [
    # Config
    "BackupConfig",
    "DEFAULT_COMPRESSION_LEVEL",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_TIMEOUT",
    # Fingerprints
    "digest",
    "digest_file",
    "digests_match",
    # Types
    "AttemptOutcome",
    "LogLevel",
    "TerminalOutcome",
]
