"""Process exit codes for the vaultpush CLI.

The backup core never exits the process; it returns a BackupReport and the
CLI maps it to one of these codes.
"""

from __future__ import annotations

from vaultpush.backup.types import BackupReport, SetupStage
from vaultpush.core.types import AttemptOutcome, TerminalOutcome

EXIT_NORMAL_FINISH = 0
EXIT_TEMPDIR = 1
EXIT_LOG = 2
EXIT_COMPRESS = 3
EXIT_TRANSFER = 4
EXIT_VERIFY = 5
EXIT_CANCELLED = 6
EXIT_CONFIG = 7
EXIT_UNKNOWN = 254


def exit_code_for(report: BackupReport) -> int:
    """Map a backup report to a process exit code.

    A commit whose final rename failed still exits normally: the verified
    backup exists remotely under its temporary name and a warning says so.
    """
    outcome = report.outcome
    if outcome is TerminalOutcome.COMMITTED:
        return EXIT_NORMAL_FINISH
    if outcome is TerminalOutcome.COMPRESSION_FAILED:
        return EXIT_COMPRESS
    if outcome is TerminalOutcome.READ_FAILED:
        return EXIT_TRANSFER
    if outcome is TerminalOutcome.CANCELLED:
        return EXIT_CANCELLED

    last = report.last_attempt
    if last is not None and last.outcome is AttemptOutcome.VERIFY_MISMATCH:
        return EXIT_VERIFY
    return EXIT_TRANSFER


def exit_code_for_setup(stage: SetupStage) -> int:
    """Map a backup environment failure to a process exit code."""
    return EXIT_LOG if stage is SetupStage.LOG else EXIT_TEMPDIR
