"""Run command for vaultpush CLI.

Commands:
- run: Back up files to a remote directory
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from vaultpush.backup.accounting import format_event_line
from vaultpush.cli.config import get_default_log_dir, load_config
from vaultpush.cli.exit_codes import (
    EXIT_CONFIG,
    EXIT_LOG,
    EXIT_TEMPDIR,
    EXIT_TRANSFER,
    EXIT_UNKNOWN,
    exit_code_for,
    exit_code_for_setup,
)

logger = logging.getLogger(__name__)

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}


class EventLineFormatter(logging.Formatter):
    """Formats records as "timestamp<TAB>level<TAB>message" lines."""

    def format(self, record: logging.LogRecord) -> str:
        level = _LEVEL_NAMES.get(record.levelno, record.levelname)
        return format_event_line(
            datetime.fromtimestamp(record.created), level, record.getMessage()
        )


def configure_logging(quiet: bool, verbose: bool) -> None:
    """Send vaultpush log records to stdout in the event line format."""
    level = logging.WARNING if quiet else logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(EventLineFormatter())
    handler.setLevel(level)

    vaultpush_logger = logging.getLogger("vaultpush")
    for existing in vaultpush_logger.handlers[:]:
        vaultpush_logger.removeHandler(existing)
    vaultpush_logger.addHandler(handler)
    vaultpush_logger.setLevel(level)
    # Prevent duplicate output through the root logger
    vaultpush_logger.propagate = False


def _setting(value: Any, settings: dict[str, Any], key: str, default: Any = None) -> Any:
    """Pick a command-line value, falling back to the config file, then a default."""
    if value is not None:
        return value
    return settings.get(key, default)


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--id", "job_id", help="Backup identifier (default: YYYYMMDDHHMMSS).")
@click.option("--remote", "-r", help="Remote directory, e.g. ftp://user:pw@host/backups/.")
@click.option("--max-attempts", type=click.IntRange(min=1), help="Upload attempts (default: 3).")
@click.option("--verify/--no-verify", default=None, help="Compare digests before commit.")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Remote timeout (s).")
@click.option("--retry-delay", type=click.FloatRange(min=0), help="Delay between attempts (s).")
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the job log file.",
)
@click.option("--exclude", "-x", multiple=True, help="Pattern skipped inside directories.")
@click.option("--quiet", "-q", is_flag=True, help="Only print warnings and errors.")
@click.option("--verbose", "-v", is_flag=True, help="Print debug messages.")
def run(
    paths: tuple[Path, ...],
    job_id: str | None,
    remote: str | None,
    max_attempts: int | None,
    verify: bool | None,
    timeout: float | None,
    retry_delay: float | None,
    log_dir: Path | None,
    exclude: tuple[str, ...],
    quiet: bool,
    verbose: bool,
) -> None:
    """Back up PATHS to a remote directory.

    Files are compressed into one archive, uploaded under a temporary name,
    verified by digest and only then renamed to <id>.zip.
    """
    from vaultpush.backup import EnvironmentSetupError, JobInUseError, run_backup
    from vaultpush.core.config import DEFAULT_MAX_ATTEMPTS, DEFAULT_TIMEOUT, BackupConfig
    from vaultpush.remote import LocatorError, RemoteConfigurationError, RemoteStoreError

    settings = load_config()

    remote = _setting(remote, settings, "remote")
    if not remote:
        click.echo(
            "Error: No remote configured. Use --remote or 'vaultpush config set remote URL'.",
            err=True,
        )
        sys.exit(EXIT_CONFIG)

    log_dir = Path(_setting(log_dir, settings, "log_dir", get_default_log_dir())).expanduser()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        click.echo(f"Error: Cannot create log directory {log_dir}: {e}", err=True)
        sys.exit(EXIT_LOG)

    try:
        config = BackupConfig(
            remote=remote,
            max_attempts=_setting(max_attempts, settings, "max_attempts", DEFAULT_MAX_ATTEMPTS),
            verify=_setting(verify, settings, "verify", True),
            timeout=_setting(timeout, settings, "timeout", DEFAULT_TIMEOUT),
            retry_delay=_setting(retry_delay, settings, "retry_delay", 0.0),
            log_dir=log_dir,
            compression_level=settings.get("compression_level", 6),
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG)

    configure_logging(quiet, verbose)

    try:
        report = run_backup(config, paths, job_id=job_id, exclude=list(exclude))
    except (LocatorError, RemoteConfigurationError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG)
    except RemoteStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_TRANSFER)
    except EnvironmentSetupError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(exit_code_for_setup(e.stage))
    except JobInUseError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_TEMPDIR)
    except Exception as e:
        logger.exception("Unexpected error during backup")
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_UNKNOWN)

    if report.succeeded:
        click.echo(
            f"Backup {report.job_id} committed as {report.remote_name} "
            f"after {len(report.attempts)} attempt(s)."
        )
        if not report.renamed:
            click.echo(
                f"Warning: the backup is still named {report.remote_name}; "
                "rename it manually.",
                err=True,
            )
    else:
        click.echo(f"Backup {report.job_id} failed: {report.outcome.value}.", err=True)

    click.echo(f"{report.errors} errors, {report.warnings} warnings.")
    sys.exit(exit_code_for(report))
