"""Check command for vaultpush CLI.

Commands:
- check: Compare a committed remote backup with a local archive
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from vaultpush.cli.config import load_config
from vaultpush.cli.exit_codes import EXIT_CONFIG, EXIT_TRANSFER, EXIT_VERIFY


@click.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--remote", "-r", help="Remote directory holding the backup.")
@click.option("--name", help="Remote object name (default: the archive's file name).")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Remote timeout (s).")
def check(archive: Path, remote: str | None, name: str | None, timeout: float | None) -> None:
    """Check that the remote copy of ARCHIVE is byte-identical.

    Compares the SHA-256 digest of the local archive with the digest of the
    object read back from the remote directory.
    """
    from vaultpush.core.config import DEFAULT_TIMEOUT
    from vaultpush.core.fingerprint import digest, digest_file, digests_match
    from vaultpush.remote import LocatorError, RemoteStoreError, create_store

    settings = load_config()
    remote = remote or settings.get("remote")
    if not remote:
        click.echo("Error: No remote configured. Use --remote.", err=True)
        sys.exit(EXIT_CONFIG)

    name = name or archive.name
    timeout = timeout or settings.get("timeout", DEFAULT_TIMEOUT)

    try:
        store = create_store(remote, timeout=timeout)
    except LocatorError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG)

    local_digest = digest_file(archive)
    try:
        with store:
            remote_digest = digest(store.read(name))
    except RemoteStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_TRANSFER)

    click.echo(f"local  {local_digest}  {archive}")
    click.echo(f"remote {remote_digest}  {name}")

    if not digests_match(local_digest, remote_digest):
        click.echo("Digests differ.", err=True)
        sys.exit(EXIT_VERIFY)

    click.echo("Digests match.")
