"""Command-line interface for vaultpush.

This module provides the main CLI entry point and assembles all commands.

Commands:
- run: Back up files to a remote directory
- check: Compare a remote backup with a local archive
- config: Show or change stored defaults
"""

from __future__ import annotations

import click

from vaultpush.cli.check import check
from vaultpush.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from vaultpush.cli.configure import config_group
from vaultpush.cli.run import run


@click.group()
@click.version_option(package_name="vaultpush")
def cli() -> None:
    """vaultpush - Verified, atomic backups to a remote directory."""


# Backup commands
cli.add_command(run)
cli.add_command(check)

# Config commands
cli.add_command(config_group)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]
