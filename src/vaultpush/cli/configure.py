"""Config commands for vaultpush CLI.

Commands:
- config show: Print the stored configuration (passwords masked)
- config set: Store a default for the run and check commands
- config unset: Remove a stored default
"""

from __future__ import annotations

import sys

import click

from vaultpush.cli.config import (
    CONFIG_KEYS,
    get_config_file,
    load_config,
    parse_config_value,
    save_config,
)


@click.group("config")
def config_group() -> None:
    """Show or change stored defaults."""


@config_group.command("show")
def show() -> None:
    """Print the stored configuration."""
    from vaultpush.remote import LocatorError, RemoteLocator

    config = load_config()
    click.echo(f"Config file: {get_config_file()}")
    if not config:
        click.echo("(empty)")
        return

    for key in sorted(config):
        value = config[key]
        if key == "remote":
            try:
                value = RemoteLocator.parse(str(value)).redacted()
            except LocatorError:
                pass
        click.echo(f"{key} = {value}")


@config_group.command("set")
@click.argument("key", type=click.Choice(sorted(CONFIG_KEYS)))
@click.argument("value")
def set_value(key: str, value: str) -> None:
    """Store VALUE as the default for KEY."""
    try:
        parsed = parse_config_value(key, value)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    config = load_config()
    config[key] = parsed
    save_config(config)
    click.echo(f"Saved {key}.")


@config_group.command("unset")
@click.argument("key", type=click.Choice(sorted(CONFIG_KEYS)))
def unset_value(key: str) -> None:
    """Remove the stored default for KEY."""
    config = load_config()
    if config.pop(key, None) is None:
        click.echo(f"{key} is not set.")
        return
    save_config(config)
    click.echo(f"Removed {key}.")
