"""
Vestal CLI

Command-line client for a deployed vesting contract.

Commands:
  allot   - Set an allotment (one signed transaction) and read it back
  show    - Show an address's current allotment
  info    - Show network, contract and signer status
  whoami  - Show the address of the configured key
"""

from __future__ import annotations

import logging
import sys

import click

from .errors import VestalError
from .keys import get_address, load_env, load_private_key


# ============ Constants ============

VERSION = "0.3.0"


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="vestal")
@click.option("--verbose", "-v", is_flag=True, help="Log each workflow step")
def cli(verbose: bool) -> None:
    """Vestal - vesting allotment client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Subcommand options read env vars after this runs.
    load_env()


# ============ Top-level Commands ============

from .commands.allot import allot
from .commands.query import info, show

cli.add_command(allot)
cli.add_command(show)
cli.add_command(info)


# ============ Identity ============


@cli.command()
def whoami() -> None:
    """Show current wallet identity."""
    try:
        address = get_address(load_private_key())
    except VestalError as exc:
        click.echo(f"No usable key: {exc}")
        sys.exit(exc.exit_code)
    click.echo(f"Address: {address}")


# ============ Entry Points ============


def main() -> None:
    """Vestal CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
