"""
sendreceive CLI

Command-line interface for deploying and driving a SendReceive contract.

Commands:
  deploy    - Deploy SendReceive (gateway, zero address)
  interact  - Approve a token spend, then multiSend it cross-chain
  whoami    - Show the configured wallet address
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from .config import load_chain
from .errors import SendReceiveError
from .wallet import get_address


# ============ Constants ============

VERSION = "0.1.0"

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level="DEBUG" if verbose else "WARNING")


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="sendreceive")
@click.option("-v", "--verbose", is_flag=True, help="Log RPC calls and transaction progress")
def cli(verbose: bool) -> None:
    """Deploy and interact with a SendReceive contract."""
    _configure_logging(verbose)


# ============ Commands ============

from .commands.deploy import deploy
from .commands.interact import interact

cli.add_command(deploy)
cli.add_command(interact)


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="SENDRECEIVE_CONFIG",
    default=None,
    help="Chain config JSON (default: config/default.json)",
)
@click.option("--chain", "chain_name", default=None, help="Chain name (default: first entry)")
def whoami(config_path: Optional[Path], chain_name: Optional[str]) -> None:
    """Show the wallet address derived from the configured key."""
    try:
        chain = load_chain(config_path, chain_name)
        address = get_address(chain.private_key)
    except SendReceiveError as exc:
        click.secho(str(exc), fg="red", err=True)
        sys.exit(exc.exit_code)
    click.echo(f"Chain:   {chain.name}")
    click.echo(f"Address: {address}")


# ============ Entry Points ============


def main() -> None:
    """sendreceive CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
