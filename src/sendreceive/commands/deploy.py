"""
Deploy - Deploy the SendReceive contract.

Flow:
1. Load chain configuration and build the signer
2. Load the compiled artifact (ABI + bytecode)
3. Send the creation transaction with constructor (gateway, zero address)
4. Wait for the receipt and print the deployed address
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from ..chain.abi import DEFAULT_ARTIFACT, load_artifact
from ..chain.rpc import get_chain_id
from ..chain.tx import deploy_contract
from ..config import load_chain
from ..errors import SendReceiveError
from ..utils import ZERO_ADDRESS
from ..wallet import get_account


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="SENDRECEIVE_CONFIG",
    default=None,
    help="Chain config JSON (default: config/default.json)",
)
@click.option("--chain", "chain_name", default=None, help="Chain name (default: first entry)")
@click.option(
    "--artifact",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_ARTIFACT,
    show_default=True,
    help="SendReceive compiled artifact",
)
@click.option("--gas-limit", type=int, default=None, help="Gas limit (default: estimated)")
@click.option("--timeout", type=int, default=180, show_default=True, help="Receipt wait timeout (s)")
def deploy(
    config_path: Optional[Path],
    chain_name: Optional[str],
    artifact: Path,
    gas_limit: Optional[int],
    timeout: int,
) -> None:
    """Deploy the SendReceive contract bound to the chain's gateway."""
    try:
        chain = load_chain(config_path, chain_name)
        account = get_account(chain.private_key)
        compiled = load_artifact(artifact)

        logger.info(f"Deploying {compiled.contract_name} to {chain.name} from {account.address}")
        chain_id = chain.chain_id or get_chain_id(chain.url)

        result = deploy_contract(
            account,
            compiled,
            [chain.gateway, ZERO_ADDRESS],
            chain.url,
            chain_id,
            gas_limit=gas_limit,
            timeout=timeout,
        )
    except SendReceiveError as exc:
        click.secho(f"Deployment failed: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)

    click.echo(f"send receive contract deployed on {result.contract_address}")
    click.echo(click.style("  TX: ", dim=True) + result.tx_hash)
