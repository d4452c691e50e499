"""
Interact - Approve a token spend, then send it cross-chain.

Steps run strictly in order and each transaction is confirmed before the
next is submitted:
1. Read the wallet's token balance (display only)
2. Read the contract's gateway address (display only)
3. approve(contract, amount) and wait
4. multiSend(destChain, destAddress, receivers, symbol, amount) and wait

A failure at any step aborts the rest.  An approve that already
confirmed is left in place.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from eth_utils import to_checksum_address
from loguru import logger

from ..chain.abi import DEFAULT_ARTIFACT, ERC20_ABI, find_function, input_types, load_abi
from ..chain.rpc import get_chain_id, read_contract
from ..chain.tx import send_contract_tx
from ..config import load_chain
from ..errors import ArtifactError, SendReceiveError
from ..utils import format_units, require, require_address, require_receivers
from ..wallet import get_account


def _receiver_type(abi: list) -> str:
    """ABI type of multiSend's receivers argument (``address[]`` or ``string[]``)."""
    types = input_types(find_function(abi, "multiSend"))
    if len(types) != 5:
        raise ArtifactError(f"multiSend takes 5 arguments, ABI declares {len(types)}")
    return types[2]


@click.command()
@click.option("--contract", required=True, help="Deployed SendReceive address")
@click.option("--token", "token_addr", required=True, help="ERC-20 token address")
@click.option("--dest-chain", required=True, help="Destination chain name")
@click.option("--dest-address", required=True, help="SendReceive address on the destination chain")
@click.option(
    "--receiver",
    "receivers",
    multiple=True,
    required=True,
    help="Receiver on the destination chain; address or string per the multiSend ABI (repeatable)",
)
@click.option("--symbol", required=True, help="Gateway token symbol (e.g. aUSDC)")
@click.option(
    "--amount",
    type=click.IntRange(min=1),
    default=1_000_000,
    show_default=True,
    help="Amount in token base units",
)
@click.option(
    "--approve-amount",
    type=click.IntRange(min=1),
    default=None,
    help="Allowance to grant (default: --amount)",
)
@click.option("--value", type=click.IntRange(min=0), default=0, help="Native value (wei) sent with multiSend")
@click.option("--decimals", type=click.IntRange(min=0), default=6, show_default=True, help="Token decimals for display")
@click.option(
    "--artifact",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_ARTIFACT,
    show_default=True,
    help="SendReceive compiled artifact",
)
@click.option(
    "--token-artifact",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Token artifact (default: built-in ERC-20 ABI)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="SENDRECEIVE_CONFIG",
    default=None,
    help="Chain config JSON (default: config/default.json)",
)
@click.option("--chain", "chain_name", default=None, help="Chain name (default: first entry)")
@click.option("--gas-limit", type=int, default=None, help="Gas limit per transaction (default: estimated)")
@click.option("--timeout", type=int, default=180, show_default=True, help="Receipt wait timeout (s)")
def interact(
    contract: str,
    token_addr: str,
    dest_chain: str,
    dest_address: str,
    receivers: tuple[str, ...],
    symbol: str,
    amount: int,
    approve_amount: Optional[int],
    value: int,
    decimals: int,
    artifact: Path,
    token_artifact: Optional[Path],
    config_path: Optional[Path],
    chain_name: Optional[str],
    gas_limit: Optional[int],
    timeout: int,
) -> None:
    """Approve the token spend and call multiSend on the SendReceive contract."""
    try:
        contract = require_address(contract, "contract")
        token_addr = require_address(token_addr, "token")
        dest_chain = require(dest_chain, "dest-chain")
        dest_address = require(dest_address, "dest-address")
        symbol = require(symbol, "symbol")

        send_abi = load_abi(artifact)
        receiver_list = require_receivers(receivers, "receiver", _receiver_type(send_abi))

        if approve_amount is None:
            approve_amount = amount
        elif approve_amount < amount:
            logger.warning(
                f"Allowance {approve_amount} is below the amount {amount}; multiSend will likely revert"
            )

        chain = load_chain(config_path, chain_name)
        account = get_account(chain.private_key)
        token_abi = load_abi(token_artifact) if token_artifact else ERC20_ABI

        chain_id = chain.chain_id or get_chain_id(chain.url)

        balance = read_contract(
            token_addr, "balanceOf", [account.address], abi=token_abi, rpc_url=chain.url
        )
        click.echo(f"wallet has {format_units(balance, decimals)} {symbol}")

        gateway = read_contract(contract, "gateway", abi=send_abi, rpc_url=chain.url)
        click.echo(f"gateway is {to_checksum_address(gateway)}")

        approve_tx = send_contract_tx(
            account,
            token_addr,
            "approve",
            [contract, approve_amount],
            token_abi,
            chain.url,
            chain_id,
            gas_limit=gas_limit,
            timeout=timeout,
        )
        click.echo(click.style("  approve TX: ", dim=True) + approve_tx.tx_hash)

        send_tx = send_contract_tx(
            account,
            contract,
            "multiSend",
            [dest_chain, dest_address, receiver_list, symbol, amount],
            send_abi,
            chain.url,
            chain_id,
            value=value,
            gas_limit=gas_limit,
            timeout=timeout,
        )
    except SendReceiveError as exc:
        click.secho(f"Interaction failed: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)

    click.echo(f"transaction hash is {send_tx.tx_hash}")
