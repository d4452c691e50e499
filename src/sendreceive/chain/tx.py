"""
Transaction Builder - Build, sign, and send Ethereum transactions.

Uses eth-account for signing and the httpx-based JSON-RPC client for
sending.  Every helper here waits for the receipt before returning, so
callers submit one transaction at a time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from eth_abi import encode
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from loguru import logger

from ..errors import ArtifactError, RevertError
from .abi import Artifact, input_types
from .rpc import (
    encode_function_call,
    estimate_gas,
    get_gas_price,
    get_nonce,
    send_raw_transaction,
    wait_for_receipt,
)


@dataclass
class TxResult:
    """Outcome of a confirmed transaction."""

    tx_hash: str
    receipt: dict[str, Any] = field(repr=False)
    contract_address: Optional[str] = None

    @property
    def block_number(self) -> Optional[int]:
        block = self.receipt.get("blockNumber")
        return int(block, 16) if isinstance(block, str) else block

    @property
    def gas_used(self) -> Optional[int]:
        gas = self.receipt.get("gasUsed")
        return int(gas, 16) if isinstance(gas, str) else gas


def _status(receipt: dict[str, Any]) -> int:
    status = receipt.get("status", "0x0")
    return int(status, 16) if isinstance(status, str) else int(status)


def build_tx(
    account: LocalAccount,
    data: str,
    rpc_url: str,
    chain_id: int,
    to: Optional[str] = None,
    value: int = 0,
    gas_limit: Optional[int] = None,
) -> dict[str, Any]:
    """
    Build an unsigned legacy transaction.

    Args:
        account: Signing account (nonce source)
        data: 0x-prefixed calldata or deployment code
        rpc_url: RPC endpoint URL
        chain_id: EIP-155 chain id
        to: Recipient; None for contract creation
        value: Native value in wei
        gas_limit: Gas limit (default: eth_estimateGas)

    Returns:
        Unsigned transaction dict
    """
    tx: dict[str, Any] = {
        "from": account.address,
        "data": data,
        "value": value,
    }
    if to is not None:
        tx["to"] = to_checksum_address(to)

    if gas_limit is None:
        gas_limit = estimate_gas(tx, rpc_url)

    tx.update(
        {
            "nonce": get_nonce(account.address, rpc_url),
            "gas": gas_limit,
            "gasPrice": get_gas_price(rpc_url),
            "chainId": chain_id,
        }
    )
    # eth-account derives the sender from the key
    del tx["from"]
    return tx


def sign_and_send(
    account: LocalAccount,
    tx: dict[str, Any],
    rpc_url: str,
    timeout: int = 180,
) -> TxResult:
    """
    Sign a transaction, broadcast it and wait for its receipt.

    Raises:
        TransactionRejectedError: If the node refuses the raw transaction
        RevertError: If the receipt reports status 0
    """
    signed = account.sign_transaction(tx)
    raw_tx = "0x" + signed.raw_transaction.hex()

    tx_hash = send_raw_transaction(raw_tx, rpc_url)
    logger.info(f"Submitted {tx_hash} (nonce {tx['nonce']})")

    receipt = wait_for_receipt(tx_hash, rpc_url, timeout=timeout)
    result = TxResult(tx_hash=tx_hash, receipt=receipt)

    if _status(receipt) != 1:
        raise RevertError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)

    logger.info(f"Confirmed {tx_hash} in block {result.block_number} (gas used {result.gas_used})")
    return result


def send_contract_tx(
    account: LocalAccount,
    contract_address: str,
    function_name: str,
    args: list,
    abi: list,
    rpc_url: str,
    chain_id: int,
    value: int = 0,
    gas_limit: Optional[int] = None,
    timeout: int = 180,
) -> TxResult:
    """
    Build, sign, and send a contract call transaction, then wait for it.

    Args:
        account: Signing account
        contract_address: 0x-prefixed contract address
        function_name: Function to call
        args: Function arguments
        abi: Contract ABI
        rpc_url: RPC endpoint URL
        chain_id: EIP-155 chain id
        value: Native value in wei
        gas_limit: Gas limit (default: estimated)
        timeout: Receipt wait timeout

    Returns:
        TxResult of the confirmed transaction
    """
    calldata = encode_function_call(abi, function_name, args)
    logger.debug(f"{function_name}{tuple(args)} -> {contract_address}")
    tx = build_tx(
        account,
        calldata,
        rpc_url,
        chain_id,
        to=contract_address,
        value=value,
        gas_limit=gas_limit,
    )
    return sign_and_send(account, tx, rpc_url, timeout=timeout)


def deploy_contract(
    account: LocalAccount,
    artifact: Artifact,
    constructor_args: Optional[list],
    rpc_url: str,
    chain_id: int,
    gas_limit: Optional[int] = None,
    timeout: int = 180,
) -> TxResult:
    """
    Deploy a contract to the chain.

    Builds a creation transaction (no ``to``), signs, sends, and extracts
    the deployed contract address from the receipt.

    Args:
        account: Signing account
        artifact: Compiled artifact (ABI + bytecode)
        constructor_args: Constructor arguments (default: none)
        rpc_url: RPC endpoint URL
        chain_id: EIP-155 chain id
        gas_limit: Gas limit (default: estimated)
        timeout: Receipt wait timeout

    Returns:
        TxResult with contract_address set
    """
    constructor_args = constructor_args or []
    constructor = artifact.constructor()
    types = input_types(constructor) if constructor else []

    if len(types) != len(constructor_args):
        raise ArtifactError(
            f"{artifact.contract_name} constructor takes {len(types)} arguments, "
            f"got {len(constructor_args)}"
        )

    deploy_data = artifact.bytecode
    if types:
        deploy_data += encode(types, constructor_args).hex()

    tx = build_tx(account, deploy_data, rpc_url, chain_id, gas_limit=gas_limit)
    result = sign_and_send(account, tx, rpc_url, timeout=timeout)

    contract_address = result.receipt.get("contractAddress")
    if not contract_address:
        raise RevertError(
            f"Receipt for {result.tx_hash} has no contract address",
            tx_hash=result.tx_hash,
        )
    result.contract_address = to_checksum_address(contract_address)
    return result
