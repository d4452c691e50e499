"""
JSON-RPC Client.

Lightweight alternative to web3.py: uses httpx for HTTP + eth-abi for encoding.
Supports read-only contract calls, chain/account queries, raw transaction
broadcast, and transaction receipt polling.

Transport and node errors are translated into the sendreceive error
taxonomy: RpcError for network/node failures, TransactionRejectedError for
refused raw transactions, RevertError for execution reverts.
"""

from __future__ import annotations

import itertools
import time
from typing import Any, Optional

import httpx
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector
from loguru import logger

from ..errors import RevertError, RpcError, TransactionRejectedError
from .abi import find_function, input_types, output_types

RPC_TIMEOUT = 30

# Error(string) selector
_ERROR_SELECTOR = bytes.fromhex("08c379a0")
# Panic(uint256) selector
_PANIC_SELECTOR = bytes.fromhex("4e487b71")

_request_ids = itertools.count(1)


def _hex_to_bytes(data: str) -> bytes:
    return bytes.fromhex(data[2:] if data.startswith("0x") else data)


def decode_revert_reason(data: Any) -> Optional[str]:
    """
    Decode revert data returned by a node.

    Returns the Error(string) message, a ``Panic(0x..)`` description, or
    None when the data is absent or not a known encoding.
    """
    if not isinstance(data, str) or len(data) < 10:
        return None
    try:
        raw = _hex_to_bytes(data)
    except ValueError:
        return None
    try:
        if raw[:4] == _ERROR_SELECTOR:
            return decode(["string"], raw[4:])[0]
        if raw[:4] == _PANIC_SELECTOR:
            return f"Panic(0x{decode(['uint256'], raw[4:])[0]:02x})"
    except DecodingError:
        return None
    return None


def _classify_error(method: str, error: Any) -> RpcError:
    if not isinstance(error, dict):
        return RpcError(f"RPC error in {method}: {error}")

    message = str(error.get("message", ""))
    data = error.get("data")
    # Some nodes nest revert data one level deeper
    if isinstance(data, dict):
        data = data.get("data") or data.get("result")

    if error.get("code") == 3 or "revert" in message.lower():
        reason = decode_revert_reason(data)
        if reason is None and ":" in message:
            # Ganache: "VM Exception while processing transaction: revert <reason>"
            reason = message.split(":", 1)[1].strip()
            if reason.lower().startswith("revert "):
                reason = reason[len("revert "):].strip()
            reason = reason or None
        detail = f" ({reason})" if reason else ""
        return RevertError(f"Execution reverted in {method}{detail}", reason=reason)

    if method == "eth_sendRawTransaction":
        return TransactionRejectedError(f"Transaction rejected: {message}")

    return RpcError(f"RPC error in {method}: {message or error}")


def rpc_call(method: str, params: list, rpc_url: str) -> Any:
    """
    Make a JSON-RPC call.

    Args:
        method: RPC method name (e.g., "eth_call")
        params: RPC parameters
        rpc_url: RPC endpoint URL

    Returns:
        Result field from the RPC response

    Raises:
        RpcError: If the endpoint is unreachable or the node returns an error
    """
    payload = {
        "jsonrpc": "2.0",
        "method": method,
        "params": params,
        "id": next(_request_ids),
    }
    logger.debug(f"RPC {method} -> {rpc_url}")

    try:
        with httpx.Client(timeout=RPC_TIMEOUT) as client:
            response = client.post(rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as exc:
        raise RpcError(f"RPC endpoint {rpc_url} failed on {method}: {exc}") from exc
    except ValueError as exc:
        raise RpcError(f"Invalid JSON from {rpc_url} on {method}") from exc

    if not isinstance(data, dict):
        raise RpcError(f"Unexpected response from {rpc_url} on {method}: {data!r}")

    if "error" in data:
        raise _classify_error(method, data["error"])

    return data.get("result")


def encode_function_call(abi: list, function_name: str, args: list) -> str:
    """
    ABI-encode a function call.

    Args:
        abi: Contract ABI
        function_name: Function name to call
        args: Function arguments

    Returns:
        0x-prefixed hex encoded calldata
    """
    types = input_types(find_function(abi, function_name))
    selector = function_signature_to_4byte_selector(
        f"{function_name}({','.join(types)})"
    )
    encoded_args = encode(types, args) if types else b""
    return "0x" + selector.hex() + encoded_args.hex()


def decode_function_result(abi: list, function_name: str, data: str) -> Any:
    """
    ABI-decode a function call result.

    Returns:
        Decoded result (single value or tuple), or None for no outputs
    """
    types = output_types(find_function(abi, function_name))
    if not types:
        return None

    decoded = decode(types, _hex_to_bytes(data))
    if len(decoded) == 1:
        return decoded[0]
    return decoded


def read_contract(
    contract_address: str,
    function_name: str,
    args: Optional[list] = None,
    *,
    abi: list,
    rpc_url: str,
    from_address: Optional[str] = None,
) -> Any:
    """
    Read from a smart contract (eth_call).

    Args:
        contract_address: 0x-prefixed contract address
        function_name: Function to call
        args: Function arguments (default: [])
        abi: Contract ABI
        rpc_url: RPC endpoint URL
        from_address: Optional caller address

    Returns:
        Decoded return value(s)
    """
    call: dict[str, Any] = {
        "to": contract_address,
        "data": encode_function_call(abi, function_name, args or []),
    }
    if from_address:
        call["from"] = from_address

    result = rpc_call("eth_call", [call, "latest"], rpc_url)

    if result is None or result == "0x":
        raise RpcError(
            f"{function_name}() returned no data; is {contract_address} a contract?"
        )

    return decode_function_result(abi, function_name, result)


def get_chain_id(rpc_url: str) -> int:
    return int(rpc_call("eth_chainId", [], rpc_url), 16)


def get_nonce(address: str, rpc_url: str) -> int:
    """
    Get transaction nonce for an address.

    Uses the "pending" block tag so a just-broadcast transaction counts.
    """
    result = rpc_call("eth_getTransactionCount", [address, "pending"], rpc_url)
    return int(result, 16)


def get_gas_price(rpc_url: str) -> int:
    """Get current gas price in wei."""
    return int(rpc_call("eth_gasPrice", [], rpc_url), 16)


def estimate_gas(tx: dict[str, Any], rpc_url: str) -> int:
    """
    Estimate gas for a transaction (eth_estimateGas).

    A revert during estimation surfaces as RevertError before anything is
    broadcast.
    """
    params: dict[str, Any] = {}
    for key in ("from", "to", "data"):
        if tx.get(key):
            params[key] = tx[key]
    if tx.get("value"):
        params["value"] = hex(tx["value"])
    return int(rpc_call("eth_estimateGas", [params], rpc_url), 16)


def send_raw_transaction(raw_tx: str, rpc_url: str) -> str:
    """
    Send a signed raw transaction.

    Args:
        raw_tx: 0x-prefixed hex encoded signed transaction

    Returns:
        Transaction hash (0x-prefixed hex)
    """
    return rpc_call("eth_sendRawTransaction", [raw_tx], rpc_url)


def wait_for_receipt(
    tx_hash: str,
    rpc_url: str,
    timeout: int = 180,
    poll_interval: float = 2.0,
) -> dict:
    """
    Wait for a transaction receipt.

    Args:
        tx_hash: Transaction hash
        rpc_url: RPC endpoint URL
        timeout: Maximum wait time in seconds
        poll_interval: Polling interval in seconds

    Returns:
        Transaction receipt dict

    Raises:
        RpcError: If receipt not found within timeout
    """
    start = time.monotonic()
    while True:
        receipt = rpc_call("eth_getTransactionReceipt", [tx_hash], rpc_url)
        if receipt is not None:
            return receipt
        if time.monotonic() - start >= timeout:
            break
        time.sleep(poll_interval)

    raise RpcError(f"Transaction {tx_hash} not confirmed within {timeout}s")
