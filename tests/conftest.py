"""
Shared fixtures: an in-process fake chain behind httpx.MockTransport.

The fake chain decodes signed raw transactions (rlp + eth-account
recovery) and ABI calldata, and keeps just enough state to emulate the
SendReceive contract and one ERC-20 token: balances, allowances, deployed
contracts, nonces and receipts.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest
import rlp
from eth_abi import decode, encode
from eth_account import Account
from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address
from loguru import logger

from sendreceive.chain import rpc

# Hardhat / anvil default account #0
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

GATEWAY = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
TOKEN = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"
RECEIVER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
CHAIN_ID = 31337

BYTECODE = "0x6080604052348015600f57600080fd5b50"

SEND_RECEIVE_ABI: list[dict[str, Any]] = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "gateway_", "type": "address"},
            {"name": "gasReceiver_", "type": "address"},
        ],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "gateway",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "multiSend",
        "inputs": [
            {"name": "destinationChain", "type": "string"},
            {"name": "destinationAddress", "type": "string"},
            {"name": "destinationAddresses", "type": "address[]"},
            {"name": "symbol", "type": "string"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
        "stateMutability": "payable",
    },
]


def _selector(signature: str) -> bytes:
    return function_signature_to_4byte_selector(signature)


SEL_BALANCE_OF = _selector("balanceOf(address)")
SEL_ALLOWANCE = _selector("allowance(address,address)")
SEL_APPROVE = _selector("approve(address,uint256)")
SEL_GATEWAY = _selector("gateway()")
# multiSend selector -> argument types; receivers are EVM addresses or strings
MULTI_SEND_TYPES = {
    _selector(f"multiSend(string,string,{receivers},string,uint256)"): ["string", "string", receivers, "string", "uint256"]
    for receivers in ("address[]", "string[]")
}


class Revert(Exception):
    pass


class FakeChain:
    """Minimal JSON-RPC node emulating SendReceive + one ERC-20 token."""

    def __init__(self, token: str = TOKEN) -> None:
        self.token = token
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self.contracts: dict[str, str] = {}  # address -> gateway
        self.nonces: dict[str, int] = {}
        self.receipts: dict[str, dict[str, Any]] = {}
        self.multisends: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.block = 0
        self.reject_sends: Optional[str] = None

    # ---- transport ----

    def handle(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        method = payload["method"]
        self.calls.append(method)
        try:
            result = getattr(self, method)(*payload["params"])
        except Revert as exc:
            data = "0x08c379a0" + encode(["string"], [str(exc)]).hex()
            error = {"code": 3, "message": f"execution reverted: {exc}", "data": data}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "error": error})
        except RuntimeError as exc:
            error = {"code": -32000, "message": str(exc)}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "error": error})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    # ---- execution ----

    def _execute(self, sender: str, to: Optional[str], data: bytes, nonce: int, commit: bool) -> Optional[str]:
        if to is None:
            gateway = to_checksum_address(decode(["address", "address"], data[-64:])[0])
            address = to_checksum_address(keccak(rlp.encode([bytes.fromhex(sender[2:]), nonce]))[-20:])
            if commit:
                self.contracts[address] = gateway
            return address

        selector, body = data[:4], data[4:]
        if to == self.token and selector == SEL_APPROVE:
            spender, amount = decode(["address", "uint256"], body)
            if commit:
                self.allowances[(sender, to_checksum_address(spender))] = amount
            return None

        if to in self.contracts and selector in MULTI_SEND_TYPES:
            dest_chain, dest_address, receivers, symbol, amount = decode(MULTI_SEND_TYPES[selector], body)
            if MULTI_SEND_TYPES[selector][2] == "address[]":
                receivers = [to_checksum_address(r) for r in receivers]
            if self.allowances.get((sender, to), 0) < amount:
                raise Revert("insufficient allowance")
            if self.balances.get(sender, 0) < amount:
                raise Revert("insufficient balance")
            if commit:
                self.allowances[(sender, to)] -= amount
                self.balances[sender] -= amount
                self.multisends.append(
                    {
                        "destination_chain": dest_chain,
                        "destination_address": dest_address,
                        "receivers": list(receivers),
                        "symbol": symbol,
                        "amount": amount,
                    }
                )
            return None

        raise Revert("call to non-contract")

    # ---- JSON-RPC methods ----

    def eth_chainId(self) -> str:
        return hex(CHAIN_ID)

    def eth_gasPrice(self) -> str:
        return hex(1_000_000_000)

    def eth_getTransactionCount(self, address: str, block: str) -> str:
        return hex(self.nonces.get(to_checksum_address(address), 0))

    def eth_estimateGas(self, tx: dict[str, Any]) -> str:
        sender = to_checksum_address(tx["from"])
        to = to_checksum_address(tx["to"]) if tx.get("to") else None
        data = bytes.fromhex(tx["data"][2:])
        self._execute(sender, to, data, self.nonces.get(sender, 0), commit=False)
        return hex(100_000)

    def eth_call(self, call: dict[str, Any], block: str) -> str:
        to = to_checksum_address(call["to"])
        data = bytes.fromhex(call["data"][2:])
        selector, body = data[:4], data[4:]
        if to == self.token and selector == SEL_BALANCE_OF:
            (owner,) = decode(["address"], body)
            return "0x" + encode(["uint256"], [self.balances.get(to_checksum_address(owner), 0)]).hex()
        if to == self.token and selector == SEL_ALLOWANCE:
            owner, spender = decode(["address", "address"], body)
            key = (to_checksum_address(owner), to_checksum_address(spender))
            return "0x" + encode(["uint256"], [self.allowances.get(key, 0)]).hex()
        if to in self.contracts and selector == SEL_GATEWAY:
            return "0x" + encode(["address"], [self.contracts[to]]).hex()
        return "0x"

    def eth_sendRawTransaction(self, raw_tx: str) -> str:
        if self.reject_sends:
            raise RuntimeError(self.reject_sends)

        raw = bytes.fromhex(raw_tx[2:])
        fields = rlp.decode(raw)
        nonce = int.from_bytes(fields[0], "big")
        to = to_checksum_address("0x" + fields[3].hex()) if fields[3] else None
        data = fields[5]
        sender = Account.recover_transaction(raw_tx)

        if nonce != self.nonces.get(sender, 0):
            raise RuntimeError(f"nonce too low: expected {self.nonces.get(sender, 0)}, got {nonce}")
        self.nonces[sender] = nonce + 1

        tx_hash = "0x" + keccak(raw).hex()
        self.block += 1
        status, contract_address = 1, None
        try:
            contract_address = self._execute(sender, to, data, nonce, commit=True)
        except Revert:
            status = 0

        self.receipts[tx_hash] = {
            "transactionHash": tx_hash,
            "status": hex(status),
            "blockNumber": hex(self.block),
            "gasUsed": hex(21_000),
            "contractAddress": contract_address,
            "logs": [],
        }
        return tx_hash

    def eth_getTransactionReceipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        return self.receipts.get(tx_hash)


# ---- fixtures ----


@pytest.fixture(autouse=True)
def _reset_logging():
    """CLI runs add a loguru sink bound to the runner's stderr; drop it after."""
    yield
    logger.remove()


def install_transport(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    real_client = httpx.Client

    def client_factory(**kwargs: Any) -> httpx.Client:
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(rpc.httpx, "Client", client_factory)


@pytest.fixture()
def fake_chain(monkeypatch: pytest.MonkeyPatch) -> FakeChain:
    chain = FakeChain()
    install_transport(monkeypatch, chain.handle)
    return chain


@pytest.fixture()
def unreachable_rpc(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Every request fails with a connection error; returns attempted methods."""
    attempted: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempted.append(json.loads(request.content)["method"])
        raise httpx.ConnectError("Connection refused", request=request)

    install_transport(monkeypatch, handler)
    return attempted


@pytest.fixture()
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory so no stray .env or config is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    monkeypatch.delenv("SENDRECEIVE_CONFIG", raising=False)
    return tmp_path


@pytest.fixture()
def config_file(workdir: Path) -> Path:
    path = workdir / "config" / "default.json"
    path.parent.mkdir()
    path.write_text(
        json.dumps(
            {
                "chains": [
                    {
                        "name": "ganache",
                        "url": "http://localhost:8545",
                        "privateKey": PRIVATE_KEY,
                        "gateway": GATEWAY,
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def artifact_file(workdir: Path) -> Path:
    path = workdir / "artifacts" / "contracts" / "SendReceive.sol" / "SendReceive.json"
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps({"contractName": "SendReceive", "abi": SEND_RECEIVE_ABI, "bytecode": BYTECODE}),
        encoding="utf-8",
    )
    return path
