"""
Artifact Loader - Loads contract ABIs and bytecode from compiler output.

Accepts Hardhat artifacts (``bytecode`` is a hex string) and Foundry
artifacts (``bytecode.object``).  Artifacts are produced by a separate
compilation step and are only ever read here.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from ..errors import ArtifactError

DEFAULT_ARTIFACT = Path("artifacts") / "contracts" / "SendReceive.sol" / "SendReceive.json"

# Minimal ERC-20 ABI, used when no token artifact is supplied
ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "allowance",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "approve",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "decimals",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "symbol",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
    },
]


@dataclass(frozen=True)
class Artifact:
    contract_name: str
    abi: list[dict[str, Any]]
    bytecode: str

    def function(self, name: str) -> dict[str, Any]:
        return find_function(self.abi, name)

    def constructor(self) -> Optional[dict[str, Any]]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return entry
        return None


def _read_artifact(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ArtifactError(
            f"Artifact not found: {path}. Compile the contracts first."
        )
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ArtifactError(f"Malformed artifact {path}: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("abi"), list):
        raise ArtifactError(f"Artifact {path} has no 'abi' list")
    return data


def _extract_bytecode(data: dict[str, Any]) -> str:
    bytecode = data.get("bytecode", "")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object", "")
    if not isinstance(bytecode, str):
        return ""
    if bytecode and not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    return bytecode


@lru_cache(maxsize=16)
def _load_artifact_file(path: Path) -> dict[str, Any]:
    return _read_artifact(path)


def load_artifact(path: Path) -> Artifact:
    """
    Load a deployable artifact (ABI + bytecode).

    Args:
        path: Path to the artifact JSON

    Returns:
        Artifact with non-empty bytecode

    Raises:
        ArtifactError: If the file is missing, malformed or has no bytecode
    """
    path = Path(path).resolve()
    data = _load_artifact_file(path)
    bytecode = _extract_bytecode(data)
    if bytecode in ("", "0x"):
        raise ArtifactError(f"No bytecode in artifact {path}")
    name = data.get("contractName") or path.stem
    return Artifact(contract_name=name, abi=data["abi"], bytecode=bytecode)


def load_abi(path: Path) -> list[dict[str, Any]]:
    """Load only the ABI of an artifact (interfaces have no bytecode)."""
    return _load_artifact_file(Path(path).resolve())["abi"]


def find_function(abi: list[dict[str, Any]], name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == name:
            return entry
    raise ArtifactError(f"Function {name} not found in ABI")


def input_types(entry: dict[str, Any]) -> list[str]:
    return [_canonical_type(inp) for inp in entry.get("inputs", [])]


def output_types(entry: dict[str, Any]) -> list[str]:
    return [_canonical_type(out) for out in entry.get("outputs", [])]


def _canonical_type(param: dict[str, Any]) -> str:
    """Expand tuple components into the canonical ``(t1,t2)`` form."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ
