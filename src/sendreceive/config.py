"""
Chain configuration.

Configuration lives in a JSON file holding a list of chains:

    {
      "chains": [
        {
          "name": "ganache",
          "url": "http://localhost:8545",
          "privateKey": "0x...",
          "gateway": "0x..."
        }
      ]
    }

The first entry is used unless a chain is selected by name.  A ``.env``
file in the working directory is loaded first, so PRIVATE_KEY can be kept
out of the JSON file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address

from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config") / "default.json"


@dataclass(frozen=True)
class ChainConfig:
    name: str
    url: str
    private_key: str
    gateway: str
    chain_id: Optional[int] = None

    def __repr__(self) -> str:
        # Never print the key
        return (
            f"ChainConfig(name={self.name!r}, url={self.url!r}, "
            f"gateway={self.gateway!r}, chain_id={self.chain_id!r})"
        )


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Malformed config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _select_chain(chains: Any, name: Optional[str]) -> dict[str, Any]:
    if not isinstance(chains, list) or not chains:
        raise ConfigError("No chains configured (expected a non-empty 'chains' list)")
    if name is None:
        entry = chains[0]
    else:
        matches = [c for c in chains if isinstance(c, dict) and c.get("name") == name]
        if not matches:
            raise ConfigError(f"Chain {name!r} not found in config")
        entry = matches[0]
    if not isinstance(entry, dict):
        raise ConfigError("Chain entry must be a JSON object")
    return entry


def _normalize_private_key(private_key: str) -> str:
    private_key = private_key.strip()
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    return private_key


def load_chain(
    config_path: Optional[Path] = None,
    chain_name: Optional[str] = None,
    env_path: Optional[Path] = None,
) -> ChainConfig:
    """
    Load one chain entry from the config file.

    Args:
        config_path: JSON config path (default: config/default.json)
        chain_name: Select a chain by its ``name`` (default: first entry)
        env_path: .env file to load before reading (default: ./.env)

    Returns:
        ChainConfig for the selected chain

    Raises:
        ConfigError: If the file or the selected entry is missing or malformed
    """
    load_dotenv(env_path or Path(".env"))

    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    data = _read_config_file(path)
    entry = _select_chain(data.get("chains"), chain_name)

    url = entry.get("url")
    if not url:
        raise ConfigError("Chain entry is missing 'url'")

    private_key = entry.get("privateKey") or os.environ.get("PRIVATE_KEY")
    if not private_key:
        raise ConfigError(
            "Chain entry is missing 'privateKey' and PRIVATE_KEY is not set"
        )

    gateway = entry.get("gateway")
    if not gateway:
        raise ConfigError("Chain entry is missing 'gateway'")
    if not is_address(gateway):
        raise ConfigError(f"Invalid gateway address: {gateway!r}")

    chain_id = entry.get("chainId")
    if chain_id is not None:
        try:
            chain_id = int(chain_id)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid chainId: {chain_id!r}") from exc

    return ChainConfig(
        name=str(entry.get("name") or "default"),
        url=str(url),
        private_key=_normalize_private_key(str(private_key)),
        gateway=to_checksum_address(gateway),
        chain_id=chain_id,
    )
