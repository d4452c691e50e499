from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from eth_utils import is_address, to_checksum_address

from .errors import MissingParameterError

ZERO_ADDRESS = "0x" + "0" * 40


def require(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise MissingParameterError(f"Missing required parameter: {name}")
    return value.strip()


def require_address(value: str | None, name: str) -> str:
    """Validate a required address parameter and return it checksummed."""
    value = require(value, name)
    if not is_address(value):
        raise MissingParameterError(f"Invalid address for {name}: {value!r}")
    address = to_checksum_address(value)
    if address == ZERO_ADDRESS:
        raise MissingParameterError(f"Zero address is not allowed for {name}")
    return address


def require_addresses(values: Iterable[str], name: str) -> list[str]:
    addresses = [require_address(v, name) for v in values]
    if not addresses:
        raise MissingParameterError(f"Missing required parameter: {name}")
    return addresses


def require_receivers(values: Iterable[str], name: str, abi_type: str) -> list[str]:
    """
    Validate receivers for a ``multiSend`` argument of the given ABI type.

    ``address[]`` receivers are checksummed EVM addresses; anything else
    (``string[]``, e.g. bech32 Cosmos receivers) only has to be non-blank.
    """
    if abi_type == "address[]":
        return require_addresses(values, name)
    receivers = [require(v, name) for v in values]
    if not receivers:
        raise MissingParameterError(f"Missing required parameter: {name}")
    return receivers


def format_units(value: int, decimals: int) -> str:
    scaled = Decimal(value) / (Decimal(10) ** decimals)
    return format(scaled.normalize(), "f")
