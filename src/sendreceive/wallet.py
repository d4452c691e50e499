"""
Signer construction.

The signing identity is an eth-account LocalAccount derived from the
configured secp256k1 private key.  Keys never leave this process: every
transaction is signed locally and broadcast as a raw transaction.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import ValidationError

from .errors import ConfigError


def get_account(private_key: str) -> LocalAccount:
    """
    Get an eth-account LocalAccount from a private key.

    Args:
        private_key: 0x-prefixed hex private key

    Returns:
        LocalAccount instance for signing transactions

    Raises:
        ConfigError: If the key is not a valid secp256k1 private key
    """
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError, ValidationError) as exc:
        raise ConfigError(f"Invalid private key: {exc}") from exc


def get_address(private_key: str) -> str:
    """Get the checksummed address for a private key."""
    return get_account(private_key).address
