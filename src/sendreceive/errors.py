"""
Error taxonomy for sendreceive.

Every failure surfaces as a SendReceiveError subclass; the CLI maps the
class to a process exit code.  Nothing is retried.
"""

from __future__ import annotations

from typing import Optional


class SendReceiveError(RuntimeError):
    exit_code: int = 1


class ConfigError(SendReceiveError):
    exit_code = 2


class MissingParameterError(ConfigError):
    exit_code = 2


class ArtifactError(ConfigError):
    exit_code = 2


class RpcError(SendReceiveError):
    exit_code = 3


class TransactionRejectedError(RpcError):
    exit_code = 4


class RevertError(RpcError):
    """Execution reverted on-chain (or during estimation)."""

    exit_code = 5

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.tx_hash = tx_hash
