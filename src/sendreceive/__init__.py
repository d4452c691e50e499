__all__ = [
    # Config
    "ChainConfig",
    "load_chain",
    # Errors
    "SendReceiveError",
    "ConfigError",
    "MissingParameterError",
    "ArtifactError",
    "RpcError",
    "TransactionRejectedError",
    "RevertError",
    # Wallet
    "get_account",
    "get_address",
    # Chain
    "Artifact",
    "TxResult",
    "load_artifact",
    "load_abi",
    "read_contract",
    "deploy_contract",
    "send_contract_tx",
]

from .config import ChainConfig, load_chain
from .errors import (
    ArtifactError,
    ConfigError,
    MissingParameterError,
    RevertError,
    RpcError,
    SendReceiveError,
    TransactionRejectedError,
)
from .wallet import get_account, get_address
from .chain.abi import Artifact, load_abi, load_artifact
from .chain.rpc import read_contract
from .chain.tx import TxResult, deploy_contract, send_contract_tx
