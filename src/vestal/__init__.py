__all__ = [
    # Configuration
    "Settings",
    # Workflow
    "AllotmentResult",
    "ContractBinding",
    "Network",
    "broadcast",
    "build_transaction",
    "connect",
    "read_allotment",
    "read_owner",
    "resolve_contract",
    "submit",
    "update_allotment",
    # Chain primitives
    "ContractArtifact",
    "load_artifact",
    "RpcClient",
    "Receipt",
    "SignedTransaction",
    "UnsignedTransaction",
    "sign_transaction",
    # Keys
    "get_account",
    "get_address",
    "load_private_key",
    # Errors
    "VestalError",
    "ConfigError",
    "RpcError",
    "ResolutionError",
    "EstimationError",
    "SigningError",
    "ChainMismatchError",
    "SubmissionError",
    "TransactionReverted",
    "ConfirmationTimeout",
]

from .chain.abi import ContractArtifact, load_artifact
from .chain.rpc import RpcClient
from .chain.tx import Receipt, SignedTransaction, UnsignedTransaction, sign_transaction
from .config import Settings
from .errors import (
    ChainMismatchError,
    ConfigError,
    ConfirmationTimeout,
    EstimationError,
    ResolutionError,
    RpcError,
    SigningError,
    SubmissionError,
    TransactionReverted,
    VestalError,
)
from .keys import get_account, get_address, load_private_key
from .workflow import (
    AllotmentResult,
    ContractBinding,
    Network,
    broadcast,
    build_transaction,
    connect,
    read_allotment,
    read_owner,
    resolve_contract,
    submit,
    update_allotment,
)
