__all__ = [
    # Errors
    "ForgeError",
    "EncodingError",
    "SigningError",
    "RpcError",
    "NonceFetchError",
    "SubmitError",
    "ConfirmationError",
    "OperationCancelled",
    "RegistryInvariantError",
    "RegistryIOError",
    "ConfigError",
    "ArtifactError",
    "UnknownContractError",
    # Codec
    "AccessType",
    "ContractType",
    "build_deployment",
    "build_init",
    "build_function_call",
    "build_read_only_call",
    "build_native_transfer",
    # Signing
    "Signer",
    "SignedTransaction",
    # RPC
    "RpcClient",
    "ConfirmationPolicy",
    "EventShape",
    # Registry
    "AddressRegistry",
    "VmType",
    # Configuration
    "ToolkitConfig",
    "load_toolkit_config",
    # Orchestration
    "CallType",
    "DeploymentOrchestrator",
    "DeployState",
    "TxnStatus",
]

from .errors import (
    ArtifactError,
    ConfigError,
    ConfirmationError,
    EncodingError,
    ForgeError,
    NonceFetchError,
    OperationCancelled,
    RegistryInvariantError,
    RegistryIOError,
    RpcError,
    SigningError,
    SubmitError,
    UnknownContractError,
)
from .chain.codec import (
    AccessType,
    ContractType,
    build_deployment,
    build_function_call,
    build_init,
    build_native_transfer,
    build_read_only_call,
)
from .crypto.signing import SignedTransaction, Signer
from .chain.rpc import RpcClient
from .chain.confirm import ConfirmationPolicy
from .chain.events import EventShape
from .registry import AddressRegistry, VmType
from .config import ToolkitConfig, load_toolkit_config
from .orchestrator import CallType, DeploymentOrchestrator, DeployState, TxnStatus
