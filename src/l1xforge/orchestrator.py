"""
Deployment Orchestrator - install, call and transfer flows.

An install walks a fixed sequence of states::

    IDLE -> RESOLVE_EXISTING -> (CACHED | DEPLOYING -> CONFIRMING
         -> EXTRACTING_ADDRESS -> PERSISTING_REGISTRY) [-> INITIALIZING ...] -> DONE

Any unrecoverable step ends in FAILED and raises. The registry is written only
after an address has been resolved, so a failed run never leaves a partial
entry behind.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol

from .chain.codec import (
    AccessType,
    ContractType,
    Transaction,
    build_deployment,
    build_function_call,
    build_init,
    build_native_transfer,
    build_read_only_call,
    to_wire,
)
from .chain.confirm import ConfirmationPolicy, wait_for_events
from .chain.events import EventShape, extract
from .chain.rpc import ReadOnlyResult, RpcClient, SubmitResult
from .config import ToolkitConfig
from .crypto.signing import SignedTransaction, Signer
from .errors import ArtifactError, ConfirmationError, ForgeError, UnknownContractError
from .registry import AddressRegistry, EbpfDeploy, EbpfInit, EvmDeploy, VmType
from .utils import normalize_hex, prefixed_hex

logger = logging.getLogger(__name__)

DEFAULT_FEE_LIMIT = 100
INVALID_RESPONSE = "Invalid response"


class DeployState(str, Enum):
    IDLE = "idle"
    RESOLVE_EXISTING = "resolve-existing"
    CACHED = "cached"
    DEPLOYING = "deploying"
    CONFIRMING = "confirming"
    EXTRACTING_ADDRESS = "extracting-address"
    PERSISTING_REGISTRY = "persisting-registry"
    INITIALIZING = "initializing"
    DONE = "done"
    FAILED = "failed"


class CallType(str, Enum):
    SUBMIT = "submit"
    READ_ONLY = "read-only"


class ChainClient(Protocol):
    def get_nonce(self, verifying_key: bytes) -> int: ...

    def submit_transaction(self, signed: SignedTransaction) -> SubmitResult: ...

    def get_events(self, tx_hash: str, timestamp: int = 0) -> list[bytes]: ...

    def read_only_call(self, call: Any) -> ReadOnlyResult: ...


@dataclass(frozen=True)
class DeployOutcome:
    """Resolved address of one deploy or init step."""
    address: str
    tx_hash: Optional[str] = None
    cached: bool = False


@dataclass(frozen=True)
class InstallResult:
    vm_type: VmType
    artifact_id: str
    deploy: DeployOutcome
    instance: Optional[DeployOutcome] = None


@dataclass(frozen=True)
class TxnStatus:
    status: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"l1x-forge-txn-status": {"status": self.status, "message": self.message}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class _Submission:
    signed: SignedTransaction
    response: SubmitResult
    events: list[bytes] = field(default_factory=list)


class DeploymentOrchestrator:
    """
    Composes signer, RPC client and registry into the install/call flows.

    Args:
        config: Toolkit configuration (paths, endpoint, key material)
        rpc: Chain client; defaults to an ``RpcClient`` on ``config.rpc_endpoint``
        registry: Address registry; defaults to the workspace registry file
        policy: Confirmation polling policy
        cancel: Event that aborts any pending confirmation wait
    """

    def __init__(
        self,
        config: ToolkitConfig,
        rpc: Optional[ChainClient] = None,
        registry: Optional[AddressRegistry] = None,
        policy: Optional[ConfirmationPolicy] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self.config = config
        self.rpc: ChainClient = rpc or RpcClient(config.rpc_endpoint, timeout=config.rpc_timeout)
        self.registry = registry or AddressRegistry(config.registry_path)
        self.policy = policy or ConfirmationPolicy()
        self.cancel = cancel or threading.Event()
        self.signer = Signer(config.private_key)
        self.state = DeployState.IDLE
        self.history: list[DeployState] = [DeployState.IDLE]

    # ------------------------------------------------------------------
    # State bookkeeping
    # ------------------------------------------------------------------

    def _enter(self, state: DeployState) -> None:
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _reset(self) -> None:
        self.state = DeployState.IDLE
        self.history = [DeployState.IDLE]

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install(
        self,
        vm_type: VmType,
        artifact_id: str,
        contract_id: Optional[str] = None,
        force: bool = False,
        fee_limit: int = DEFAULT_FEE_LIMIT,
    ) -> InstallResult:
        """
        Deploy an artifact (and, for ebpf, initialize an instance of it).

        With ``force=False`` previously recorded addresses are reused and no
        transaction is sent for them.

        Raises:
            ForgeError: Any failure; the orchestrator ends in FAILED
        """
        self._reset()
        logger.info("L1X VM Contract Install :: vm=%s artifact=%s contract=%s force=%s",
                    vm_type.value, artifact_id, contract_id, force)
        try:
            if vm_type is VmType.EBPF:
                if not contract_id:
                    raise ForgeError("An ebpf install requires a contract id")
                result = self._install_ebpf(artifact_id, contract_id, force, fee_limit)
            else:
                result = self._install_evm(artifact_id, force, fee_limit)
        except Exception as exc:
            logger.error("Install of %s failed in state %s: %s", artifact_id, self.state.value, exc)
            self._enter(DeployState.FAILED)
            raise
        self._enter(DeployState.DONE)
        return result

    def _install_ebpf(self, artifact_id: str, contract_id: str, force: bool, fee_limit: int) -> InstallResult:
        self._enter(DeployState.RESOLVE_EXISTING)
        cached_deploy = None if force else self.registry.get(VmType.EBPF, artifact_id)

        if cached_deploy is not None:
            self._enter(DeployState.CACHED)
            logger.info("eBPF Contract Deploy :: %s | cached at %s", artifact_id, cached_deploy)
            deploy = DeployOutcome(address=cached_deploy, cached=True)
            cached_instance = self.registry.get(VmType.EBPF, artifact_id, contract_id)
            if cached_instance is not None:
                logger.info("eBPF Contract Init :: %s | cached at %s", contract_id, cached_instance)
                instance = DeployOutcome(address=cached_instance, cached=True)
                return InstallResult(VmType.EBPF, artifact_id, deploy, instance)
        else:
            self._enter(DeployState.DEPLOYING)
            code = self._read_artifact(self.config.ebpf_artifact_path(artifact_id), binary=True)
            tx = build_deployment(code, AccessType.PRIVATE, ContractType.L1XVM)
            self._write_payload_trace(f"cli-uc-deploy-{contract_id}.json", tx)
            submission = self._submit_and_confirm(tx, fee_limit, f"eBPF Contract Deploy :: {artifact_id}")
            address = self._resolve_ebpf_address(submission)
            self._enter(DeployState.PERSISTING_REGISTRY)
            self.registry.upsert(EbpfDeploy(artifact_id, submission.response.hash, address))
            deploy = DeployOutcome(address=prefixed_hex(address), tx_hash=submission.response.hash)

        self._enter(DeployState.INITIALIZING)
        tx = build_init(deploy.address)
        self._write_payload_trace(f"cli-uc-init-{contract_id}.json", tx)
        submission = self._submit_and_confirm(tx, fee_limit, f"eBPF Contract Init :: {contract_id}")
        address = self._resolve_ebpf_address(submission)
        self._enter(DeployState.PERSISTING_REGISTRY)
        self.registry.upsert(EbpfInit(artifact_id, contract_id, submission.response.hash, address))
        instance = DeployOutcome(address=prefixed_hex(address), tx_hash=submission.response.hash)
        return InstallResult(VmType.EBPF, artifact_id, deploy, instance)

    def _install_evm(self, artifact_id: str, force: bool, fee_limit: int) -> InstallResult:
        self._enter(DeployState.RESOLVE_EXISTING)
        cached = None if force else self.registry.get(VmType.EVM, artifact_id)
        if cached is not None:
            self._enter(DeployState.CACHED)
            logger.info("EVM Contract Deploy :: %s | cached at %s", artifact_id, cached)
            return InstallResult(VmType.EVM, artifact_id, DeployOutcome(address=cached, cached=True))

        self._enter(DeployState.DEPLOYING)
        hex_code = self._read_artifact(self.config.evm_artifact_path(artifact_id), binary=False)
        tx = build_deployment(hex_code, AccessType.PUBLIC, ContractType.EVM)
        submission = self._submit_and_confirm(tx, fee_limit, f"EVM Contract Deploy :: {artifact_id}")

        self._enter(DeployState.EXTRACTING_ADDRESS)
        address = extract(submission.events, EventShape.JSON_ADDRESS)
        if not address:
            raise ConfirmationError(
                f"EVM Contract Deploy Failed: no deployed address in events of {submission.response.hash}",
                tx_hash=submission.response.hash,
            )

        self._enter(DeployState.PERSISTING_REGISTRY)
        self.registry.upsert(EvmDeploy(artifact_id, submission.response.hash, address))
        deploy = DeployOutcome(address=prefixed_hex(address), tx_hash=submission.response.hash)
        return InstallResult(VmType.EVM, artifact_id, deploy)

    def _resolve_ebpf_address(self, submission: _Submission) -> str:
        self._enter(DeployState.EXTRACTING_ADDRESS)
        direct = submission.response.contract_address
        if direct and normalize_hex(direct):
            return normalize_hex(direct)
        from_events = extract(submission.events, EventShape.STATUS_HEX)
        if from_events:
            return from_events
        raise ConfirmationError(
            f"Unknown contract address for transaction {submission.response.hash}",
            tx_hash=submission.response.hash,
        )

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def resolve_target(self, vm_type: VmType, artifact_id: str, contract_id: Optional[str]) -> str:
        if vm_type is VmType.EBPF:
            if not contract_id:
                raise UnknownContractError(
                    f"Unknown contract address for artifact {artifact_id!r}: an ebpf call needs a contract id"
                )
            address = self.registry.get(VmType.EBPF, artifact_id, contract_id)
        else:
            address = self.registry.get(VmType.EVM, artifact_id)
        if address is None:
            raise UnknownContractError(
                f"Unknown contract address for artifact {artifact_id!r}"
                + (f" / contract {contract_id!r}" if vm_type is VmType.EBPF else "")
            )
        return address

    def submit_call(
        self,
        vm_type: VmType,
        artifact_id: str,
        contract_id: Optional[str],
        call_type: CallType,
        function_payload: str,
        fee_limit: int = DEFAULT_FEE_LIMIT,
    ) -> TxnStatus:
        """
        Call a deployed contract recorded in the registry.

        ``SUBMIT`` sends a signed function-call transaction and reports the
        first event; ``READ_ONLY`` simulates the call without a transaction.
        """
        target = self.resolve_target(vm_type, artifact_id, contract_id)
        if call_type is CallType.READ_ONLY:
            return self.read_only(target, function_payload)

        tx = build_function_call(target, function_payload)
        logger.info("Sub Txn Req for %s => %r", artifact_id, tx)
        submission = self._submit_and_confirm(tx, fee_limit, f"Sub Txn :: {artifact_id}")
        return TxnStatus(status=0, message=extract(submission.events, EventShape.STATUS_HEX) or "")

    def read_only(self, contract_address: str, function_payload: str) -> TxnStatus:
        call = build_read_only_call(contract_address, function_payload)
        logger.info("Read-Only Txn Req => %r", call)
        response = self.rpc.read_only_call(call)
        if not response.ok:
            logger.warning("Read-Only Txn returned status %d", response.status)
            return TxnStatus(status=1, message=INVALID_RESPONSE)
        return TxnStatus(status=0, message=response.result.hex())

    def transfer(self, to_address: str, amount: int, fee_limit: int = DEFAULT_FEE_LIMIT) -> TxnStatus:
        """Send a native token transfer and report the first event."""
        tx = build_native_transfer(to_address, amount)
        submission = self._submit_and_confirm(tx, fee_limit, f"Native Transfer :: {prefixed_hex(to_address)}")
        return TxnStatus(status=0, message=extract(submission.events, EventShape.STATUS_HEX) or "")

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _sign(self, tx: Transaction, fee_limit: int) -> SignedTransaction:
        nonce = self.rpc.get_nonce(self.signer.verifying_key)
        return self.signer.sign_transaction(tx, fee_limit=fee_limit, nonce=nonce + 1)

    def _submit_and_confirm(self, tx: Transaction, fee_limit: int, label: str) -> _Submission:
        signed = self._sign(tx, fee_limit)
        response = self.rpc.submit_transaction(signed)
        logger.info("%s | Resp :: %s", label, response)

        if self.state not in (DeployState.IDLE, DeployState.DONE, DeployState.FAILED):
            self._enter(DeployState.CONFIRMING)
        logger.info("%s | Waiting for Event Data ...", label)
        events = wait_for_events(self.rpc, response.hash, self.policy, self.cancel)
        return _Submission(signed=signed, response=response, events=events)

    def _read_artifact(self, path: Path, binary: bool) -> Any:
        try:
            if binary:
                return path.read_bytes()
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ArtifactError(f"Unable to read artifact {path}: {exc}") from exc

    def _write_payload_trace(self, filename: str, tx: Transaction) -> None:
        target = self.config.payload_trace_dir / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(to_wire(tx)), encoding="utf-8")
        except OSError as exc:
            raise ArtifactError(f"Failed to write payload trace {target}: {exc}") from exc
        logger.debug("Payload trace written to %s", target)


__all__ = [
    "CallType",
    "DeployOutcome",
    "DeployState",
    "DeploymentOrchestrator",
    "InstallResult",
    "TxnStatus",
]
