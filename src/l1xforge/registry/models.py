"""
Contract address registry data model.

Two independent tables keyed by artifact id:

- ``vm`` (persisted as ``l1x_vm``): ebpf deployments and their initialized
  instances;
- ``evm`` (persisted as ``l1x_evm``): EVM deployments, which have no
  separate initialization step.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from ..errors import RegistryIOError, RegistryInvariantError
from ..utils import prefixed_hex


class VmType(str, Enum):
    EBPF = "ebpf"
    EVM = "evm"


def _address(value: Any) -> str:
    # An unquoted 0x value in hand-edited YAML loads as an int.
    if isinstance(value, int) and not isinstance(value, bool):
        return prefixed_hex(format(value, "040x"))
    return prefixed_hex(str(value))


def _tx_hash(value: Any) -> str:
    # Same int coercion as _address; transaction hashes are 32 bytes.
    if isinstance(value, int) and not isinstance(value, bool):
        return "0x" + format(value, "064x")
    return str(value)


@dataclass(frozen=True)
class InstanceEntry:
    inst_hash: str
    inst_address: str

    def to_dict(self) -> dict[str, Any]:
        return {"inst_hash": self.inst_hash, "inst_address": self.inst_address}


@dataclass(frozen=True)
class VmContractEntry:
    deploy_hash: str
    deploy_address: str
    instances: dict[str, InstanceEntry] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "deploy_hash": self.deploy_hash,
            "deploy_address": self.deploy_address,
            "instance": {cid: inst.to_dict() for cid, inst in sorted(self.instances.items())},
        }


@dataclass(frozen=True)
class EvmContractEntry:
    deploy_hash: str
    deploy_address: str

    def to_dict(self) -> dict[str, Any]:
        return {"deploy_hash": self.deploy_hash, "deploy_address": self.deploy_address}


@dataclass(frozen=True)
class EbpfDeploy:
    artifact_id: str
    tx_hash: str
    address: str


@dataclass(frozen=True)
class EbpfInit:
    artifact_id: str
    contract_id: str
    tx_hash: str
    address: str


@dataclass(frozen=True)
class EvmDeploy:
    artifact_id: str
    tx_hash: str
    address: str


RegistryUpdate = Union[EbpfDeploy, EbpfInit, EvmDeploy]


@dataclass(frozen=True)
class RegistryDocument:
    vm: dict[str, VmContractEntry] = field(default_factory=dict)
    evm: dict[str, EvmContractEntry] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Any) -> "RegistryDocument":
        """
        Build the registry from its parsed YAML form.

        Raises:
            RegistryIOError: If the structure does not match the registry layout
        """
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise RegistryIOError("Contract address registry must be a mapping")

        try:
            vm = {
                str(artifact_id): VmContractEntry(
                    deploy_hash=_tx_hash(info["deploy_hash"]),
                    deploy_address=_address(info["deploy_address"]),
                    instances={
                        str(cid): InstanceEntry(
                            inst_hash=_tx_hash(inst["inst_hash"]),
                            inst_address=_address(inst["inst_address"]),
                        )
                        for cid, inst in (info.get("instance") or {}).items()
                    },
                )
                for artifact_id, info in (payload.get("l1x_vm") or {}).items()
            }
            evm = {
                str(artifact_id): EvmContractEntry(
                    deploy_hash=_tx_hash(info["deploy_hash"]),
                    deploy_address=_address(info["deploy_address"]),
                )
                for artifact_id, info in (payload.get("l1x_evm") or {}).items()
            }
        except (KeyError, TypeError, AttributeError) as exc:
            raise RegistryIOError(f"Malformed contract address registry: {exc}") from exc

        return cls(vm=vm, evm=evm)

    def to_dict(self) -> dict[str, Any]:
        return {
            "l1x_vm": {aid: entry.to_dict() for aid, entry in sorted(self.vm.items())},
            "l1x_evm": {aid: entry.to_dict() for aid, entry in sorted(self.evm.items())},
        }

    def apply(self, update: RegistryUpdate) -> "RegistryDocument":
        """
        Return a new document with ``update`` applied.

        Raises:
            RegistryInvariantError: For an ebpf init whose artifact has no
                deploy entry
        """
        if isinstance(update, EbpfDeploy):
            vm = dict(self.vm)
            vm[update.artifact_id] = VmContractEntry(
                deploy_hash=update.tx_hash,
                deploy_address=prefixed_hex(update.address),
            )
            return replace(self, vm=vm)

        if isinstance(update, EbpfInit):
            parent = self.vm.get(update.artifact_id)
            if parent is None:
                raise RegistryInvariantError(
                    "Failed to update contract address registry: deploy info is "
                    f"missing for artifact {update.artifact_id!r}"
                )
            instances = dict(parent.instances)
            instances[update.contract_id] = InstanceEntry(
                inst_hash=update.tx_hash,
                inst_address=prefixed_hex(update.address),
            )
            vm = dict(self.vm)
            vm[update.artifact_id] = replace(parent, instances=instances)
            return replace(self, vm=vm)

        if isinstance(update, EvmDeploy):
            evm = dict(self.evm)
            evm[update.artifact_id] = EvmContractEntry(
                deploy_hash=update.tx_hash,
                deploy_address=prefixed_hex(update.address),
            )
            return replace(self, evm=evm)

        raise TypeError(f"Unsupported registry update: {type(update).__name__}")
