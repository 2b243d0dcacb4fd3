"""
Registry - Idempotency store for deployed contract addresses.

Maps artifact ids (and, for ebpf, contract instance ids) to the addresses
they were deployed at, so that re-running an install with ``force=False``
reuses them instead of deploying again.
"""

from .models import (
    EbpfDeploy,
    EbpfInit,
    EvmContractEntry,
    EvmDeploy,
    InstanceEntry,
    RegistryDocument,
    RegistryUpdate,
    VmContractEntry,
    VmType,
)
from .store import AddressRegistry, dump_registry, parse_registry

__all__ = [
    "AddressRegistry",
    "EbpfDeploy",
    "EbpfInit",
    "EvmContractEntry",
    "EvmDeploy",
    "InstanceEntry",
    "RegistryDocument",
    "RegistryUpdate",
    "VmContractEntry",
    "VmType",
    "dump_registry",
    "parse_registry",
]
