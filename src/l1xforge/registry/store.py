"""
Persistent contract address registry.

The registry is a YAML file read and rewritten as a whole. Each
read-modify-write cycle runs under an advisory lock on ``<file>.lock`` and
the new content replaces the old file through an atomic rename, so a failed
update leaves the previous file untouched.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import portalocker
import yaml

from ..errors import RegistryIOError
from ..utils import prefixed_hex
from .models import RegistryDocument, RegistryUpdate, VmType

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 10.0


class _QuotedAddress(str):
    pass


class _RegistryDumper(yaml.SafeDumper):
    pass


def _represent_address(dumper: yaml.SafeDumper, value: _QuotedAddress) -> yaml.Node:
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(value), style='"')


_RegistryDumper.add_representer(_QuotedAddress, _represent_address)


def _quote_addresses(payload: dict) -> dict:
    for table in payload.values():
        for entry in table.values():
            entry["deploy_address"] = _QuotedAddress(entry["deploy_address"])
            for instance in entry.get("instance", {}).values():
                instance["inst_address"] = _QuotedAddress(instance["inst_address"])
    return payload


def dump_registry(document: RegistryDocument) -> str:
    return yaml.dump(
        _quote_addresses(document.to_dict()),
        Dumper=_RegistryDumper,
        default_flow_style=False,
        sort_keys=False,
    )


def parse_registry(text: str) -> RegistryDocument:
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RegistryIOError(f"Contract address registry is not valid YAML: {exc}") from exc
    return RegistryDocument.from_dict(payload)


class AddressRegistry:
    """
    File-backed registry of deployed contract addresses.

    Args:
        path: Location of the registry YAML file
        lock_timeout: Seconds to wait for the registry lock
    """

    def __init__(self, path: Path, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self.path = Path(path)
        self.lock_timeout = lock_timeout

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def load(self) -> RegistryDocument:
        """Read the registry; a missing file is an empty registry."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return RegistryDocument()
        except OSError as exc:
            raise RegistryIOError(f"Unable to read registry {self.path}: {exc}") from exc
        return parse_registry(text)

    def save(self, document: RegistryDocument) -> None:
        self._atomic_write(dump_registry(document).encode("utf-8"))

    @contextmanager
    def _locked(self) -> Iterator[None]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with portalocker.Lock(str(self.lock_path), timeout=self.lock_timeout):
                yield
        except portalocker.LockException as exc:
            raise RegistryIOError(f"Unable to lock registry {self.path}: {exc}") from exc
        except OSError as exc:
            raise RegistryIOError(f"Unable to access registry {self.path}: {exc}") from exc

    def get(
        self,
        vm_type: VmType,
        artifact_id: str,
        contract_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Look up a recorded address.

        Args:
            vm_type: Which table to search
            artifact_id: Artifact identifier
            contract_id: Instance identifier (ebpf only); when given the
                instance address is returned instead of the deploy address

        Returns:
            ``0x``-prefixed address, or None if not recorded
        """
        document = self.load()
        if vm_type is VmType.EVM:
            evm_entry = document.evm.get(artifact_id)
            return evm_entry.deploy_address if evm_entry else None

        vm_entry = document.vm.get(artifact_id)
        if vm_entry is None:
            return None
        if contract_id is None:
            return vm_entry.deploy_address
        instance = vm_entry.instances.get(contract_id)
        return instance.inst_address if instance else None

    def upsert(self, update: RegistryUpdate) -> RegistryDocument:
        """
        Apply one update under the registry lock and persist the result.

        Raises:
            RegistryInvariantError: The update violates the registry layout;
                nothing is written
            RegistryIOError: The file cannot be read, locked or written
        """
        with self._locked():
            document = self.load().apply(update)
            self.save(document)
        logger.info("Registry updated :: %s -> %s", type(update).__name__, prefixed_hex(update.address))
        return document

    def _atomic_write(self, data: bytes) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with tmp.open("wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            tmp.replace(self.path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise RegistryIOError(f"Unable to write registry {self.path}: {exc}") from exc
