"""Tests for the contract address registry."""

from __future__ import annotations

from pathlib import Path

import portalocker
import pytest

from l1xforge.errors import RegistryInvariantError, RegistryIOError
from l1xforge.registry import (
    AddressRegistry,
    EbpfDeploy,
    EbpfInit,
    EvmDeploy,
    RegistryDocument,
    VmType,
    dump_registry,
    parse_registry,
)

from .conftest import DEPLOY_ADDRESS, EVM_ADDRESS, INSTANCE_ADDRESS


@pytest.fixture()
def populated(registry: AddressRegistry) -> AddressRegistry:
    registry.upsert(EbpfDeploy("l1x_ft", "0xdeploy", DEPLOY_ADDRESS))
    registry.upsert(EbpfInit("l1x_ft", "ft_main", "0xinit", INSTANCE_ADDRESS))
    registry.upsert(EvmDeploy("ft-v1", "0xevm", EVM_ADDRESS))
    return registry


class TestLookup:
    def test_missing_file_is_empty(self, registry: AddressRegistry) -> None:
        assert not registry.path.exists()
        assert registry.get(VmType.EBPF, "l1x_ft") is None
        assert registry.get(VmType.EVM, "ft-v1") is None

    def test_addresses_are_prefixed(self, populated: AddressRegistry) -> None:
        assert populated.get(VmType.EBPF, "l1x_ft") == "0x" + DEPLOY_ADDRESS
        assert populated.get(VmType.EBPF, "l1x_ft", "ft_main") == "0x" + INSTANCE_ADDRESS
        assert populated.get(VmType.EVM, "ft-v1") == "0x" + EVM_ADDRESS

    def test_unknown_instance(self, populated: AddressRegistry) -> None:
        assert populated.get(VmType.EBPF, "l1x_ft", "other") is None

    def test_tables_are_independent(self, populated: AddressRegistry) -> None:
        assert populated.get(VmType.EVM, "l1x_ft") is None
        assert populated.get(VmType.EBPF, "ft-v1") is None


class TestPersistence:
    def test_file_layout(self, populated: AddressRegistry) -> None:
        text = populated.path.read_text(encoding="utf-8")
        assert text.index("l1x_vm:") < text.index("l1x_evm:")
        assert f'deploy_address: "0x{DEPLOY_ADDRESS}"' in text
        assert f'inst_address: "0x{INSTANCE_ADDRESS}"' in text
        assert "instance:" in text
        assert "deploy_hash: 0xdeploy" in text

    def test_round_trip_is_stable(self, populated: AddressRegistry) -> None:
        document = populated.load()
        assert parse_registry(dump_registry(document)) == document
        assert dump_registry(parse_registry(populated.path.read_text(encoding="utf-8"))) == \
            populated.path.read_text(encoding="utf-8")

    def test_evm_entries_have_no_instance_key(self, populated: AddressRegistry) -> None:
        assert "instance" not in populated.load().to_dict()["l1x_evm"]["ft-v1"]

    def test_no_temp_file_left_behind(self, populated: AddressRegistry) -> None:
        leftovers = [p.name for p in populated.path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_legacy_quoted_values_are_accepted(self, tmp_path: Path) -> None:
        path = tmp_path / "registry.yaml"
        path.write_text(
            "l1x_vm:\n"
            "  l1x_ft:\n"
            "    deploy_hash: 0xaa\n"
            f"    deploy_address: '\"{DEPLOY_ADDRESS}\"'\n"
            "    instance: {}\n"
            "l1x_evm: {}\n",
            encoding="utf-8",
        )
        assert AddressRegistry(path).get(VmType.EBPF, "l1x_ft") == "0x" + DEPLOY_ADDRESS

    def test_unquoted_hex_address_is_accepted(self, tmp_path: Path) -> None:
        path = tmp_path / "registry.yaml"
        address = "12" * 20
        path.write_text(
            f"l1x_evm:\n  ft-v1:\n    deploy_hash: h\n    deploy_address: 0x{address}\n",
            encoding="utf-8",
        )
        assert AddressRegistry(path).get(VmType.EVM, "ft-v1") == "0x" + address

    def test_unquoted_hex_hashes_keep_their_hex_form(self, tmp_path: Path) -> None:
        path = tmp_path / "registry.yaml"
        deploy_hash = "00" + "ab" * 31
        inst_hash = "cd" * 32
        path.write_text(
            "l1x_vm:\n"
            "  l1x_ft:\n"
            f"    deploy_hash: 0x{deploy_hash}\n"
            f"    deploy_address: 0x{DEPLOY_ADDRESS}\n"
            "    instance:\n"
            "      ft_main:\n"
            f"        inst_hash: 0x{inst_hash}\n"
            f"        inst_address: 0x{INSTANCE_ADDRESS}\n"
            "l1x_evm:\n"
            "  ft-v1:\n"
            f"    deploy_hash: 0x{deploy_hash}\n"
            f"    deploy_address: 0x{EVM_ADDRESS}\n",
            encoding="utf-8",
        )
        registry = AddressRegistry(path)
        registry.upsert(EvmDeploy("other", "0xother", EVM_ADDRESS))

        document = registry.load()
        assert document.evm["ft-v1"].deploy_hash == "0x" + deploy_hash
        assert document.vm["l1x_ft"].deploy_hash == "0x" + deploy_hash
        assert document.vm["l1x_ft"].instances["ft_main"].inst_hash == "0x" + inst_hash

    def test_malformed_registry_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "registry.yaml"
        path.write_text("l1x_vm:\n  l1x_ft:\n    deploy_hash: only\n", encoding="utf-8")
        with pytest.raises(RegistryIOError):
            AddressRegistry(path).load()

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "registry.yaml"
        path.write_text("l1x_vm: [unclosed\n", encoding="utf-8")
        with pytest.raises(RegistryIOError):
            AddressRegistry(path).load()


class TestUpdates:
    def test_init_without_deploy_raises_and_leaves_file(self, registry: AddressRegistry) -> None:
        registry.upsert(EvmDeploy("ft-v1", "0xevm", EVM_ADDRESS))
        before = registry.path.read_bytes()
        with pytest.raises(RegistryInvariantError):
            registry.upsert(EbpfInit("missing", "ft_main", "0xinit", INSTANCE_ADDRESS))
        assert registry.path.read_bytes() == before

    def test_init_without_deploy_on_empty_registry_creates_nothing(self, registry: AddressRegistry) -> None:
        with pytest.raises(RegistryInvariantError):
            registry.upsert(EbpfInit("missing", "ft_main", "0xinit", INSTANCE_ADDRESS))
        assert not registry.path.exists()

    def test_redeploy_replaces_entry_and_drops_instances(self, populated: AddressRegistry) -> None:
        populated.upsert(EbpfDeploy("l1x_ft", "0xredeploy", "99" * 20))
        assert populated.get(VmType.EBPF, "l1x_ft") == "0x" + "99" * 20
        assert populated.get(VmType.EBPF, "l1x_ft", "ft_main") is None

    def test_second_instance_keeps_first(self, populated: AddressRegistry) -> None:
        populated.upsert(EbpfInit("l1x_ft", "ft_second", "0xinit2", "77" * 20))
        assert populated.get(VmType.EBPF, "l1x_ft", "ft_main") == "0x" + INSTANCE_ADDRESS
        assert populated.get(VmType.EBPF, "l1x_ft", "ft_second") == "0x" + "77" * 20

    def test_apply_returns_new_document(self) -> None:
        empty = RegistryDocument()
        updated = empty.apply(EvmDeploy("ft-v1", "0xevm", EVM_ADDRESS))
        assert empty.evm == {}
        assert updated.evm["ft-v1"].deploy_address == "0x" + EVM_ADDRESS

    def test_locked_registry_times_out(self, registry: AddressRegistry) -> None:
        registry.path.parent.mkdir(parents=True, exist_ok=True)
        contended = AddressRegistry(registry.path, lock_timeout=0.2)
        with portalocker.Lock(str(registry.lock_path), timeout=1):
            with pytest.raises(RegistryIOError, match="lock"):
                contended.upsert(EvmDeploy("ft-v1", "0xevm", EVM_ADDRESS))
        assert not registry.path.exists()
