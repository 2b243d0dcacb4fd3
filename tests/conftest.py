"""Shared fixtures: a throwaway workspace and an in-memory chain."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import pytest
import yaml

from l1xforge.chain.codec import ReadOnlyCall
from l1xforge.chain.confirm import ConfirmationPolicy
from l1xforge.chain.rpc import ReadOnlyResult, SubmitResult
from l1xforge.config import ENV_CHAIN_TYPE, ENV_CLI_SCRIPTS, ENV_WS_HOME, ToolkitConfig
from l1xforge.crypto.signing import SignedTransaction
from l1xforge.errors import SubmitError
from l1xforge.registry import AddressRegistry

TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_RPC_ENDPOINT = "http://node.test:50052"

DEPLOY_ADDRESS = "ab" * 20
INSTANCE_ADDRESS = "cd" * 20
EVM_ADDRESS = "ef" * 20


class FakeRpc:
    """
    In-memory stand-in for ``RpcClient``.

    Submissions return queued results in order (or a generated hash) and
    events are served per transaction hash.
    """

    def __init__(self, nonce: int = 0) -> None:
        self.nonce = nonce
        self.submitted: list[SignedTransaction] = []
        self.event_polls: list[str] = []
        self.read_only_calls: list[ReadOnlyCall] = []
        self.submit_results: list[SubmitResult] = []
        self.events: dict[str, list[bytes]] = {}
        self.read_only_result = ReadOnlyResult(status=0, result=b"\x00\x2a")
        self.fail_submit = False

    def queue_submit(self, tx_hash: str, events: Optional[list[bytes]] = None,
                     contract_address: Optional[str] = None) -> None:
        self.submit_results.append(SubmitResult(hash=tx_hash, contract_address=contract_address))
        self.events[tx_hash] = events or []

    def get_nonce(self, verifying_key: bytes) -> int:
        return self.nonce

    def submit_transaction(self, signed: SignedTransaction) -> SubmitResult:
        if self.fail_submit:
            raise SubmitError("Submit transaction failed: connection refused")
        self.submitted.append(signed)
        if self.submit_results:
            return self.submit_results.pop(0)
        return SubmitResult(hash=f"0xhash{len(self.submitted)}")

    def get_events(self, tx_hash: str, timestamp: int = 0) -> list[bytes]:
        self.event_polls.append(tx_hash)
        return list(self.events.get(tx_hash, []))

    def read_only_call(self, call: Any) -> ReadOnlyResult:
        self.read_only_calls.append(call)
        return self.read_only_result


def evm_address_event(address: str) -> bytes:
    return json.dumps({"address": address, "status": 0}).encode("utf-8")


@pytest.fixture()
def ws_home(tmp_path: Path) -> Path:
    """Workspace with chain/wallet config and one artifact of each kind."""
    home = tmp_path / "ws"
    conf = home / "l1x-conf"
    conf.mkdir(parents=True)
    (conf / "l1x_chain_config.yaml").write_text(
        yaml.safe_dump({"networks": {"local_devnet": {"rpc_endpoint": TEST_RPC_ENDPOINT}}}),
        encoding="utf-8",
    )
    (conf / "l1x_dev_wallets.yaml").write_text(
        yaml.safe_dump({"dev_accounts": {"super": {"priv_key": TEST_PRIVATE_KEY}}}),
        encoding="utf-8",
    )
    (home / "l1x-artifacts").mkdir()
    (home / "l1x-artifacts" / "l1x_ft.o").write_bytes(b"\x7fELF\x02\x01\x01ebpf-bytecode")
    (home / "l1x-evm-artifacts").mkdir()
    (home / "l1x-evm-artifacts" / "ft-v1").write_text("0x6080604052\n", encoding="utf-8")
    return home


@pytest.fixture()
def config(ws_home: Path) -> ToolkitConfig:
    return ToolkitConfig(
        ws_home=ws_home,
        scripts_base=ws_home,
        rpc_endpoint=TEST_RPC_ENDPOINT,
        private_key=TEST_PRIVATE_KEY,
    )


@pytest.fixture()
def fake_rpc() -> FakeRpc:
    return FakeRpc(nonce=7)


@pytest.fixture()
def registry(config: ToolkitConfig) -> AddressRegistry:
    return AddressRegistry(config.registry_path)


@pytest.fixture()
def instant_policy() -> ConfirmationPolicy:
    return ConfirmationPolicy(delay=0.0)


@pytest.fixture()
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Unset the toolkit variables and run from an empty directory with no ``.env``."""
    for name in (ENV_WS_HOME, ENV_CLI_SCRIPTS, ENV_CHAIN_TYPE):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return monkeypatch
