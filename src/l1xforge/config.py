"""
Toolkit configuration.

The orchestrator receives one explicit ``ToolkitConfig``. ``load_toolkit_config``
builds it the way the l1x-forge workspace is laid out:

    <ws_home>/l1x-conf/l1x_chain_config.yaml    networks.<chain>.rpc_endpoint
    <ws_home>/l1x-conf/l1x_dev_wallets.yaml     dev_accounts.<owner>.priv_key

Environment variables (optionally from a ``.env`` file) supply the defaults:
L1X_CFG_WS_HOME, L1X_CFG_CLI_SCRIPTS, L1X_CFG_CHAIN_TYPE.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

ENV_WS_HOME = "L1X_CFG_WS_HOME"
ENV_CLI_SCRIPTS = "L1X_CFG_CLI_SCRIPTS"
ENV_CHAIN_TYPE = "L1X_CFG_CHAIN_TYPE"

CHAIN_CONFIG_FILE = "l1x_chain_config.yaml"
WALLETS_FILE = "l1x_dev_wallets.yaml"
REGISTRY_FILE = "config-contract-address-registry.yaml"

DEFAULT_RPC_TIMEOUT = 30.0
DEFAULT_ENV_FILE = ".env"


@dataclass(frozen=True)
class ToolkitConfig:
    """
    Attributes:
        ws_home: Workspace root (holds l1x-conf/ and the artifact folders)
        scripts_base: Base folder for generated payload traces
        rpc_endpoint: Node JSON-RPC URL
        private_key: Hex secp256k1 secret key of the signing account
        rpc_timeout: Per-request HTTP timeout in seconds
    """
    ws_home: Path
    scripts_base: Path
    rpc_endpoint: str
    private_key: str
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT

    @property
    def conf_dir(self) -> Path:
        return self.ws_home / "l1x-conf"

    @property
    def registry_path(self) -> Path:
        return self.conf_dir / REGISTRY_FILE

    @property
    def payload_trace_dir(self) -> Path:
        return self.scripts_base / "l1x-forge-cli"

    def ebpf_artifact_path(self, artifact_id: str) -> Path:
        return self.ws_home / "l1x-artifacts" / artifact_id

    def evm_artifact_path(self, artifact_id: str) -> Path:
        return self.ws_home / "l1x-evm-artifacts" / artifact_id

    def __repr__(self) -> str:
        return (
            f"ToolkitConfig(ws_home={self.ws_home!r}, scripts_base={self.scripts_base!r}, "
            f"rpc_endpoint={self.rpc_endpoint!r}, private_key='***')"
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}") from exc
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load YAML configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return data


def _require_env(name: str, value: Optional[str]) -> str:
    value = value or os.environ.get(name)
    if not value:
        raise ConfigError(f"The {name} environment variable must be set")
    return value


def get_rpc_endpoint(ws_home: Path, chain_type: str) -> str:
    networks = _load_yaml(ws_home / "l1x-conf" / CHAIN_CONFIG_FILE).get("networks") or {}
    network = networks.get(chain_type)
    if not isinstance(network, dict) or not network.get("rpc_endpoint"):
        raise ConfigError(f"No network config params for chain type: {chain_type}")
    return str(network["rpc_endpoint"])


def get_wallet_private_key(ws_home: Path, owner: str) -> str:
    accounts = _load_yaml(ws_home / "l1x-conf" / WALLETS_FILE).get("dev_accounts") or {}
    account = accounts.get(owner)
    if not isinstance(account, dict) or not account.get("priv_key"):
        raise ConfigError(f"No account info for owner ID: {owner}")
    return str(account["priv_key"])


def load_toolkit_config(
    owner: str,
    ws_home: Optional[str] = None,
    scripts_base: Optional[str] = None,
    chain_type: Optional[str] = None,
    rpc_endpoint: Optional[str] = None,
    env_path: Optional[Path] = None,
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT,
) -> ToolkitConfig:
    """
    Resolve the toolkit configuration for ``owner``.

    Explicit arguments win over environment variables. Variables from
    ``env_path`` (default: ``.env`` in the working directory) fill in those
    not already set. ``rpc_endpoint`` skips the network config file entirely.

    Raises:
        ConfigError: If a required setting or file is missing
    """
    env_path = env_path or Path.cwd() / DEFAULT_ENV_FILE
    if env_path.exists():
        load_dotenv(env_path, override=False)

    home = Path(_require_env(ENV_WS_HOME, ws_home)).expanduser()
    scripts = Path(scripts_base or os.environ.get(ENV_CLI_SCRIPTS) or home).expanduser()

    if rpc_endpoint is None:
        rpc_endpoint = get_rpc_endpoint(home, _require_env(ENV_CHAIN_TYPE, chain_type))

    return ToolkitConfig(
        ws_home=home,
        scripts_base=scripts,
        rpc_endpoint=rpc_endpoint,
        private_key=get_wallet_private_key(home, owner),
        rpc_timeout=rpc_timeout,
    )
