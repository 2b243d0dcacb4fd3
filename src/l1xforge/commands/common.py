"""Options and helpers shared by the forge commands."""

from __future__ import annotations

import sys
from typing import Any, Callable, Optional

import click

from ..chain.confirm import ConfirmationPolicy
from ..config import load_toolkit_config
from ..errors import ConfirmationError, ForgeError
from ..orchestrator import DeploymentOrchestrator


def connection_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the owner / workspace / endpoint / polling options."""
    options = [
        click.option("--owner", required=True, help="Wallet owner id in l1x_dev_wallets.yaml"),
        click.option("--ws-home", envvar="L1X_CFG_WS_HOME", default=None, help="Workspace root"),
        click.option("--scripts-base", envvar="L1X_CFG_CLI_SCRIPTS", default=None,
                     help="Base folder for payload traces"),
        click.option("--chain-type", envvar="L1X_CFG_CHAIN_TYPE", default=None,
                     help="Network name in l1x_chain_config.yaml"),
        click.option("--rpc-endpoint", default=None, help="Override the node JSON-RPC URL"),
        click.option("--fee-limit", "fee_limit", default=100, type=click.IntRange(min=0), show_default=True),
        click.option("--confirm-delay", default=10.0, type=click.FloatRange(min=0), show_default=True,
                     help="Seconds to wait before polling for events"),
        click.option("--confirm-attempts", default=1, type=click.IntRange(min=1), show_default=True,
                     help="Maximum number of event polls"),
        click.option("--confirm-timeout", default=None, type=click.FloatRange(min=0),
                     help="Overall confirmation deadline in seconds"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_orchestrator(
    owner: str,
    ws_home: Optional[str],
    scripts_base: Optional[str],
    chain_type: Optional[str],
    rpc_endpoint: Optional[str],
    confirm_delay: float,
    confirm_attempts: int,
    confirm_timeout: Optional[float],
) -> DeploymentOrchestrator:
    config = load_toolkit_config(
        owner,
        ws_home=ws_home,
        scripts_base=scripts_base,
        chain_type=chain_type,
        rpc_endpoint=rpc_endpoint,
    )
    policy = ConfirmationPolicy(
        delay=confirm_delay,
        attempts=confirm_attempts,
        timeout=confirm_timeout,
    )
    return DeploymentOrchestrator(config, policy=policy)


def fail(operation: str, exc: ForgeError) -> None:
    """Report a failed operation with its chained cause and exit."""
    label = "WARNING" if isinstance(exc, ConfirmationError) else "ERROR"
    color = "yellow" if isinstance(exc, ConfirmationError) else "red"
    click.secho(f"{label}: {operation} failed: {exc}", fg=color, err=True)
    cause = exc.__cause__
    while cause is not None:
        click.secho(f"  caused by: {cause}", dim=True, err=True)
        cause = cause.__cause__
    sys.exit(exc.exit_code)
