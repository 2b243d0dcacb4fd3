"""
Install - Deploy (and initialize) a contract artifact.

Flow:
1. Look the artifact up in the contract address registry (unless --force)
2. Deploy it if it is not recorded yet
3. ebpf only: initialize an instance of the deployed code for --contract-id
4. Record the resolved addresses in the registry
"""

from __future__ import annotations

from typing import Optional

import click

from ..errors import ForgeError
from ..orchestrator import DeployOutcome
from ..registry import VmType
from .common import build_orchestrator, connection_options, fail


def _describe(label: str, outcome: DeployOutcome) -> None:
    origin = click.style("cached", fg="cyan") if outcome.cached else click.style("deployed", fg="green")
    click.echo(f"  {label}: {outcome.address} ({origin})")
    if outcome.tx_hash:
        click.echo(f"    TX: {outcome.tx_hash}")


@click.command("vm-install-contract")
@click.option("--vm-type", type=click.Choice([v.value for v in VmType]), required=True)
@click.option("--artifact-id", required=True, help="Artifact file name")
@click.option("--contract-id", default=None, help="Instance id (required for ebpf)")
@click.option("--force", is_flag=True, help="Deploy even if the artifact is already recorded")
@connection_options
def install(
    vm_type: str,
    artifact_id: str,
    contract_id: Optional[str],
    force: bool,
    owner: str,
    ws_home: Optional[str],
    scripts_base: Optional[str],
    chain_type: Optional[str],
    rpc_endpoint: Optional[str],
    fee_limit: int,
    confirm_delay: float,
    confirm_attempts: int,
    confirm_timeout: Optional[float],
) -> None:
    """Install a contract to the L1X VM [ ebpf | evm ]."""
    kind = VmType(vm_type)
    if kind is VmType.EBPF and not contract_id:
        raise click.UsageError("--contract-id is required for ebpf installs")

    try:
        orchestrator = build_orchestrator(
            owner, ws_home, scripts_base, chain_type, rpc_endpoint,
            confirm_delay, confirm_attempts, confirm_timeout,
        )
        result = orchestrator.install(
            kind,
            artifact_id,
            contract_id=contract_id,
            force=force,
            fee_limit=fee_limit,
        )
    except ForgeError as exc:
        fail("vm-install-contract", exc)
        return

    click.secho(f"SUCCESS: {artifact_id} installed on {kind.value}", fg="green")
    _describe("Deploy address", result.deploy)
    if result.instance is not None:
        _describe(f"Instance {contract_id}", result.instance)
