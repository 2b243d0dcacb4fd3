"""
Sub Txn - Call a contract recorded in the address registry.

Prints a single JSON status line for downstream tooling::

    {"l1x-forge-txn-status": {"status": 0, "message": "<hex>"}}
"""

from __future__ import annotations

from typing import Optional

import click

from ..errors import ForgeError
from ..orchestrator import CallType
from ..registry import VmType
from .common import build_orchestrator, connection_options, fail


@click.command("vm-sub-txn")
@click.option("--vm-type", type=click.Choice([v.value for v in VmType]), required=True)
@click.option("--artifact-id", required=True)
@click.option("--contract-id", default=None, help="Instance id (ebpf)")
@click.option("--call-type", type=click.Choice([c.value for c in CallType]), required=True)
@click.option("--function-payload", required=True, help="Hex-encoded call arguments")
@connection_options
def sub_txn(
    vm_type: str,
    artifact_id: str,
    contract_id: Optional[str],
    call_type: str,
    function_payload: str,
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
    """Submit a transaction or read-only call to the L1X VM."""
    kind = VmType(vm_type)
    if kind is VmType.EBPF and not contract_id:
        raise click.UsageError("--contract-id is required for ebpf calls")

    try:
        orchestrator = build_orchestrator(
            owner, ws_home, scripts_base, chain_type, rpc_endpoint,
            confirm_delay, confirm_attempts, confirm_timeout,
        )
        status = orchestrator.submit_call(
            kind,
            artifact_id,
            contract_id,
            CallType(call_type),
            function_payload,
            fee_limit=fee_limit,
        )
    except ForgeError as exc:
        fail("vm-sub-txn", exc)
        return

    click.echo(status.to_json())
    if status.status != 0:
        raise SystemExit(1)
