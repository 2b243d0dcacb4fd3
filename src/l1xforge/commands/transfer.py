from __future__ import annotations

from typing import Optional

import click

from ..errors import ForgeError
from .common import build_orchestrator, connection_options, fail


@click.command("vm-transfer")
@click.option("--to", "to_address", required=True, help="Recipient address (0x...)")
@click.option("--amount", required=True, type=click.IntRange(min=0), help="Amount in base units")
@connection_options
def transfer(
    to_address: str,
    amount: int,
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
    """Transfer native tokens to another account."""
    try:
        orchestrator = build_orchestrator(
            owner, ws_home, scripts_base, chain_type, rpc_endpoint,
            confirm_delay, confirm_attempts, confirm_timeout,
        )
        status = orchestrator.transfer(to_address, amount, fee_limit=fee_limit)
    except ForgeError as exc:
        fail("vm-transfer", exc)
        return

    click.echo(status.to_json())
