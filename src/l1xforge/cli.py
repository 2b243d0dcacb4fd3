"""
l1x-forge CLI

Command-line interface for deploying and calling L1X contracts.

Commands:
  vm-install-contract - Deploy an artifact (ebpf: deploy + init)
  vm-sub-txn          - Call a contract recorded in the address registry
  vm-transfer         - Native token transfer
  whoami              - Show the address of a configured wallet
  registry            - Inspect the contract address registry
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import REGISTRY_FILE, load_toolkit_config
from .crypto.signing import Signer
from .errors import ForgeError
from .registry import AddressRegistry, dump_registry


# ============ Constants ============

VERSION = "0.1.0"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


# ============ Banner ============


def _print_banner() -> None:
    click.echo(
        click.style("  ◆ ", fg="cyan")
        + click.style("L 1 X - F O R G E", fg="bright_white", bold=True)
        + click.style(f"  v{VERSION}", dim=True)
    )
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="l1x-forge")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """l1x-forge: L1X contract deploy orchestrator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.install import install
from .commands.sub_txn import sub_txn
from .commands.transfer import transfer

cli.add_command(install)
cli.add_command(sub_txn)
cli.add_command(transfer)


# ============ Identity ============


@cli.command()
@click.option("--owner", required=True, help="Wallet owner id in l1x_dev_wallets.yaml")
@click.option("--ws-home", envvar="L1X_CFG_WS_HOME", default=None)
def whoami(owner: str, ws_home: Optional[str]) -> None:
    """Show the address and verifying key of a configured wallet."""
    try:
        config = load_toolkit_config(owner, ws_home=ws_home, rpc_endpoint="")
        signer = Signer(config.private_key)
    except ForgeError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)
    click.echo(f"Address:       {signer.address}")
    click.echo(f"Verifying key: 0x{signer.verifying_key.hex()}")


# ============ Registry ============


@cli.group()
def registry() -> None:
    """Inspect the contract address registry."""
    pass


@registry.command("show")
@click.option("--ws-home", envvar="L1X_CFG_WS_HOME", required=True, help="Workspace root")
def registry_show(ws_home: str) -> None:
    """Print the registry as YAML."""
    path = Path(ws_home).expanduser() / "l1x-conf" / REGISTRY_FILE
    try:
        document = AddressRegistry(path).load()
    except ForgeError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)
    if not document.vm and not document.evm:
        click.echo("Registry is empty.")
        return
    click.echo(dump_registry(document), nl=False)


# ============ Entry Points ============


def main() -> None:
    """l1x-forge CLI entry point."""
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass
    cli()


if __name__ == "__main__":
    main()
