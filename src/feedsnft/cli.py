"""
Feeds NFT CLI

Command-line interface for deploying, upgrading and testing the Feeds NFT
contracts (Sticker, Pasar, Galleria) on an Ethereum-compatible chain.

Commands:
  abigen          - Compile contracts and write abis/<Name>.json
  deploy          - Deploy Sticker and Pasar behind proxies
  upgrade         - Point proxies at new logic contracts
  version         - Show version / magic / logic address of proxies
  activity        - Show supply and order statistics
  update-platform - Change Galleria platform address and minimum fee
  filled-total    - Sum OrderFilled events of the Pasar contract
  proxy           - Proxy upgrade demo and single-proxy upgrade
  test            - Integration-test harnesses
  info            - Show configuration
"""

from __future__ import annotations

import logging
import os
import sys

import click

from . import __version__, config
from .chain.abi import find_abi_dir


# ============ Constants ============

VERSION = __version__


# ============ Banner ============


def _print_banner(compact: bool = False) -> None:
    """Print the Feeds NFT CLI banner.

    Args:
        compact: If True, print a single-line banner (for subcommands).
    """
    if compact:
        click.echo(
            click.style("  ◆ ", fg="cyan")
            + click.style("F E E D S  N F T", fg="bright_white", bold=True)
            + click.style(f"  v{VERSION}", dim=True)
        )
        click.echo()
        return

    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()
    click.echo(
        click.style("        F E E D S  N F T", fg="bright_white", bold=True)
        + click.style(f"       v{VERSION}", dim=True)
    )
    click.secho("        ─── Sticker · Pasar · Galleria ───", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="feedsnft")
@click.option("--verbose", "-v", is_flag=True, help="Log RPC and transaction details")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Feeds NFT: contract deployment and test tooling."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
    # Subcommand options read env vars after this runs
    config.load_config()
    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.abigen import abigen
from .commands.activity import activity
from .commands.deploy import deploy
from .commands.harness import test_group
from .commands.platform import update_platform
from .commands.proxy import proxy
from .commands.stats import filled_total
from .commands.upgrade import upgrade
from .commands.version import version

cli.add_command(abigen)
cli.add_command(deploy)
cli.add_command(upgrade)
cli.add_command(version)
cli.add_command(activity)
cli.add_command(update_platform)
cli.add_command(filled_total)
cli.add_command(proxy)
cli.add_command(test_group)


# ============ Info ============


def _row(label: str, value: str, fg: str = "bright_white") -> None:
    click.echo(click.style(f"  {label:<13}", dim=True) + click.style(value, fg=fg))


@cli.command()
def info() -> None:
    """Show configuration."""
    _print_banner()

    # ── Network ──
    click.secho("  Network ────────────────────────────────", fg="cyan")
    click.echo()

    try:
        net_type = config.get_net_type()
        _row("Net type:", net_type)
        _row("RPC URL:", config.default_rpc_url())
        gas_price = config.default_gas_price()
        _row("Gas price:", gas_price or "auto (eth_gasPrice)")
        _row("Deploy key:", "configured" if config.default_deploy_pk() else "not set",
             fg="green" if config.default_deploy_pk() else "yellow")
    except ValueError as exc:
        _row("Net type:", str(exc), fg="red")

    click.echo()

    # ── Paths ──
    click.secho("  Paths ──────────────────────────────────", fg="cyan")
    click.echo()
    abi_dir = find_abi_dir()
    _row("ABI dir:", str(abi_dir), fg="bright_white" if abi_dir.is_dir() else "yellow")
    contracts = config.contracts_dir()
    _row("Contracts:", str(contracts), fg="bright_white" if contracts.is_dir() else "yellow")
    _row("Env file:", str(config.FEEDS_ENV))
    click.echo()

    # ── Contracts ──
    click.secho("  Contracts ──────────────────────────────", fg="cyan")
    click.echo()
    for label, envvar in (
        ("Sticker:", "FEEDS_STICKER_ADDRESS"),
        ("Pasar:", "FEEDS_PASAR_ADDRESS"),
        ("Galleria:", "FEEDS_GALLERIA_ADDRESS"),
        ("ERC20:", "FEEDS_ERC20_ADDRESS"),
    ):
        address = os.environ.get(envvar)
        _row(label, address or "not set", fg="bright_white" if address else "yellow")
    click.echo()


# ============ Entry Points ============


def main() -> None:
    """Feeds NFT CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass
    cli()


if __name__ == "__main__":
    main()
