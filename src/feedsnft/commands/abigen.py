"""
Abigen - Compile the contracts and write their ABI artifacts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..chain.abi import find_abi_dir
from ..solc.compiler import (
    CompileError,
    generate_galleria_abi,
    generate_pasar_abi,
    generate_proxy_abi,
    generate_sticker_abi,
)
from ._options import fail

_GENERATORS = (
    ("Sticker", generate_sticker_abi),
    ("Pasar", generate_pasar_abi),
    ("Galleria", generate_galleria_abi),
    ("Proxy", generate_proxy_abi),
)


@click.command()
@click.option(
    "--abi-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: nearest abis/)",
)
def abigen(abi_dir: Optional[Path]) -> None:
    """
    Compile Sticker, Pasar, Galleria and Proxy and write abis/<Name>.json.
    """
    click.echo("=== Feeds NFT Abigen ===")
    click.echo("")

    abi_dir = abi_dir or find_abi_dir()
    abi_dir.mkdir(parents=True, exist_ok=True)

    for label, generate in _GENERATORS:
        click.echo(f"==> try to compile {label} contract")
        try:
            compiled = generate(abi_dir)
        except (CompileError, FileNotFoundError) as exc:
            fail(f"Contracts compiled failed: {exc}")
        click.secho(
            f"Compiled: Logic contract ({label}) and ABIs generated -> "
            f"{abi_dir / (compiled.name + '.json')}",
            fg="green",
        )
