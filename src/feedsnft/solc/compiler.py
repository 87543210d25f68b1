"""
Solidity compilation and ABI artifact generation.

Each contract file is compiled as a single standard-JSON source named
``src.sol`` (the contracts are flattened), optimizer on with 200 runs,
selecting only ``abi`` and ``evm.bytecode``.  py-solc-x provides the
compiler binary; the version follows the file's ``pragma solidity`` line
unless ``FEEDS_SOLC_VERSION`` pins one.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import solcx
from solcx.exceptions import SolcError

from .. import config
from ..chain.abi import find_abi_dir, write_abi

logger = logging.getLogger(__name__)

SOURCE_KEY = "src.sol"
OPTIMIZER_RUNS = 200

_PRAGMA = re.compile(r"pragma\s+solidity\s+([^;]+);")


class CompileError(RuntimeError):
    """solc reported errors, or the requested contract is not in the output."""


@dataclass
class CompiledContract:
    name: str
    abi: list[dict[str, Any]]
    bytecode: str


def standard_input(source: str) -> dict[str, Any]:
    """Standard-JSON compiler input for one flattened source file."""
    return {
        "language": "Solidity",
        "sources": {SOURCE_KEY: {"content": source}},
        "settings": {
            "optimizer": {"enabled": True, "runs": OPTIMIZER_RUNS},
            "outputSelection": {"*": {"*": ["abi", "evm.bytecode"]}},
        },
    }


def select_solc_version(source: str):
    """Install (if needed) and return the solc version for ``source``."""
    pinned = os.environ.get("FEEDS_SOLC_VERSION")
    if pinned:
        return solcx.install_solc(pinned)
    match = _PRAGMA.search(source)
    if not match:
        raise CompileError("No 'pragma solidity' found; set FEEDS_SOLC_VERSION")
    return solcx.install_solc_pragma(match.group(1).strip())


def compile_contract(path: Path, name: str) -> CompiledContract:
    """
    Compile ``path`` and return ABI and creation bytecode of contract ``name``.

    Args:
        path: Solidity source file
        name: Contract name inside the file

    Returns:
        CompiledContract with abi (list) and bytecode (hex, no 0x)

    Raises:
        CompileError: On compiler errors or if ``name`` is not defined
        FileNotFoundError: If ``path`` does not exist
    """
    path = Path(path)
    source = path.read_text(encoding="utf-8")
    version = select_solc_version(source)
    logger.debug("compiling %s with solc %s", path, version)

    try:
        output = solcx.compile_standard(standard_input(source), solc_version=version)
    except SolcError as exc:
        raise CompileError(f"Failed to compile {path.name}: {exc}") from exc

    errors = [e for e in output.get("errors", []) if e.get("severity") == "error"]
    if errors:
        messages = "; ".join(e.get("formattedMessage", e.get("message", "")) for e in errors)
        raise CompileError(f"Failed to compile {path.name}: {messages}")

    contracts = output.get("contracts", {}).get(SOURCE_KEY, {})
    if name not in contracts:
        raise CompileError(f"Contract {name} not found in {path.name}")

    entry = contracts[name]
    return CompiledContract(
        name=name,
        abi=entry["abi"],
        bytecode=entry["evm"]["bytecode"]["object"],
    )


def compile_named(name: str) -> CompiledContract:
    """Compile one of the known contracts from the contracts directory."""
    return compile_contract(config.contract_source(name), name)


def generate_abi(
    name: str, label: Optional[str] = None, abi_dir: Optional[Path] = None
) -> CompiledContract:
    """Compile contract ``name`` and write ``<abi_dir>/<name>.json``."""
    label = label or name
    logger.info("Prepare generate %s ABIs", label)
    compiled = compile_named(name)
    if not compiled.bytecode:
        raise CompileError(f"{name} compiled to empty bytecode")
    target = (abi_dir or find_abi_dir()) / f"{name}.json"
    write_abi(compiled.abi, target)
    logger.info("Compiled: Logic contract (%s) and ABIs generated", label)
    return compiled


def generate_sticker_abi(abi_dir: Optional[Path] = None) -> CompiledContract:
    return generate_abi(config.STICKER, "Sticker", abi_dir)


def generate_pasar_abi(abi_dir: Optional[Path] = None) -> CompiledContract:
    return generate_abi(config.PASAR, "Pasar", abi_dir)


def generate_galleria_abi(abi_dir: Optional[Path] = None) -> CompiledContract:
    return generate_abi(config.GALLERIA, "Galleria", abi_dir)


def generate_proxy_abi(abi_dir: Optional[Path] = None) -> CompiledContract:
    return generate_abi(config.PROXY, "Proxy", abi_dir)
