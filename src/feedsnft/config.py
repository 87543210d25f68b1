"""
Configuration for the Feeds NFT tooling.

Settings come from three layers, highest priority first:

1. Command-line options (every option carries an ``envvar=`` fallback)
2. Process environment
3. ``./.env`` and ``~/.feedsnft/.env`` (loaded without overriding 1 or 2)

A network profile (``mainNet`` / ``testNet`` / ``customNet``) supplies the
RPC URL, gas price and deploy key when nothing more specific is set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


FEEDS_DIR = Path.home() / ".feedsnft"
FEEDS_ENV = FEEDS_DIR / ".env"

DEFAULT_NET_TYPE = "testNet"


@dataclass(frozen=True)
class NetworkProfile:
    name: str
    rpc_url: str
    # empty means "ask the node"
    gas_price: str = ""
    deploy_pk: str = ""


_PROFILES: dict[str, NetworkProfile] = {
    "mainNet": NetworkProfile("mainNet", "https://api.elastos.io/eth"),
    "testNet": NetworkProfile("testNet", "https://api-testnet.elastos.io/eth"),
    "customNet": NetworkProfile("customNet", "https://api-testnet.elastos.io/eth"),
}

# ---- Contract names (also the ABI artifact file names) ----
STICKER = "FeedsNFTSticker"
PASAR = "FeedsNFTPasar"
PASAR_LIBRARY = "FeedsNFTPasarLibrary"
PASAR_V2 = "FeedsNFTPasarV2"
PASAR_V2_LIBRARY = "FeedsNFTPasarV2Library"
GALLERIA = "FeedsNFTGalleria"
PROXY = "FeedsContractProxy"
ERC20_TOKEN = "ERC20Token"
DEMO1 = "Demo1"
DEMO2 = "Demo2"

# Source file holding each contract, relative to the contracts directory.
CONTRACT_SOURCES: dict[str, str] = {
    STICKER: "FeedsNFTSticker.sol",
    PASAR: "FeedsNFTPasar.sol",
    PASAR_LIBRARY: "FeedsNFTPasar.sol",
    PASAR_V2: "FeedsNFTPasarV2.sol",
    PASAR_V2_LIBRARY: "FeedsNFTPasarV2.sol",
    GALLERIA: "FeedsNFTGalleria.sol",
    PROXY: "FeedsContractProxy.sol",
    ERC20_TOKEN: "ERC20Token.sol",
    DEMO1: "Demo1.sol",
    DEMO2: "Demo2.sol",
}

# ---- Integration test constants ----
PLATFORM_ADDRESS = "0xF25F7A31d308ccf52b8EBCf4ee9FabdD8c8C5077"
PLATFORM_FEE_RATE = 20000
GALLERIA_MIN_FEE = 100_000_000_000_000_000  # 0.1 ether
DEFAULT_TOKEN_ID = 42
STICKER_URI = "https://github.com/elastos-trinity/feeds-nft-contract#readme"
STICKER_DID_URI = "https://github.com/"
STICKER_SUPPLY = 123
STICKER_ROYALTY = 30000
GAS_BUFFER = 100_000_000_000_000_000


def load_config(env_path: Optional[Path] = None) -> None:
    """Load ``.env`` files into the process environment.

    Existing environment variables win over file values.
    """
    local_env = Path.cwd() / ".env"
    if local_env.is_file():
        load_dotenv(local_env, override=False)
    env_path = env_path or FEEDS_ENV
    if env_path.is_file():
        load_dotenv(env_path, override=False)


def get_net_type() -> str:
    net_type = os.environ.get("FEEDS_NET_TYPE", DEFAULT_NET_TYPE)
    if net_type not in _PROFILES:
        raise ValueError(
            f"Unknown FEEDS_NET_TYPE {net_type!r}; "
            f"expected one of {', '.join(_PROFILES)}"
        )
    return net_type


def get_profile(net_type: Optional[str] = None) -> NetworkProfile:
    """Return the network profile with per-profile env overrides applied.

    ``FEEDS_TESTNET_RPC_URL``, ``FEEDS_TESTNET_GAS_PRICE`` and
    ``FEEDS_TESTNET_DEPLOY_PK`` (and likewise for the other profiles)
    replace the built-in values.
    """
    name = net_type or get_net_type()
    base = _PROFILES[name]
    prefix = f"FEEDS_{name.upper()}_"
    return NetworkProfile(
        name=name,
        rpc_url=os.environ.get(prefix + "RPC_URL", base.rpc_url),
        gas_price=os.environ.get(prefix + "GAS_PRICE", base.gas_price),
        deploy_pk=os.environ.get(prefix + "DEPLOY_PK", base.deploy_pk),
    )


def default_rpc_url() -> str:
    return os.environ.get("FEEDS_RPC_URL") or get_profile().rpc_url


def default_gas_price() -> str:
    return os.environ.get("FEEDS_GAS_PRICE") or get_profile().gas_price


def default_deploy_pk() -> str:
    return os.environ.get("FEEDS_DEPLOY_PK") or get_profile().deploy_pk


def parse_gas_price(value: Optional[str]) -> Optional[int]:
    """Turn a CLI gas price into wei, or None to query the node."""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    return int(value)


def contracts_dir() -> Path:
    return Path(os.environ.get("FEEDS_CONTRACTS_DIR", "contracts")).resolve()


def contract_source(name: str) -> Path:
    """Path to the Solidity file that defines contract ``name``."""
    try:
        filename = CONTRACT_SOURCES[name]
    except KeyError:
        raise ValueError(f"No source file registered for contract {name}") from None
    return contracts_dir() / filename


def read_env_file(env_path: Path) -> dict[str, str]:
    existing: dict[str, str] = {}
    if env_path.exists():
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                k, v = stripped.split("=", 1)
                existing[k.strip()] = v.strip()
    return existing


def save_env_value(key: str, value: str, env_path: Optional[Path] = None) -> Path:
    """Save a single key=value to the env file (preserving other entries)."""
    env_path = env_path or FEEDS_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing = read_env_file(env_path)
    existing[key] = value
    lines = [f"{k}={v}" for k, v in existing.items()]
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    # Private keys may live in this file
    if os.name != "nt":
        env_path.chmod(0o600)

    os.environ[key] = value
    return env_path
