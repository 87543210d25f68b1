"""
Test - Run the integration-test harnesses against a live chain.

``run`` and ``run-v2`` deploy a fresh set of contracts and run every
harness on it; the other commands run one harness against contracts that
are already deployed.
"""

from __future__ import annotations

from typing import Callable, Optional

import click

from .. import config
from ..chain.abi import load_abi
from ..chain.contract import Contract
from ..chain.tx import TransactionFailedError
from ..scenarios import galleria as galleria_harness
from ..scenarios import pasar as pasar_harness
from ..scenarios import pasar_v2 as pasar_v2_harness
from ..scenarios import sticker as sticker_harness
from ..scenarios.deploy import deploy_v1, deploy_v2
from ..scenarios.expect import ExpectationError
from ..scenarios.runner import run_v1, run_v2
from ..solc.compiler import CompileError, compile_named
from ._options import (
    CHAIN_ERRORS,
    account_for,
    address_option,
    connect,
    fail,
    gas_price_option,
    gas_price_wei,
    key_option,
    rpc_url_option,
)

_HARNESS_ERRORS = (
    ExpectationError,
    TransactionFailedError,
    CompileError,
    FileNotFoundError,
) + CHAIN_ERRORS

_ROLE_KEYS = {
    "deployer": ("--deploy-pk", "FEEDS_DEPLOY_PK", "Private key of the deployer account"),
    "creator": ("--creator-pk", "FEEDS_CREATOR_PK", "Private key of the token creator"),
    "seller": ("--seller-pk", "FEEDS_SELLER_PK", "Private key of the seller"),
    "buyer": ("--buyer-pk", "FEEDS_BUYER_PK", "Private key of the buyer"),
    "bidder": ("--bidder-pk", "FEEDS_BIDDER_PK", "Private key of the second bidder"),
}


def role_keys(*roles: str) -> Callable:
    """Add one private-key option per role (applied in the given order)."""

    def decorator(f: Callable) -> Callable:
        for role in reversed(roles):
            f = key_option(*_ROLE_KEYS[role])(f)
        return f

    return decorator


def token_id_option(f: Callable) -> Callable:
    return click.option(
        "--token-id",
        type=int,
        default=config.DEFAULT_TOKEN_ID,
        show_default=True,
        help="Sticker token ID used by the harness",
    )(f)


def auction_wait_option(default: int) -> Callable:
    return click.option(
        "--auction-wait",
        type=int,
        default=default,
        show_default=True,
        help="Seconds to wait for the auction to end",
    )


def _accounts(keys: dict, *roles: str) -> list:
    accounts = []
    for role in roles:
        option, _, _ = _ROLE_KEYS[role]
        private_key = keys[option.lstrip("-").replace("-", "_")]
        if role == "deployer":
            private_key = private_key or config.default_deploy_pk()
        accounts.append(account_for(private_key, role.capitalize(), option))
    return accounts


def contract_abi(name: str) -> list:
    """ABI from abis/, compiled from source when no artifact was generated."""
    try:
        return load_abi(name)
    except FileNotFoundError:
        return compile_named(name).abi


def _require_address(address: Optional[str], option: str, envvar: str) -> str:
    if not address:
        fail(f"Contract address required ({option} or {envvar}).")
    return address


def _passed(name: str) -> None:
    click.secho(f"=== {name} tests passed", fg="green")


@click.group("test")
def test_group() -> None:
    """Integration-test harnesses."""
    pass


@test_group.command("deploy")
@rpc_url_option
@gas_price_option
@role_keys("deployer")
def deploy_cmd(rpc_url: str, gas_price: Optional[str], **keys) -> None:
    """Deploy Sticker, Pasar and Galleria behind proxies for the v1 harnesses."""
    click.echo("=== Deploy contracts ===")
    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    (deployer,) = _accounts(keys, "deployer")

    try:
        deployment = deploy_v1(deployer, gas)
    except _HARNESS_ERRORS as exc:
        fail(str(exc))

    click.echo(f"  FEEDS_STICKER_ADDRESS={deployment.sticker.address}")
    click.echo(f"  FEEDS_PASAR_ADDRESS={deployment.pasar.address}")
    click.echo(f"  FEEDS_GALLERIA_ADDRESS={deployment.galleria.address}")
    click.secho("=== Contracts deployed", fg="green")


@test_group.command("sticker")
@rpc_url_option
@gas_price_option
@role_keys("creator", "seller")
@address_option("--sticker-addr", "FEEDS_STICKER_ADDRESS", "Proxied Sticker contract address")
@token_id_option
def sticker_cmd(
    rpc_url: str,
    gas_price: Optional[str],
    sticker_addr: Optional[str],
    token_id: int,
    **keys,
) -> None:
    """Mint, transfer and burn a Sticker token."""
    click.echo("=== Sticker token tests ===")
    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    address = _require_address(sticker_addr, "--sticker-addr", "FEEDS_STICKER_ADDRESS")
    creator, seller = _accounts(keys, "creator", "seller")

    try:
        sticker = Contract(contract_abi(config.STICKER), address)
        sticker_harness.check_sticker(sticker, creator, seller, token_id, gas)
    except _HARNESS_ERRORS as exc:
        fail(str(exc))
    _passed("Sticker token")


@test_group.command("pasar")
@rpc_url_option
@gas_price_option
@role_keys("creator", "seller", "buyer", "bidder")
@address_option("--pasar-addr", "FEEDS_PASAR_ADDRESS", "Proxied Pasar contract address")
@token_id_option
@auction_wait_option(pasar_harness.AUCTION_DURATION)
def pasar_cmd(
    rpc_url: str,
    gas_price: Optional[str],
    pasar_addr: Optional[str],
    token_id: int,
    auction_wait: int,
    **keys,
) -> None:
    """Sale, auction and cancel flows on the Pasar marketplace."""
    click.echo("=== Pasar contract tests ===")
    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    address = _require_address(pasar_addr, "--pasar-addr", "FEEDS_PASAR_ADDRESS")
    creator, seller, buyer, bidder = _accounts(keys, "creator", "seller", "buyer", "bidder")

    try:
        pasar = Contract(contract_abi(config.PASAR), address)
        pasar_harness.check_pasar(pasar, contract_abi(config.STICKER), creator, seller,
                                 buyer, bidder, token_id, gas, auction_wait)
    except _HARNESS_ERRORS as exc:
        fail(str(exc))
    _passed("Pasar contract")


@test_group.command("galleria")
@rpc_url_option
@gas_price_option
@role_keys("creator")
@address_option("--galleria-addr", "FEEDS_GALLERIA_ADDRESS", "Proxied Galleria contract address")
@token_id_option
def galleria_cmd(
    rpc_url: str,
    gas_price: Optional[str],
    galleria_addr: Optional[str],
    token_id: int,
    **keys,
) -> None:
    """Create and remove a Galleria panel."""
    click.echo("=== Galleria contract tests ===")
    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    address = _require_address(galleria_addr, "--galleria-addr", "FEEDS_GALLERIA_ADDRESS")
    (creator,) = _accounts(keys, "creator")

    try:
        galleria = Contract(contract_abi(config.GALLERIA), address)
        galleria_harness.check_galleria(galleria, contract_abi(config.STICKER), creator,
                                       token_id, gas)
    except _HARNESS_ERRORS as exc:
        fail(str(exc))
    _passed("Galleria contract")


@test_group.command("run")
@rpc_url_option
@gas_price_option
@role_keys("deployer", "creator", "seller", "buyer", "bidder")
@token_id_option
@auction_wait_option(pasar_harness.AUCTION_DURATION)
def run_cmd(
    rpc_url: str,
    gas_price: Optional[str],
    token_id: int,
    auction_wait: int,
    **keys,
) -> None:
    """Deploy fresh v1 contracts, then run the Sticker, Pasar and Galleria harnesses."""
    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    deployer, creator, seller, buyer, bidder = _accounts(
        keys, "deployer", "creator", "seller", "buyer", "bidder"
    )

    try:
        run_v1(deployer, creator, seller, buyer, bidder, token_id, gas, auction_wait)
    except _HARNESS_ERRORS as exc:
        fail(str(exc))
    click.secho("=== All tests passed", fg="green")


@test_group.command("deploy-v2")
@rpc_url_option
@gas_price_option
@role_keys("deployer", "creator", "seller", "buyer", "bidder")
@token_id_option
def deploy_v2_cmd(rpc_url: str, gas_price: Optional[str], token_id: int, **keys) -> None:
    """Deploy Sticker, PasarV2 and a test ERC-20, and fund the test accounts."""
    click.echo("=== Deploy contracts ===")
    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    deployer, creator, seller, buyer, bidder = _accounts(
        keys, "deployer", "creator", "seller", "buyer", "bidder"
    )

    try:
        deployment = deploy_v2(deployer, creator, seller, buyer, bidder, token_id, gas)
    except _HARNESS_ERRORS as exc:
        fail(str(exc))

    click.echo(f"  FEEDS_STICKER_ADDRESS={deployment.sticker.address}")
    click.echo(f"  FEEDS_PASAR_ADDRESS={deployment.pasar.address}")
    click.echo(f"  FEEDS_ERC20_ADDRESS={deployment.erc20.address}")
    click.secho("=== Contracts deployed", fg="green")


@test_group.command("pasar-v2")
@rpc_url_option
@gas_price_option
@role_keys("creator", "seller", "buyer", "bidder")
@address_option("--pasar-addr", "FEEDS_PASAR_ADDRESS", "Proxied PasarV2 contract address")
@address_option("--erc20-addr", "FEEDS_ERC20_ADDRESS", "ERC-20 payment token address")
@token_id_option
@auction_wait_option(pasar_v2_harness.AUCTION_WAIT_V2)
def pasar_v2_cmd(
    rpc_url: str,
    gas_price: Optional[str],
    pasar_addr: Optional[str],
    erc20_addr: Optional[str],
    token_id: int,
    auction_wait: int,
    **keys,
) -> None:
    """ERC-20 sale, auction, cancel and splittable flows on PasarV2."""
    click.echo("=== PasarV2 contract tests ===")
    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    address = _require_address(pasar_addr, "--pasar-addr", "FEEDS_PASAR_ADDRESS")
    erc20_address = _require_address(erc20_addr, "--erc20-addr", "FEEDS_ERC20_ADDRESS")
    creator, seller, buyer, bidder = _accounts(keys, "creator", "seller", "buyer", "bidder")

    try:
        pasar = Contract(contract_abi(config.PASAR_V2), address)
        pasar_v2_harness.check_pasar_v2(
            pasar,
            contract_abi(config.STICKER),
            contract_abi(config.ERC20_TOKEN),
            erc20_address,
            creator,
            seller,
            buyer,
            bidder,
            token_id,
            gas,
            auction_wait,
        )
    except _HARNESS_ERRORS as exc:
        fail(str(exc))
    _passed("PasarV2 contract")


@test_group.command("run-v2")
@rpc_url_option
@gas_price_option
@role_keys("deployer", "creator", "seller", "buyer", "bidder")
@token_id_option
@auction_wait_option(pasar_v2_harness.AUCTION_WAIT_V2)
def run_v2_cmd(
    rpc_url: str,
    gas_price: Optional[str],
    token_id: int,
    auction_wait: int,
    **keys,
) -> None:
    """Deploy fresh v2 contracts, then run the PasarV2 harness."""
    connect(rpc_url)
    gas = gas_price_wei(gas_price)
    deployer, creator, seller, buyer, bidder = _accounts(
        keys, "deployer", "creator", "seller", "buyer", "bidder"
    )

    try:
        run_v2(deployer, creator, seller, buyer, bidder, token_id, gas, auction_wait)
    except _HARNESS_ERRORS as exc:
        fail(str(exc))
    click.secho("=== All tests passed", fg="green")
