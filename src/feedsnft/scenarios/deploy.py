"""
Deployment sequences.

Each logic contract is deployed once and reached through its own
FeedsContractProxy, whose constructor takes the logic address.  The
proxied contract is then initialized and every setting is read back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import click
from eth_account.signers.local import LocalAccount

from .. import config
from ..chain.contract import Contract
from ..solc.compiler import CompiledContract, compile_named
from .common import deploy_checked, send
from .expect import expect_equal, expect_true

ERC20_GRANT = 10**24
V2_SELLER_TOKENS = 60


@dataclass
class V1Deployment:
    sticker: Contract
    pasar: Contract
    galleria: Contract
    sticker_logic: str
    pasar_logic: str
    pasar_library: str
    galleria_logic: str


@dataclass
class V2Deployment:
    sticker: Contract
    pasar: Contract
    erc20: Contract
    sticker_logic: str
    pasar_logic: str
    pasar_library: str


@dataclass
class Release:
    """Addresses produced by the deploy tool; None where a step was skipped."""

    logic_nft: Optional[str] = None
    logic_pasar: Optional[str] = None
    proxied_nft: Optional[str] = None
    proxied_pasar: Optional[str] = None


def _compile(name: str, label: str) -> CompiledContract:
    compiled = compile_named(name)
    click.echo(f"{label} contract compiled")
    return compiled


def deploy_proxied(
    deployer: LocalAccount,
    logic: Contract,
    proxy: CompiledContract,
    label: str,
    gas_price: Optional[int] = None,
) -> Contract:
    """Deploy a proxy in front of ``logic`` and return the logic ABI bound to it."""
    proxy_contract = deploy_checked(
        deployer, proxy, f"Proxy {label}", [logic.address], gas_price=gas_price
    )
    return logic.at(proxy_contract.address)


def initialize(
    contract: Contract,
    deployer: LocalAccount,
    label: str,
    *args,
    gas_price: Optional[int] = None,
) -> None:
    send(contract, deployer, "initialize", *args,
         what=f"Proxied {label} contract initialize", gas_price=gas_price)
    expect_true(contract.call("initialized"), f"Proxied {label} contract initialized result")


def _setup_pasar(
    pasar: Contract,
    deployer: LocalAccount,
    label: str,
    token_address: str,
    library_address: str,
    gas_price: Optional[int],
) -> None:
    initialize(pasar, deployer, label, token_address, gas_price=gas_price)
    expect_equal(pasar.call("getTokenAddress"), token_address,
                 f"Proxied {label} initialized with token address")
    click.echo(
        f"Proxied {label} contract initialized successfully with token address {token_address}"
    )

    send(pasar, deployer, "setLibraryLogicContract", library_address,
         what=f"Proxied {label} contract set library", gas_price=gas_price)
    expect_equal(pasar.call("getLibraryLogicContract"), library_address,
                 f"Proxied {label} library logic contract address")
    click.echo(
        f"Proxied {label} contract library logic set successfully "
        f"with contract address {library_address}"
    )

    send(pasar, deployer, "setPlatformFee", config.PLATFORM_ADDRESS, config.PLATFORM_FEE_RATE,
         what=f"Proxied {label} set platform fee", gas_price=gas_price)
    fee = pasar.call("getPlatformFee")
    expect_equal(fee["_platformAddress"], config.PLATFORM_ADDRESS,
                 f"Proxied {label} platform address")
    expect_equal(int(fee["_platformFeeRate"]), config.PLATFORM_FEE_RATE,
                 f"Proxied {label} platform fee rate")
    click.echo(
        f"Proxied {label} platform fee parameters set successfully with platform address "
        f"{config.PLATFORM_ADDRESS} and fee rate {config.PLATFORM_FEE_RATE}"
    )


def deploy_v1(deployer: LocalAccount, gas_price: Optional[int] = None) -> V1Deployment:
    """
    Deploy Sticker, Pasar (with its library) and Galleria behind proxies.

    Pasar and Galleria are wired to the proxied Sticker; Pasar gets the
    platform fee and Galleria the minimum panel fee.
    """
    sticker_c = _compile(config.STICKER, "Sticker")
    pasar_c = _compile(config.PASAR, "Pasar")
    library_c = _compile(config.PASAR_LIBRARY, "Pasar library")
    galleria_c = _compile(config.GALLERIA, "Galleria")
    proxy_c = _compile(config.PROXY, "Proxy")
    click.echo("Deployer account generated")

    sticker_logic = deploy_checked(deployer, sticker_c, "Sticker", gas_price=gas_price)
    pasar_logic = deploy_checked(deployer, pasar_c, "Pasar", gas_price=gas_price)
    library = deploy_checked(deployer, library_c, "Pasar library", gas_price=gas_price)
    galleria_logic = deploy_checked(deployer, galleria_c, "Galleria", gas_price=gas_price)

    sticker = deploy_proxied(deployer, sticker_logic, proxy_c, "Sticker", gas_price)
    pasar = deploy_proxied(deployer, pasar_logic, proxy_c, "Pasar", gas_price)
    galleria = deploy_proxied(deployer, galleria_logic, proxy_c, "Galleria", gas_price)

    initialize(sticker, deployer, "Sticker", gas_price=gas_price)
    click.echo("Proxied Sticker contract initialized successfully")

    _setup_pasar(pasar, deployer, "Pasar", sticker.address, library.address, gas_price)

    initialize(galleria, deployer, "Galleria", sticker.address, config.PLATFORM_ADDRESS,
               config.GALLERIA_MIN_FEE, gas_price=gas_price)
    expect_equal(galleria.call("getTokenAddress"), sticker.address,
                 "Proxied Galleria initialized with token address")
    fee_params = galleria.call("getFeeParams")
    expect_equal(fee_params["_platformAddress"], config.PLATFORM_ADDRESS,
                 "Proxied Galleria platform address")
    expect_equal(int(fee_params["_minFee"]), config.GALLERIA_MIN_FEE,
                 "Proxied Galleria minimum fee")
    click.echo(
        f"Proxied Galleria contract initialized successfully with token address "
        f"{sticker.address}, platform address {config.PLATFORM_ADDRESS} "
        f"and minimum fee {config.GALLERIA_MIN_FEE}"
    )

    return V1Deployment(
        sticker=sticker,
        pasar=pasar,
        galleria=galleria,
        sticker_logic=sticker_logic.address,
        pasar_logic=pasar_logic.address,
        pasar_library=library.address,
        galleria_logic=galleria_logic.address,
    )


def deploy_v2(
    deployer: LocalAccount,
    creator: LocalAccount,
    seller: LocalAccount,
    buyer: LocalAccount,
    bidder: LocalAccount,
    token_id: int = config.DEFAULT_TOKEN_ID,
    gas_price: Optional[int] = None,
) -> V2Deployment:
    """
    Deploy Sticker and PasarV2 behind proxies plus a test ERC-20, then fund
    the test accounts: the creator mints ``token_id`` and hands 60 to the
    seller, and buyer and bidder each receive 10^24 ERC-20 units.
    """
    sticker_c = _compile(config.STICKER, "Sticker")
    pasar_c = _compile(config.PASAR_V2, "PasarV2")
    library_c = _compile(config.PASAR_V2_LIBRARY, "PasarV2 library")
    proxy_c = _compile(config.PROXY, "Proxy")
    erc20_c = _compile(config.ERC20_TOKEN, "erc20Token")
    click.echo("Deployer account generated")

    sticker_logic = deploy_checked(deployer, sticker_c, "Sticker", gas_price=gas_price)
    pasar_logic = deploy_checked(deployer, pasar_c, "PasarV2", gas_price=gas_price)
    library = deploy_checked(deployer, library_c, "PasarV2 library", gas_price=gas_price)

    sticker = deploy_proxied(deployer, sticker_logic, proxy_c, "Sticker", gas_price)
    pasar = deploy_proxied(deployer, pasar_logic, proxy_c, "PasarV2", gas_price)

    initialize(sticker, deployer, "Sticker", gas_price=gas_price)
    click.echo("Proxied Sticker contract initialized successfully")
    _setup_pasar(pasar, deployer, "PasarV2", sticker.address, library.address, gas_price)

    erc20 = deploy_checked(deployer, erc20_c, "erc20Token", gas_price=gas_price)
    click.echo("Test accounts generated")

    # token and ERC-20 logic is covered elsewhere; only statuses are checked here
    send(sticker, creator, "mint", token_id, config.STICKER_SUPPLY, config.STICKER_URI,
         config.STICKER_ROYALTY, config.STICKER_DID_URI, what="Mint token", gas_price=gas_price)
    click.echo(
        f"Mint token with id {token_id} supply {config.STICKER_SUPPLY} "
        f"to address {creator.address} successfully"
    )
    send(sticker, creator, "safeTransferFrom", creator.address, seller.address, token_id,
         V2_SELLER_TOKENS, what="Transfer token", gas_price=gas_price)
    click.echo(f"Token transfer from {creator.address} to {seller.address} successfully")

    for account, label in ((buyer, "erc20ToBuyer"), (bidder, "erc20ToBidder")):
        send(erc20, deployer, "transfer", account.address, ERC20_GRANT,
             what=label, gas_price=gas_price)
        click.echo(f"erc20 transfer from {deployer.address} to {account.address} successfully")

    return V2Deployment(
        sticker=sticker,
        pasar=pasar,
        erc20=erc20,
        sticker_logic=sticker_logic.address,
        pasar_logic=pasar_logic.address,
        pasar_library=library.address,
    )


def deploy_release(
    deployer: LocalAccount,
    with_nft: bool = True,
    with_pasar: bool = True,
    with_proxy: bool = True,
    nft_addr: Optional[str] = None,
    gas_price: Optional[int] = None,
) -> Release:
    """
    Production deploy: Sticker and Pasar logic, optionally behind proxies.

    With ``with_nft`` off, ``nft_addr`` names the existing proxied Sticker
    that a newly proxied Pasar is initialized with.

    Raises:
        ValueError: If a proxied Pasar is requested with no Sticker to bind to
    """
    if with_pasar and with_proxy and not with_nft and not nft_addr:
        raise ValueError("nft_addr is required when deploying Pasar without the NFT")

    release = Release()
    proxy_c = _compile(config.PROXY, "Proxy") if with_proxy else None

    if with_nft:
        logic = deploy_checked(deployer, _compile(config.STICKER, "Logic (NFT)"),
                               "Logic NFT", gas_price=gas_price)
        release.logic_nft = logic.address
        if proxy_c is not None:
            sticker = deploy_proxied(deployer, logic, proxy_c, "NFT", gas_price)
            initialize(sticker, deployer, "NFT", gas_price=gas_price)
            click.echo("Initialized: proxied NFT contract")
            release.proxied_nft = sticker.address

    if with_pasar:
        logic = deploy_checked(deployer, _compile(config.PASAR, "Logic (Pasar)"),
                               "Logic Pasar", gas_price=gas_price)
        release.logic_pasar = logic.address
        if proxy_c is not None:
            token_address = release.proxied_nft or nft_addr
            pasar = deploy_proxied(deployer, logic, proxy_c, "Pasar", gas_price)
            initialize(pasar, deployer, "Pasar", token_address, gas_price=gas_price)
            expect_equal(pasar.call("getTokenAddress"), token_address,
                         "Proxied Pasar initialized with token address")
            click.echo(f"Initialized: proxied Pasar contract with token address {token_address}")
            release.proxied_pasar = pasar.address

    return release
