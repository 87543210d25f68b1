"""
Deployment sequences and end-to-end runners against the in-memory chain.

Compilation is replaced by CompiledContract values whose bytecode is the
contract name, which the fake deployer turns into the matching fake.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from feedsnft import config
from feedsnft.scenarios.deploy import (
    ERC20_GRANT,
    V2_SELLER_TOKENS,
    deploy_release,
    deploy_v1,
    deploy_v2,
)
from feedsnft.scenarios.expect import ExpectationError
from feedsnft.scenarios.runner import run_v1, run_v2
from feedsnft.solc.compiler import CompiledContract

from conftest import FakeGalleria, FakePasar, FakePasarV2, FakeProxy, FakeSticker


def _compiled(name: str) -> CompiledContract:
    return CompiledContract(name=name, abi=[{"type": "constructor", "inputs": []}], bytecode=name)


@pytest.fixture()
def compiled():
    with patch("feedsnft.scenarios.deploy.compile_named", side_effect=_compiled) as compile_named:
        yield compile_named


class TestDeployV1:
    """Sticker, Pasar and Galleria behind proxies."""

    def test_contracts_are_wired(self, chain, actors, compiled) -> None:
        deployment = deploy_v1(actors.deployer)

        assert isinstance(deployment.sticker, FakeSticker)
        assert isinstance(deployment.pasar, FakePasar)
        assert isinstance(deployment.galleria, FakeGalleria)
        assert deployment.sticker.initialized
        assert deployment.pasar.token is deployment.sticker
        assert deployment.pasar.library == deployment.pasar_library
        assert deployment.pasar.platform == (config.PLATFORM_ADDRESS, config.PLATFORM_FEE_RATE)
        assert deployment.galleria.token is deployment.sticker
        assert deployment.galleria.min_fee == config.GALLERIA_MIN_FEE

    def test_proxies_point_at_logic(self, chain, actors, compiled) -> None:
        deployment = deploy_v1(actors.deployer)

        proxies = [c for c in chain.contracts.values() if isinstance(c, FakeProxy)]
        # proxied handles replaced the proxy objects at their addresses
        assert proxies == []
        assert deployment.sticker.address != deployment.sticker_logic
        assert deployment.pasar.address != deployment.pasar_logic
        assert deployment.galleria.address != deployment.galleria_logic

    def test_compiles_every_contract(self, chain, actors, compiled) -> None:
        deploy_v1(actors.deployer)
        names = [c.args[0] for c in compiled.call_args_list]
        assert names == [
            config.STICKER,
            config.PASAR,
            config.PASAR_LIBRARY,
            config.GALLERIA,
            config.PROXY,
        ]

    def test_initialize_failure_stops_deploy(self, chain, actors, compiled) -> None:
        with patch.object(FakeGalleria, "view_initialized", return_value=False):
            with pytest.raises(ExpectationError, match="Proxied Galleria contract initialized"):
                deploy_v1(actors.deployer)


class TestDeployV2:
    """Sticker, PasarV2 and the test ERC-20 with funded accounts."""

    def test_accounts_are_funded(self, chain, actors, compiled) -> None:
        deployment = deploy_v2(actors.deployer, actors.creator, actors.seller,
                               actors.buyer, actors.bidder)

        assert isinstance(deployment.pasar, FakePasarV2)
        sticker = deployment.sticker
        assert sticker.view_balanceOf(actors.seller.address, config.DEFAULT_TOKEN_ID) == V2_SELLER_TOKENS
        assert sticker.view_balanceOf(actors.creator.address, config.DEFAULT_TOKEN_ID) == (
            config.STICKER_SUPPLY - V2_SELLER_TOKENS
        )
        assert deployment.erc20.view_balanceOf(actors.buyer.address) == ERC20_GRANT
        assert deployment.erc20.view_balanceOf(actors.bidder.address) == ERC20_GRANT


class TestDeployRelease:
    """The deploy tool's flag combinations."""

    def test_all_components(self, chain, actors, compiled) -> None:
        release = deploy_release(actors.deployer)

        assert release.logic_nft and release.logic_pasar
        pasar = chain.contracts[release.proxied_pasar.lower()]
        assert pasar.view_getTokenAddress() == release.proxied_nft

    def test_without_proxy(self, chain, actors, compiled) -> None:
        release = deploy_release(actors.deployer, with_proxy=False)

        assert release.logic_nft and release.logic_pasar
        assert release.proxied_nft is None
        assert release.proxied_pasar is None
        assert config.PROXY not in [c.args[0] for c in compiled.call_args_list]

    def test_pasar_for_existing_nft(self, chain, actors, compiled) -> None:
        existing = deploy_release(actors.deployer, with_pasar=False).proxied_nft

        release = deploy_release(actors.deployer, with_nft=False, nft_addr=existing)

        assert release.logic_nft is None
        assert chain.contracts[release.proxied_pasar.lower()].view_getTokenAddress() == existing

    def test_pasar_without_nft_address_is_rejected(self, chain, actors, compiled) -> None:
        with pytest.raises(ValueError, match="nft_addr"):
            deploy_release(actors.deployer, with_nft=False)


class TestRunners:
    """Deploy, then run every harness on the fresh contracts."""

    def test_run_v1(self, chain, actors, compiled) -> None:
        chain.fund(*actors.all())
        deployment = run_v1(actors.deployer, actors.creator, actors.seller,
                            actors.buyer, actors.bidder)

        assert deployment.pasar.view_getOrderCount() == 3
        assert deployment.galleria.view_getActivePanelCount() == 0

    def test_run_v2(self, chain, actors, compiled) -> None:
        chain.fund(*actors.all())
        deployment = run_v2(actors.deployer, actors.creator, actors.seller,
                            actors.buyer, actors.bidder)

        assert deployment.pasar.view_getOrderCount() == 4
        assert deployment.erc20.view_balanceOf(config.PLATFORM_ADDRESS) > 0
