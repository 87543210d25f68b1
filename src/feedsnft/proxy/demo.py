"""
Upgradeability demo.

Deploys Demo1 and Demo2 behind one proxy and shows that storage written
through Demo1 survives the switch to Demo2, while ``setB`` only works
once Demo2 is the logic contract.
"""

from __future__ import annotations

from typing import Optional

import click
from eth_account.signers.local import LocalAccount

from .. import config
from ..chain.contract import Contract
from ..chain.rpc import RpcError
from ..scenarios.expect import ExpectationError, expect_equal, expect_status, expect_true
from ..solc.compiler import compile_named
from .upgrader import upgrade_logic

DEMO_ABI = [
    {
        "inputs": [],
        "name": "getA",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getB",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "initialize",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "_a", "type": "uint256"}],
        "name": "setA",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "_b", "type": "uint256"}],
        "name": "setB",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

A_VALUE = 1
B_VALUE = 2


def deploy_demo(owner: LocalAccount, gas_price: Optional[int] = None) -> tuple[Contract, str]:
    """
    Deploy Demo1, Demo2 and a proxy on Demo1, then initialize the proxy.

    Returns:
        (proxied Demo1 handle, Demo2 logic address)
    """
    proxy = compile_named(config.PROXY)
    demo1 = compile_named(config.DEMO1)
    demo2 = compile_named(config.DEMO2)
    click.echo("Demo contracts compiled")

    demo1_logic, _ = Contract.deploy(owner, demo1.abi, demo1.bytecode, gas_price=gas_price)
    click.echo(f"Demo1 contract deployed successfully at address {demo1_logic.address}")
    demo2_logic, _ = Contract.deploy(owner, demo2.abi, demo2.bytecode, gas_price=gas_price)
    click.echo(f"Demo2 contract deployed successfully at address {demo2_logic.address}")

    proxy_contract, _ = Contract.deploy(
        owner, proxy.abi, proxy.bytecode, [demo1_logic.address], gas_price=gas_price
    )
    click.echo(f"Proxy contract deployed successfully at address {proxy_contract.address}")

    proxied = demo1_logic.at(proxy_contract.address)
    expect_status(proxied.transact(owner, "initialize", gas_price=gas_price),
                  "Proxied demo1 contract initialize")
    expect_true(proxied.call("initialized"), "Proxied demo1 contract initialized result")
    click.echo("Proxied demo1 contract initialized successfully")
    return proxied, demo2_logic.address


def exercise_demo(
    owner: LocalAccount,
    demo: Contract,
    demo2_addr: str,
    gas_price: Optional[int] = None,
) -> None:
    """Run the set/get sequence through the proxy, before and after the upgrade."""
    click.echo("=== Test demo contract with demo1 as logic contract ===")
    expect_status(demo.transact(owner, "setA", A_VALUE, gas_price=gas_price), "Method setA")
    expect_equal(demo.call("getA"), A_VALUE, "Method getA return value")
    click.echo(f"Variable a is successfully set and read with value {A_VALUE}")

    try:
        result = demo.transact(owner, "setB", B_VALUE, gas_price=gas_price)
    except RpcError:
        result = None
    if result and result.get("status") == 1:
        raise ExpectationError("Method setB executed with demo1 logic: expected failure")
    click.echo("Method setB correctly failed for now")

    click.echo("=== Upgrade logic contract from demo1 to demo2 ===")
    upgrade_logic(owner, demo.address, demo2_addr, gas_price=gas_price)
    click.echo("Logic contract successfully upgraded to demo2")

    click.echo("=== Test demo contract with demo2 as logic contract ===")
    expect_equal(demo.call("getA"), A_VALUE, "Method getA return value after upgrade")
    click.echo(f"Result of method getA with demo2 logic stays at value {A_VALUE}")
    expect_status(demo.transact(owner, "setB", B_VALUE, gas_price=gas_price), "Method setB")
    expect_equal(demo.call("getB"), B_VALUE, "Method getB return value")
    click.echo(f"Variable b is successfully set and read with value {B_VALUE}")
    click.echo("=== Proxied contract upgraded correctly with new code logic ===")


def run_demo(owner: LocalAccount, gas_price: Optional[int] = None) -> None:
    click.echo("=== Deploy demo contracts ===")
    proxied, demo2_addr = deploy_demo(owner, gas_price)
    demo = Contract(DEMO_ABI, proxied.address, rpc_url=proxied.rpc_url)
    exercise_demo(owner, demo, demo2_addr, gas_price)
