"""Unit tests for building, signing and sending transactions."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from eth_account import Account

from feedsnft.chain import tx
from feedsnft.chain.contract import Contract
from feedsnft.chain.tx import (
    TransactionFailedError,
    deploy_contract,
    send_contract_tx,
    send_tx_wait_for_receipt,
    to_checksum_address,
)

CONTRACT = "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"
TX_HASH = "0x" + "cd" * 32

ABI = [
    {
        "type": "function",
        "name": "setApprovalForAll",
        "inputs": [
            {"name": "_operator", "type": "address"},
            {"name": "_approved", "type": "bool"},
        ],
        "outputs": [],
    },
    {"type": "constructor", "inputs": [{"name": "_codeAddress", "type": "address"}]},
]


@pytest.fixture()
def node(fake_rpc, monkeypatch):
    monkeypatch.delenv("CHAIN_ID", raising=False)
    fake_rpc.responses.update({
        "eth_gasPrice": "0x3b9aca00",
        "eth_estimateGas": "0x186a0",
        "eth_getTransactionCount": "0x3",
        "eth_chainId": "0x15",
        "eth_sendRawTransaction": TX_HASH,
        "eth_getTransactionReceipt": {
            "status": "0x1",
            "gasUsed": "0x15f90",
            "contractAddress": None,
        },
    })
    return fake_rpc


def _mock_account() -> MagicMock:
    account = MagicMock()
    account.address = "0x" + "11" * 20
    account.sign_transaction.return_value.raw_transaction = b"\x01\x02"
    return account


class TestChecksum:
    def test_eip55_vector(self) -> None:
        assert to_checksum_address(CONTRACT) == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


class TestSend:
    def test_fills_gas_from_node(self, node) -> None:
        account = _mock_account()
        result = send_tx_wait_for_receipt({"to": CONTRACT, "data": "0x"}, account)

        signed = account.sign_transaction.call_args.args[0]
        assert signed == {
            "to": "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
            "data": "0x",
            "value": 0,
            "nonce": 3,
            # 100000 * 1.2
            "gas": 120_000,
            "gasPrice": 1_000_000_000,
            "chainId": 21,
        }
        assert node.params("eth_sendRawTransaction") == [["0x0102"]]
        assert result == {
            "tx_hash": TX_HASH,
            "receipt": node.responses["eth_getTransactionReceipt"],
            "status": 1,
            "gas_used": 90_000,
            "contract_address": None,
        }

    def test_explicit_gas_skips_node(self, node) -> None:
        account = _mock_account()
        send_tx_wait_for_receipt(
            {"to": CONTRACT, "data": "0x", "gas": 50_000, "gasPrice": "2000000000"}, account
        )

        signed = account.sign_transaction.call_args.args[0]
        assert signed["gas"] == 50_000
        assert signed["gasPrice"] == 2_000_000_000
        assert "eth_gasPrice" not in node.methods()
        assert "eth_estimateGas" not in node.methods()

    def test_caller_dict_is_untouched(self, node) -> None:
        request = {"to": CONTRACT, "data": "0x"}
        send_tx_wait_for_receipt(request, _mock_account())
        assert request == {"to": CONTRACT, "data": "0x"}

    def test_failed_status_is_returned(self, node) -> None:
        node.responses["eth_getTransactionReceipt"] = {"status": "0x0", "gasUsed": "0x5208"}
        result = send_tx_wait_for_receipt({"to": CONTRACT, "data": "0x"}, _mock_account())
        assert result["status"] == 0
        assert result["gas_used"] == 21000

    def test_real_signature_recovers_sender(self, node) -> None:
        account = Account.create()
        send_contract_tx(account, CONTRACT, "setApprovalForAll", [CONTRACT, True], abi=ABI)

        (raw,) = node.params("eth_sendRawTransaction")[0]
        assert Account.recover_transaction(raw) == account.address


class TestDeploy:
    def test_creation_has_no_to_and_appends_args(self, node) -> None:
        node.responses["eth_getTransactionReceipt"] = {
            "status": "0x1", "gasUsed": "0x1", "contractAddress": CONTRACT,
        }
        account = _mock_account()
        result = deploy_contract(account, "0x6080", abi=ABI, constructor_args=[CONTRACT])

        signed = account.sign_transaction.call_args.args[0]
        assert "to" not in signed
        assert signed["data"] == "0x6080" + "00" * 12 + CONTRACT[2:]
        assert result["contract_address"] == CONTRACT

    def test_constructor_args_need_abi(self, node) -> None:
        with pytest.raises(ValueError, match="abi is required"):
            deploy_contract(_mock_account(), "6080", constructor_args=[1])

    def test_contract_deploy_binds_address(self, node) -> None:
        node.responses["eth_getTransactionReceipt"] = {
            "status": "0x1", "gasUsed": "0x1", "contractAddress": CONTRACT,
        }
        contract, result = Contract.deploy(_mock_account(), ABI, "0x6080")
        assert contract.address == CONTRACT
        assert result["tx_hash"] == TX_HASH

    def test_contract_deploy_without_address_fails(self, node) -> None:
        with pytest.raises(TransactionFailedError, match="Deploy transaction failed"):
            Contract.deploy(_mock_account(), ABI, "0x6080")


class TestBuild:
    def test_contract_tx_fields(self) -> None:
        built = tx.build_contract_tx(CONTRACT, "setApprovalForAll", [CONTRACT, "true"], ABI,
                                     value=5, gas_price=7)
        assert built["to"] == CONTRACT
        assert built["value"] == 5
        assert built["gasPrice"] == 7
        assert "gas" not in built
        assert built["data"].endswith("1".rjust(64, "0"))
