"""
Unit tests for the web3 FinePool ledger.

Web3 is replaced with MagicMock fakes; no RPC node is contacted.
"""

import os
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from web3.exceptions import ContractLogicError, TimeExhausted

from dex.adapters.finepool import FinePoolLedger, Web3PendingTx
from dex.config import DashboardConfig
from dex.ledger import PoolLedger
from dex.types import SwapDirection
from swap_risk.exceptions import (
    ApprovalFailed,
    ConfigurationError,
    InvalidInput,
    SwapRejected,
    TransportError,
)

POOL = "0x" + "50" * 20
TOKEN0 = "0x" + "a0" * 20
TOKEN1 = "0x" + "b1" * 20
OWNER = "0x" + "0c" * 20
TEST_KEY = "0x" + "11" * 32


def make_web3():
    web3 = MagicMock()
    web3.eth.block_number = 4242
    web3.eth.get_transaction_count.return_value = 7
    web3.eth.send_raw_transaction.return_value = b"\x12" * 32
    web3.to_hex.side_effect = lambda value: "0x" + value.hex()
    return web3


def make_account():
    account = MagicMock()
    account.address = OWNER
    account.sign_transaction.return_value.raw_transaction = b"signed"
    return account


@pytest.fixture
def web3():
    return make_web3()


@pytest.fixture
def contract(web3):
    """The mock every web3.eth.contract(...) call returns."""
    return web3.eth.contract.return_value


@pytest.fixture
def ledger(web3):
    return FinePoolLedger(web3, POOL, TOKEN0, TOKEN1, account=make_account(), chain_id=11155111)


class TestReads:
    def test_implements_protocol(self, ledger):
        assert isinstance(ledger, PoolLedger)
        assert ledger.signer == OWNER

    def test_addresses_are_checksummed(self, ledger):
        assert ledger.pool_address.lower() == POOL
        assert ledger.token_address(1).lower() == TOKEN1

    def test_rejects_bad_pool_address(self, web3):
        with pytest.raises(InvalidInput):
            FinePoolLedger(web3, "not-an-address", TOKEN0, TOKEN1)

    @pytest.mark.asyncio
    async def test_get_reserves(self, ledger, contract):
        contract.functions.reserve0.return_value.call.return_value = 101131
        contract.functions.reserve1.return_value.call.return_value = 99493
        contract.functions.totalSupply.return_value.call.return_value = 100000

        pool = await ledger.get_reserves()
        assert (pool.reserve0, pool.reserve1, pool.total_supply) == (101131, 99493, 100000)

    @pytest.mark.asyncio
    async def test_get_reserves_reads_one_block(self, ledger, contract):
        contract.functions.reserve0.return_value.call.return_value = 101131
        contract.functions.reserve1.return_value.call.return_value = 99493
        contract.functions.totalSupply.return_value.call.return_value = 100000

        await ledger.get_reserves()

        for name in ("reserve0", "reserve1", "totalSupply"):
            call = getattr(contract.functions, name).return_value.call
            call.assert_called_once_with(block_identifier=4242)

    @pytest.mark.asyncio
    async def test_block_number_failure_is_transport_error(self, ledger, web3):
        type(web3.eth).block_number = PropertyMock(side_effect=ConnectionError("reset"))

        with pytest.raises(TransportError) as exc_info:
            await ledger.get_reserves()
        assert exc_info.value.endpoint == "eth_blockNumber"

    @pytest.mark.asyncio
    async def test_rpc_failure_is_transport_error(self, ledger, contract):
        contract.functions.reserve0.return_value.call.side_effect = ConnectionError("reset")
        contract.functions.reserve1.return_value.call.return_value = 1
        contract.functions.totalSupply.return_value.call.return_value = 1

        with pytest.raises(TransportError) as exc_info:
            await ledger.get_reserves()
        assert exc_info.value.endpoint == "reserve0"
        assert isinstance(exc_info.value.cause, ConnectionError)

    @pytest.mark.asyncio
    async def test_get_allowance(self, ledger, contract):
        contract.functions.allowance.return_value.call.return_value = 500
        assert await ledger.get_allowance(TOKEN0, OWNER, POOL) == 500

    @pytest.mark.asyncio
    async def test_get_balance(self, ledger, contract):
        contract.functions.balanceOf.return_value.call.return_value = 250
        assert await ledger.get_balance(OWNER) == 250

    @pytest.mark.asyncio
    async def test_get_balance_rejects_bad_address(self, ledger):
        with pytest.raises(InvalidInput):
            await ledger.get_balance("0x1234")


class TestWrites:
    @pytest.mark.asyncio
    async def test_submit_swap_zero_to_one(self, ledger, web3, contract):
        pending = await ledger.submit_swap(SwapDirection.ZERO_TO_ONE, 100, 96)

        contract.functions.swapExact0For1.assert_called_once_with(100, 96)
        contract.functions.swapExact0For1.return_value.build_transaction.assert_called_once_with(
            {"from": OWNER, "nonce": 7, "chainId": 11155111}
        )
        web3.eth.send_raw_transaction.assert_called_once_with(b"signed")
        assert pending.tx_hash == "0x" + "12" * 32

    @pytest.mark.asyncio
    async def test_submit_swap_one_to_zero(self, ledger, contract):
        await ledger.submit_swap(SwapDirection.ONE_TO_ZERO, 100, 99)
        contract.functions.swapExact1For0.assert_called_once_with(100, 99)

    @pytest.mark.asyncio
    async def test_submit_approval(self, ledger, contract):
        await ledger.submit_approval(TOKEN0, POOL, 100)
        args = contract.functions.approve.call_args[0]
        assert args[0].lower() == POOL
        assert args[1] == 100

    @pytest.mark.asyncio
    async def test_read_only_ledger_cannot_submit(self, web3):
        ledger = FinePoolLedger(web3, POOL, TOKEN0, TOKEN1)
        assert ledger.signer is None
        with pytest.raises(ConfigurationError):
            await ledger.submit_swap(SwapDirection.ZERO_TO_ONE, 100, 96)

    @pytest.mark.asyncio
    async def test_reverting_swap_is_rejected(self, ledger, contract):
        build = contract.functions.swapExact0For1.return_value.build_transaction
        build.side_effect = ContractLogicError("execution reverted: slippage")

        with pytest.raises(SwapRejected) as exc_info:
            await ledger.submit_swap(SwapDirection.ZERO_TO_ONE, 100, 96)
        assert exc_info.value.min_out == 96

    @pytest.mark.asyncio
    async def test_reverting_approval_fails(self, ledger, contract):
        build = contract.functions.approve.return_value.build_transaction
        build.side_effect = ContractLogicError("execution reverted")

        with pytest.raises(ApprovalFailed):
            await ledger.submit_approval(TOKEN0, POOL, 100)

    @pytest.mark.asyncio
    async def test_broadcast_failure_is_transport_error(self, ledger, web3):
        web3.eth.send_raw_transaction.side_effect = ConnectionError("refused")
        with pytest.raises(TransportError):
            await ledger.submit_swap(SwapDirection.ZERO_TO_ONE, 100, 96)


class TestPendingTx:
    @pytest.mark.asyncio
    async def test_wait_returns_receipt(self, web3):
        web3.eth.wait_for_transaction_receipt.return_value = {"status": 1, "blockNumber": 42}
        receipt = await Web3PendingTx(web3, "0xabc", 30).wait()

        assert receipt.succeeded
        assert receipt.block_number == 42
        web3.eth.wait_for_transaction_receipt.assert_called_once_with("0xabc", timeout=30)

    @pytest.mark.asyncio
    async def test_reverted_receipt(self, web3):
        web3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 43}
        receipt = await Web3PendingTx(web3, "0xabc", 30).wait()
        assert receipt.status == 0

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, web3):
        web3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("no receipt")
        with pytest.raises(TransportError) as exc_info:
            await Web3PendingTx(web3, "0xabc", 30).wait()
        assert exc_info.value.endpoint == "eth_getTransactionReceipt"


class TestFromConfig:
    def config(self):
        return DashboardConfig(
            {
                "rpc_url": "https://rpc.example",
                "pool_address": POOL,
                "tokens": [{"address": TOKEN0}, {"address": TOKEN1}],
                "private_key_env": "TEST_FINEPOOL_KEY",
            }
        )

    def test_unreachable_rpc(self):
        with patch("dex.adapters.finepool.Web3") as web3_cls:
            web3_cls.return_value.is_connected.return_value = False
            with pytest.raises(TransportError):
                FinePoolLedger.from_config(self.config())

    def test_loads_signer_from_env(self):
        with patch("dex.adapters.finepool.Web3") as web3_cls, patch.dict(
            os.environ, {"TEST_FINEPOOL_KEY": TEST_KEY}
        ):
            web3_cls.return_value.is_connected.return_value = True
            web3_cls.is_address.return_value = True
            web3_cls.to_checksum_address.side_effect = lambda address: address
            ledger = FinePoolLedger.from_config(self.config())

        assert ledger.signer is not None
        assert ledger.signer.startswith("0x")
        assert ledger.chain_id == 11155111

    def test_read_only_without_key(self):
        with patch("dex.adapters.finepool.Web3") as web3_cls, patch.dict(
            os.environ, {}, clear=True
        ):
            web3_cls.return_value.is_connected.return_value = True
            web3_cls.is_address.return_value = True
            web3_cls.to_checksum_address.side_effect = lambda address: address
            ledger = FinePoolLedger.from_config(self.config())

        assert ledger.signer is None

    def test_malformed_key(self):
        with patch("dex.adapters.finepool.Web3") as web3_cls, patch.dict(
            os.environ, {"TEST_FINEPOOL_KEY": "not-a-key"}
        ):
            web3_cls.return_value.is_connected.return_value = True
            with pytest.raises(ConfigurationError):
                FinePoolLedger.from_config(self.config())
