"""
FinePool ledger backed by a JSON-RPC node via web3.py.

web3's HTTP provider is synchronous, so every RPC call runs in the default
thread pool to keep the event loop free. Failures are translated into the
swap_risk error taxonomy here and nowhere else; nothing is retried.
"""

import asyncio
from functools import partial
from typing import Any, Callable, Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from swap_risk.exceptions import (
    ApprovalFailed,
    ConfigurationError,
    InvalidInput,
    SwapRejected,
    TransportError,
)
from swap_risk.utils import get_logger

from ..abi import ERC20_ABI, FINEPOOL_ABI
from ..ledger import TxReceipt
from ..types import PoolState, SwapDirection

logger = get_logger(__name__)


def _checksum(address: str, field: str) -> str:
    if not address or not Web3.is_address(address):
        raise InvalidInput(f"Invalid address for {field}: {address}", field=field, value=address)
    return Web3.to_checksum_address(address)


class Web3PendingTx:
    """Submitted transaction awaiting a receipt."""

    def __init__(self, web3: Web3, tx_hash: str, timeout_sec: int):
        self.web3 = web3
        self.tx_hash = tx_hash
        self.timeout_sec = timeout_sec

    async def wait(self) -> TxReceipt:
        loop = asyncio.get_running_loop()
        try:
            receipt = await loop.run_in_executor(
                None,
                partial(
                    self.web3.eth.wait_for_transaction_receipt,
                    self.tx_hash,
                    timeout=self.timeout_sec,
                ),
            )
        except TimeExhausted as e:
            raise TransportError(
                f"No receipt for {self.tx_hash} after {self.timeout_sec}s",
                endpoint="eth_getTransactionReceipt",
                cause=e,
            ) from e
        except Exception as e:
            raise TransportError(
                f"Failed to fetch receipt for {self.tx_hash}: {e}",
                endpoint="eth_getTransactionReceipt",
                cause=e,
            ) from e

        return TxReceipt(
            tx_hash=self.tx_hash,
            status=int(receipt["status"]),
            block_number=receipt.get("blockNumber"),
        )


class FinePoolLedger:
    """
    PoolLedger implementation for a deployed FinePool contract.

    Args:
        web3: Connected Web3 instance
        pool_address: FinePool contract address
        token0: Token0 ERC-20 address
        token1: Token1 ERC-20 address
        account: Local signer; None makes the ledger read-only
        chain_id: Chain id used when signing
        receipt_timeout_sec: Seconds to wait for a receipt
    """

    def __init__(
        self,
        web3: Web3,
        pool_address: str,
        token0: str,
        token1: str,
        account: Optional[Any] = None,
        chain_id: Optional[int] = None,
        receipt_timeout_sec: int = 120,
    ):
        self.web3 = web3
        self.pool_address = _checksum(pool_address, "pool_address")
        self.token0 = _checksum(token0, "token0")
        self.token1 = _checksum(token1, "token1")
        self.account = account
        self.chain_id = chain_id
        self.receipt_timeout_sec = receipt_timeout_sec

        self.pool = web3.eth.contract(address=self.pool_address, abi=FINEPOOL_ABI)

    @classmethod
    def from_config(cls, config) -> "FinePoolLedger":
        """
        Build a ledger from a DashboardConfig.

        Raises:
            TransportError: If the RPC endpoint is unreachable
            ConfigurationError: If the signer key is malformed
        """
        web3 = Web3(Web3.HTTPProvider(config.rpc_url))
        if not web3.is_connected():
            raise TransportError(
                f"Cannot connect to RPC at {config.rpc_url}", endpoint=config.rpc_url
            )

        account = None
        private_key = config.private_key
        if private_key:
            try:
                account = Account.from_key(private_key)
            except Exception as e:
                raise ConfigurationError(
                    f"Invalid private key in {config.private_key_env}"
                ) from e
            logger.info(f"Signing as {account.address}")
        else:
            logger.info(f"{config.private_key_env} not set, ledger is read-only")

        return cls(
            web3,
            config.pool_address,
            config.token(0)["address"],
            config.token(1)["address"],
            account=account,
            chain_id=config.chain_id,
            receipt_timeout_sec=config.receipt_timeout_sec,
        )

    @property
    def signer(self) -> Optional[str]:
        return self.account.address if self.account is not None else None

    def token_address(self, index: int) -> str:
        if index not in (0, 1):
            raise ValueError(f"Token index must be 0 or 1: {index}")
        return self.token0 if index == 0 else self.token1

    async def _call(self, fn: Callable[[], Any], endpoint: str) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn)
        except Exception as e:
            logger.error(f"RPC call {endpoint} failed: {e}")
            raise TransportError(f"{endpoint} failed: {e}", endpoint=endpoint, cause=e) from e

    async def get_reserves(self) -> PoolState:
        # Pin all three reads to one block so they describe the same pool state
        block = await self._call(lambda: self.web3.eth.block_number, "eth_blockNumber")
        fns = self.pool.functions
        r0, r1, supply = await asyncio.gather(
            self._call(partial(fns.reserve0().call, block_identifier=block), "reserve0"),
            self._call(partial(fns.reserve1().call, block_identifier=block), "reserve1"),
            self._call(partial(fns.totalSupply().call, block_identifier=block), "totalSupply"),
        )
        return PoolState.from_raw(int(r0), int(r1), int(supply))

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        erc20 = self.web3.eth.contract(address=_checksum(token, "token"), abi=ERC20_ABI)
        fn = erc20.functions.allowance(_checksum(owner, "owner"), _checksum(spender, "spender"))
        return int(await self._call(fn.call, "allowance"))

    async def get_balance(self, owner: str) -> int:
        fn = self.pool.functions.balanceOf(_checksum(owner, "owner"))
        return int(await self._call(fn.call, "balanceOf"))

    def _require_account(self) -> Any:
        if self.account is None:
            raise ConfigurationError("No signer configured; set the private key to submit")
        return self.account

    def _sign_and_send(self, contract_fn) -> str:
        """Build, sign and broadcast a contract call. Runs in the thread pool."""
        account = self.account
        tx_params = {
            "from": account.address,
            "nonce": self.web3.eth.get_transaction_count(account.address),
        }
        if self.chain_id is not None:
            tx_params["chainId"] = self.chain_id

        tx = contract_fn.build_transaction(tx_params)
        signed = account.sign_transaction(tx)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        return self.web3.to_hex(tx_hash)

    async def _submit(self, contract_fn, endpoint: str, rejected: Callable[[str], Exception]):
        self._require_account()
        loop = asyncio.get_running_loop()
        try:
            tx_hash = await loop.run_in_executor(None, self._sign_and_send, contract_fn)
        except ContractLogicError as e:
            # Gas estimation already shows the call would revert
            raise rejected(str(e)) from e
        except Exception as e:
            logger.error(f"{endpoint} submission failed: {e}")
            raise TransportError(f"{endpoint} failed: {e}", endpoint=endpoint, cause=e) from e

        logger.info(f"Sent {endpoint}: {tx_hash}")
        return Web3PendingTx(self.web3, tx_hash, self.receipt_timeout_sec)

    async def submit_approval(self, token: str, spender: str, amount: int) -> Web3PendingTx:
        erc20 = self.web3.eth.contract(address=_checksum(token, "token"), abi=ERC20_ABI)
        fn = erc20.functions.approve(_checksum(spender, "spender"), int(amount))
        return await self._submit(
            fn,
            "approve",
            lambda reason: ApprovalFailed(f"Approval would revert: {reason}"),
        )

    async def submit_swap(
        self, direction: SwapDirection, amount_in: int, min_out: int
    ) -> Web3PendingTx:
        if direction is SwapDirection.ZERO_TO_ONE:
            fn = self.pool.functions.swapExact0For1(int(amount_in), int(min_out))
            endpoint = "swapExact0For1"
        else:
            fn = self.pool.functions.swapExact1For0(int(amount_in), int(min_out))
            endpoint = "swapExact1For0"

        return await self._submit(
            fn,
            endpoint,
            lambda reason: SwapRejected(f"Swap would revert: {reason}", min_out=min_out),
        )
