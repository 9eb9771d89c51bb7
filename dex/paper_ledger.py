"""
Paper FinePool ledger.

Simulates the pool contract in memory so swaps can be dry-run end to end:
approvals overwrite the allowance like ERC-20 approve, swaps consume the
allowance, pay out with the same integer formula the contract uses, and
revert when the output would fall below min_out. Nothing is persisted.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from swap_risk.utils import get_logger

from .adapters.v2 import DEFAULT_FEES, get_amount_out
from .ledger import TxReceipt
from .types import FeeSchedule, PoolState, SwapDirection

logger = get_logger(__name__)

PAPER_POOL_ADDRESS = "0x" + "50" * 20
PAPER_TOKEN0_ADDRESS = "0x" + "a0" * 20
PAPER_TOKEN1_ADDRESS = "0x" + "b1" * 20


def _new_tx_hash() -> str:
    return "0x" + uuid.uuid4().hex + uuid.uuid4().hex


@dataclass
class PaperPendingTx:
    """Pending handle whose receipt is already decided."""

    tx_hash: str
    receipt: TxReceipt
    latency_sec: float = 0.0

    async def wait(self) -> TxReceipt:
        if self.latency_sec > 0:
            await asyncio.sleep(self.latency_sec)
        return self.receipt


@dataclass
class PaperTransaction:
    """Entry in the paper ledger's transaction log."""

    tx_hash: str
    kind: str
    sender: str
    status: int
    amount_in: int = 0
    amount_out: int = 0
    min_out: int = 0
    revert_reason: Optional[str] = None


@dataclass
class PaperLedger:
    """
    In-memory constant-product pool implementing PoolLedger.

    Attributes:
        reserve0: Token0 reserve
        reserve1: Token1 reserve
        total_supply: LP share supply
        account: Address that signs paper transactions
        lp_balances: LP share balance per owner
        fees: Fee schedule the simulated contract charges
        latency_sec: Simulated confirmation delay
    """

    reserve0: int
    reserve1: int
    total_supply: int = 0
    account: str = "0x" + "0c" * 20
    lp_balances: Dict[str, int] = field(default_factory=dict)
    fees: FeeSchedule = DEFAULT_FEES
    latency_sec: float = 0.0
    pool_address: str = PAPER_POOL_ADDRESS
    token0: str = PAPER_TOKEN0_ADDRESS
    token1: str = PAPER_TOKEN1_ADDRESS
    allowances: Dict[Tuple[str, str, str], int] = field(default_factory=dict)
    transactions: List[PaperTransaction] = field(default_factory=list)
    block_number: int = 1

    @property
    def signer(self) -> Optional[str]:
        return self.account

    def token_address(self, index: int) -> str:
        if index not in (0, 1):
            raise ValueError(f"Token index must be 0 or 1: {index}")
        return self.token0 if index == 0 else self.token1

    def set_reserves(self, reserve0: int, reserve1: int) -> None:
        """Move the pool, e.g. to simulate another trader settling first."""
        self.reserve0 = reserve0
        self.reserve1 = reserve1

    async def get_reserves(self) -> PoolState:
        return PoolState.from_raw(self.reserve0, self.reserve1, self.total_supply)

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        return self.allowances.get((token.lower(), owner.lower(), spender.lower()), 0)

    async def get_balance(self, owner: str) -> int:
        balances = {addr.lower(): amount for addr, amount in self.lp_balances.items()}
        return balances.get(owner.lower(), 0)

    def _settle(self, tx: PaperTransaction) -> PaperPendingTx:
        self.transactions.append(tx)
        self.block_number += 1
        receipt = TxReceipt(
            tx_hash=tx.tx_hash,
            status=tx.status,
            block_number=self.block_number,
            revert_reason=tx.revert_reason,
        )
        return PaperPendingTx(tx.tx_hash, receipt, self.latency_sec)

    async def submit_approval(self, token: str, spender: str, amount: int) -> PaperPendingTx:
        self.allowances[(token.lower(), self.account.lower(), spender.lower())] = amount
        logger.info(f"[PAPER] approve {spender} for {amount} on {token}")
        return self._settle(
            PaperTransaction(
                tx_hash=_new_tx_hash(),
                kind="approve",
                sender=self.account,
                status=1,
                amount_in=amount,
            )
        )

    async def submit_swap(
        self, direction: SwapDirection, amount_in: int, min_out: int
    ) -> PaperPendingTx:
        token_in = self.token_address(direction.token_in_index)
        key = (token_in.lower(), self.account.lower(), self.pool_address.lower())
        reserve_in, reserve_out = (
            (self.reserve0, self.reserve1)
            if direction is SwapDirection.ZERO_TO_ONE
            else (self.reserve1, self.reserve0)
        )
        amount_out = get_amount_out(
            reserve_in, reserve_out, amount_in, self.fees.numerator, self.fees.denominator
        )

        revert_reason = None
        if self.allowances.get(key, 0) < amount_in:
            revert_reason = "insufficient allowance"
        elif amount_out <= 0:
            revert_reason = "insufficient output amount"
        elif amount_out < min_out:
            revert_reason = "slippage"

        tx = PaperTransaction(
            tx_hash=_new_tx_hash(),
            kind=f"swap_{direction.value}",
            sender=self.account,
            status=0 if revert_reason else 1,
            amount_in=amount_in,
            amount_out=0 if revert_reason else amount_out,
            min_out=min_out,
            revert_reason=revert_reason,
        )

        if revert_reason:
            logger.info(f"[PAPER] swap {direction.value} reverted: {revert_reason}")
            return self._settle(tx)

        self.allowances[key] -= amount_in
        if direction is SwapDirection.ZERO_TO_ONE:
            self.reserve0 += amount_in
            self.reserve1 -= amount_out
        else:
            self.reserve1 += amount_in
            self.reserve0 -= amount_out

        logger.info(
            f"[PAPER] swap {direction.value}: {amount_in} in -> {amount_out} out "
            f"(min_out={min_out})"
        )
        return self._settle(tx)
