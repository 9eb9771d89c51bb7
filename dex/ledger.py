"""
Ledger interfaces between the swap core and the chain transport.

The core only ever sees already-decoded integers and strings. Anything that
talks to an RPC node lives behind PoolLedger; implementations raise
TransportError for failures outside the core's control and never retry.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from .types import PoolState, SwapDirection


@dataclass(frozen=True)
class TxReceipt:
    """
    Settled transaction.

    Attributes:
        tx_hash: Transaction hash
        status: 1 if the transaction succeeded, 0 if it reverted
        block_number: Block the transaction was included in
        revert_reason: Decoded revert reason, if the ledger provides one
    """

    tx_hash: str
    status: int
    block_number: Optional[int] = None
    revert_reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@runtime_checkable
class PendingTx(Protocol):
    """Handle to a submitted instruction that has not yet settled."""

    tx_hash: str

    async def wait(self) -> TxReceipt:
        """Suspend until the ledger reports finality."""
        ...


@runtime_checkable
class PoolLedger(Protocol):
    """Reads and writes the orchestrator needs from a FinePool deployment."""

    pool_address: str

    @property
    def signer(self) -> Optional[str]:
        """Address that signs submitted instructions; None when read-only."""
        ...

    def token_address(self, index: int) -> str:
        """Address of token0 (index 0) or token1 (index 1)."""
        ...

    async def get_reserves(self) -> PoolState:
        """Reserves and LP supply from a single snapshot."""
        ...

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        """ERC-20 allowance granted by owner to spender."""
        ...

    async def get_balance(self, owner: str) -> int:
        """LP share balance of owner."""
        ...

    async def submit_approval(self, token: str, spender: str, amount: int) -> PendingTx:
        """Issue an ERC-20 approve(spender, amount) for token."""
        ...

    async def submit_swap(
        self, direction: SwapDirection, amount_in: int, min_out: int
    ) -> PendingTx:
        """Issue swapExact0For1 or swapExact1For0 with a minimum output."""
        ...
