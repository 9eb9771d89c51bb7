"""
LP position analysis: a share balance's claim on the pool reserves.
"""

import asyncio
from decimal import Decimal

from swap_risk.exceptions import InvalidInput
from swap_risk.utils import get_logger

from .ledger import PoolLedger
from .types import LPAnalysis

logger = get_logger(__name__)


def analyze_lp(
    lp_balance: int, total_supply: int, reserve0: int, reserve1: int
) -> LPAnalysis:
    """
    Convert an LP share balance into its proportional underlying amounts.

    Formula:
        share = lp_balance / total_supply
        underlying_i = reserve_i * share

    Args:
        lp_balance: Wallet's LP share balance
        total_supply: Outstanding LP shares
        reserve0: Pool reserve of token0
        reserve1: Pool reserve of token1

    Returns:
        LPAnalysis; all zero when there is no position or no supply
    """
    if lp_balance <= 0 or total_supply <= 0:
        return LPAnalysis.empty()

    share = Decimal(lp_balance) / Decimal(total_supply)

    return LPAnalysis(
        lp_balance=lp_balance,
        pool_share_pct=share * 100,
        underlying0=Decimal(reserve0) * share,
        underlying1=Decimal(reserve1) * share,
    )


async def analyze_lp_for_wallet(ledger: PoolLedger, wallet: str) -> LPAnalysis:
    """
    Read a wallet's LP balance and the pool state, then analyze the position.

    Both reads are independent and run concurrently.

    Raises:
        InvalidInput: If wallet is empty
        TransportError: If either ledger read fails
    """
    wallet = (wallet or "").strip()
    if not wallet:
        raise InvalidInput("Enter a valid wallet address", field="wallet", value=wallet)

    lp_balance, pool = await asyncio.gather(
        ledger.get_balance(wallet), ledger.get_reserves()
    )

    logger.debug(
        f"LP lookup {wallet}: balance={lp_balance} supply={pool.total_supply}"
    )
    return analyze_lp(lp_balance, pool.total_supply, pool.reserve0, pool.reserve1)
