"""
Slippage-bounded minimum output for DEX swaps.

The swap instruction carries min_out, not the quoted amount_out: if the
reserves move between quoting and settlement and the pool would pay less
than min_out, the contract reverts instead of filling at a worse price.
"""

from decimal import Decimal
from typing import Any

from swap_risk.exceptions import InvalidInput, InvalidSlippage
from swap_risk.utils import BPS_DENOMINATOR, get_logger, percent_to_basis_points, to_decimal

from .types import SlippageBound

logger = get_logger(__name__)

DEFAULT_MAX_SLIPPAGE_PCT = Decimal("1.0")


def validate_slippage_pct(max_slippage_pct: Any) -> Decimal:
    """
    Validate a slippage tolerance in percent.

    Returns:
        The tolerance as a Decimal

    Raises:
        InvalidSlippage: If the value is not a finite number in (0, 100]
    """
    try:
        pct = to_decimal(max_slippage_pct, "max_slippage_pct")
    except InvalidInput as e:
        raise InvalidSlippage(str(e), value=max_slippage_pct) from e

    if pct <= 0 or pct > 100:
        raise InvalidSlippage(
            f"Slippage tolerance must be in (0, 100], got {max_slippage_pct}",
            value=max_slippage_pct,
        )
    return pct


def slippage_bound(amount_out: int, max_slippage_pct: Any) -> SlippageBound:
    """
    Derive the minimum acceptable output for a quoted swap.

    Formula:
        slippage_bps = round(max_slippage_pct * 100)
        min_out = floor(amount_out * (10000 - slippage_bps) / 10000)

    Args:
        amount_out: Quoted output in smallest units
        max_slippage_pct: Tolerance in percent, e.g. 1.0 for 1%

    Returns:
        SlippageBound with min_out <= amount_out

    Raises:
        InvalidSlippage: If the tolerance is outside (0, 100]
        InvalidInput: If amount_out is negative or not an int

    Example:
        >>> slippage_bound(97, 1.0).min_out
        96
    """
    if isinstance(amount_out, bool) or not isinstance(amount_out, int):
        raise InvalidInput(
            f"amount_out must be an int, got {amount_out!r}", field="amount_out", value=amount_out
        )
    if amount_out < 0:
        raise InvalidInput(
            f"amount_out must be non-negative: {amount_out}", field="amount_out", value=amount_out
        )

    pct = validate_slippage_pct(max_slippage_pct)

    slippage_bps = percent_to_basis_points(pct)
    min_out = amount_out * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR

    logger.debug(
        f"Slippage bound: amount_out={amount_out} tolerance={pct}% "
        f"({slippage_bps} bps) -> min_out={min_out}"
    )

    return SlippageBound(
        amount_out=amount_out,
        max_slippage_pct=pct,
        slippage_bps=slippage_bps,
        min_out=min_out,
    )


def min_output(amount_out: int, max_slippage_pct: Any) -> int:
    """Minimum acceptable output; see slippage_bound."""
    return slippage_bound(amount_out, max_slippage_pct).min_out
