"""
Price impact measurement for constant-product swaps.

Compares the pre-trade spot price with the execution price a trade would
get, and buckets the result into a risk tier for the dashboard's "Swap
Safety" label.
"""

from decimal import Decimal
from typing import List, Tuple, Union

from swap_risk.utils import get_logger

from .adapters.v2 import DEFAULT_FEES, estimate_amount_out, spot_price
from .types import FeeSchedule, PriceImpactAnalysis, RiskTier, RiskTierThresholds

logger = get_logger(__name__)

DEFAULT_THRESHOLDS = RiskTierThresholds()

Number = Union[int, Decimal]


def price_impact(
    reserve_in: Number,
    reserve_out: Number,
    amount_in: Number,
    fees: FeeSchedule = DEFAULT_FEES,
) -> Decimal:
    """
    Calculate price impact of a swap in percent.

    Formula:
        spot = reserve_out / reserve_in
        execution = amount_out / amount_in
        impact = (execution - spot) / spot * 100

    The result is negative for any positive trade: fee and curvature both
    make the execution price worse than spot. The sign is kept as is.

    Args:
        reserve_in: Reserve of input token
        reserve_out: Reserve of output token
        amount_in: Hypothetical trade size
        fees: Fee schedule

    Returns:
        Impact in percent; 0 when any input is non-positive

    Example:
        >>> round(price_impact(1000, 1000, 100), 2)
        Decimal('-9.34')
    """
    amount_in = Decimal(amount_in)
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return Decimal(0)

    spot = spot_price(reserve_in, reserve_out)
    execution = estimate_amount_out(reserve_in, reserve_out, amount_in, fees) / amount_in

    return (execution - spot) / spot * 100


def classify_impact(
    impact_pct: Decimal, thresholds: RiskTierThresholds = DEFAULT_THRESHOLDS
) -> RiskTier:
    """Bucket the absolute impact into a risk tier."""
    magnitude = abs(Decimal(impact_pct))
    if magnitude < thresholds.excellent:
        return RiskTier.EXCELLENT
    if magnitude < thresholds.good:
        return RiskTier.GOOD
    if magnitude < thresholds.caution:
        return RiskTier.CAUTION
    return RiskTier.HIGH_RISK


def analyze_price_impact(
    reserve_in: Number,
    reserve_out: Number,
    amount_in: Number,
    fees: FeeSchedule = DEFAULT_FEES,
    thresholds: RiskTierThresholds = DEFAULT_THRESHOLDS,
) -> PriceImpactAnalysis:
    """Spot price, execution price, impact and tier for one trade size."""
    amount_in = Decimal(amount_in)
    spot = spot_price(reserve_in, reserve_out)
    if amount_in > 0:
        execution = estimate_amount_out(reserve_in, reserve_out, amount_in, fees) / amount_in
    else:
        execution = Decimal(0)
    impact = price_impact(reserve_in, reserve_out, amount_in, fees)

    return PriceImpactAnalysis(
        amount_in=amount_in,
        spot_price=spot,
        execution_price=execution,
        impact_pct=impact,
        tier=classify_impact(impact, thresholds),
    )


def price_impact_curve(
    reserve_in: Number,
    reserve_out: Number,
    max_fraction: Decimal = Decimal("0.3"),
    steps: int = 10,
    fees: FeeSchedule = DEFAULT_FEES,
) -> List[Tuple[Decimal, Decimal]]:
    """
    Price impact versus trade size, for the dashboard chart.

    Trade sizes are evenly spaced up to max_fraction of the input reserve.

    Returns:
        List of (trade_size, impact_pct); empty for an empty pool
    """
    if reserve_in <= 0 or reserve_out <= 0 or steps <= 0:
        return []

    max_trade = Decimal(reserve_in) * Decimal(max_fraction)
    points = []
    for i in range(1, steps + 1):
        size = max_trade * i / steps
        points.append((size, price_impact(reserve_in, reserve_out, size, fees)))

    logger.debug(f"Built price impact curve with {len(points)} points up to {max_trade}")
    return points
