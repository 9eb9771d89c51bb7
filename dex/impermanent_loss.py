"""
Impermanent loss for a two-asset constant-product pool.

Closed form for a price move of token0 by factor p relative to token1, with
liquidity unchanged:

    hodl_value = (p + 1) / 2
    lp_value   = sqrt(p)
    IL         = (lp_value / hodl_value - 1) * 100

IL is zero at p = 1 and negative everywhere else.
"""

from decimal import Decimal
from typing import Any, List, Tuple

from swap_risk.exceptions import InvalidInput
from swap_risk.utils import to_decimal

from .types import ImpermanentLossScenario


def impermanent_loss_scenario(price_change_pct: Any) -> ImpermanentLossScenario:
    """
    Evaluate the IL formula for a signed price change in percent.

    A change of -100% or below has no meaningful price ratio; the scenario
    reports zero loss for it since this is a display-only what-if.

    Raises:
        InvalidInput: If price_change_pct is not a finite number
    """
    pct = to_decimal(price_change_pct, "price_change_pct")
    p = 1 + pct / 100

    if p <= 0:
        zero = Decimal(0)
        return ImpermanentLossScenario(
            price_change_pct=pct,
            relative_price=p,
            hodl_value=zero,
            lp_value=zero,
            il_pct=zero,
        )

    hodl_value = (p + 1) / 2
    lp_value = p.sqrt()
    il_pct = (lp_value / hodl_value - 1) * 100

    return ImpermanentLossScenario(
        price_change_pct=pct,
        relative_price=p,
        hodl_value=hodl_value,
        lp_value=lp_value,
        il_pct=il_pct,
    )


def impermanent_loss(price_change_pct: Any) -> Decimal:
    """
    Impermanent loss vs holding, in percent.

    Example:
        >>> round(impermanent_loss(50), 4)
        Decimal('-2.0204')
    """
    return impermanent_loss_scenario(price_change_pct).il_pct


def impermanent_loss_curve(
    start: int = -50, stop: int = 200, step: int = 25
) -> List[Tuple[int, Decimal]]:
    """IL for price changes from start to stop inclusive, for the dashboard chart."""
    if step <= 0:
        raise InvalidInput(f"step must be positive: {step}", field="step", value=step)
    return [(pct, impermanent_loss(pct)) for pct in range(start, stop + 1, step)]
