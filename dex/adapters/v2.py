"""
Uniswap V2 style quoting for constant-product pools.

Implements the x*y=k swap formula with the fee taken from the input, in two
flavors:

- get_amount_out: integer math, floored at both steps, bit-for-bit what the
  pool contract pays out. Use for anything that becomes a transaction.
- estimate_amount_out: Decimal math without flooring, for display of
  fractional human-unit amounts.
"""

from decimal import Decimal
from typing import Union

from swap_risk.exceptions import InvalidInput

from ..types import FeeSchedule, Reserves, SwapDirection, SwapQuote

DEFAULT_FEES = FeeSchedule()

Number = Union[int, Decimal]


def amount_in_with_fee(
    amount_in: int, fee_numerator: int = 997, fee_denominator: int = 1000
) -> int:
    """Input left after the proportional fee, floored."""
    return amount_in * fee_numerator // fee_denominator


def get_amount_out(
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_numerator: int = 997,
    fee_denominator: int = 1000,
) -> int:
    """
    Calculate output amount for a V2 swap using integer math.

    Formula:
        amountInWithFee = floor(amountIn * feeNumerator / feeDenominator)
        amountOut = floor(amountInWithFee * reserveOut / (reserveIn + amountInWithFee))

    Args:
        reserve_in: Reserve of input token
        reserve_out: Reserve of output token
        amount_in: Input token amount (smallest units)
        fee_numerator: Share of the input kept after the fee
        fee_denominator: Fee ratio denominator

    Returns:
        Output amount in smallest units; 0 when there is nothing to trade
        against (a non-positive reserve or input)

    Example:
        >>> get_amount_out(101131, 99493, 100)
        97
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0

    with_fee = amount_in_with_fee(amount_in, fee_numerator, fee_denominator)
    numerator = with_fee * reserve_out
    denominator = reserve_in + with_fee

    return numerator // denominator


def estimate_amount_out(
    reserve_in: Number,
    reserve_out: Number,
    amount_in: Number,
    fees: FeeSchedule = DEFAULT_FEES,
) -> Decimal:
    """
    Display estimate of the swap output, without integer flooring.

    Same constant-product formula as get_amount_out, evaluated in Decimal so
    fractional amounts typed into the dashboard give a smooth estimate.
    """
    amount_in = Decimal(amount_in)
    reserve_in = Decimal(reserve_in)
    reserve_out = Decimal(reserve_out)

    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return Decimal(0)

    with_fee = amount_in * fees.numerator / fees.denominator
    return (with_fee * reserve_out) / (reserve_in + with_fee)


def spot_price(reserve_in: Number, reserve_out: Number) -> Decimal:
    """Pre-trade marginal price (output per input); 0 for an empty pool."""
    if reserve_in <= 0 or reserve_out <= 0:
        return Decimal(0)
    return Decimal(reserve_out) / Decimal(reserve_in)


def quote_swap(
    reserves: Reserves,
    direction: SwapDirection,
    amount_in: int,
    fees: FeeSchedule = DEFAULT_FEES,
) -> SwapQuote:
    """
    Quote an exact-input swap against a reserve snapshot.

    Args:
        reserves: Pool reserves from one snapshot
        direction: Which token is sold
        amount_in: Input amount in smallest units
        fees: Fee schedule

    Returns:
        SwapQuote with floored integer output and Decimal prices

    Raises:
        InvalidInput: If amount_in is not a positive int
    """
    if isinstance(amount_in, bool) or not isinstance(amount_in, int):
        raise InvalidInput(
            f"amount_in must be an int in smallest units, got {amount_in!r}",
            field="amount_in",
            value=amount_in,
        )
    if amount_in <= 0:
        raise InvalidInput(f"amount_in must be positive: {amount_in}", field="amount_in", value=amount_in)

    reserve_in, reserve_out = reserves.ordered(direction)
    amount_out = get_amount_out(
        reserve_in, reserve_out, amount_in, fees.numerator, fees.denominator
    )

    return SwapQuote(
        direction=direction,
        amount_in=amount_in,
        amount_in_with_fee=amount_in_with_fee(amount_in, fees.numerator, fees.denominator),
        amount_out=amount_out,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        spot_price=spot_price(reserve_in, reserve_out),
        execution_price=Decimal(amount_out) / Decimal(amount_in),
    )
