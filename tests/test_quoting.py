"""
Tests for constant-product quoting.

Tests cover:
- Integer output matches the pool contract exactly
- Fee accounting and flooring
- Monotonicity, strict cost bound and conservation of k
- Decimal display estimates and spot price
"""

from decimal import Decimal

import pytest

from dex.adapters.v2 import (
    DEFAULT_FEES,
    amount_in_with_fee,
    estimate_amount_out,
    get_amount_out,
    quote_swap,
    spot_price,
)
from dex.types import FeeSchedule, Reserves, SwapDirection
from swap_risk.exceptions import InvalidInput

DEMO = Reserves(101131, 99493)


class TestGetAmountOut:
    """Integer constant-product formula."""

    def test_dashboard_scenario(self):
        """101131 / 99493 reserves, 100 in: 99 after fee, 97 out."""
        assert amount_in_with_fee(100) == 99
        assert get_amount_out(101131, 99493, 100) == 97

    def test_equal_reserves(self):
        # with_fee = 99; out = 99 * 1000 // 1099 = 90
        assert get_amount_out(1000, 1000, 100) == 90

    def test_fee_floors_dust_to_zero(self):
        """1 unit in keeps 0 after the fee."""
        assert amount_in_with_fee(1) == 0
        assert get_amount_out(101131, 99493, 1) == 0

    @pytest.mark.parametrize(
        "reserve_in,reserve_out,amount_in",
        [(0, 1000, 100), (1000, 0, 100), (1000, 1000, 0), (1000, 1000, -5)],
    )
    def test_non_positive_inputs_give_zero(self, reserve_in, reserve_out, amount_in):
        assert get_amount_out(reserve_in, reserve_out, amount_in) == 0

    def test_custom_fee(self):
        # 1% fee: with_fee = 99 * 990 // 1000 = 98
        assert get_amount_out(1000, 1000, 99, 990, 1000) == 98 * 1000 // 1098

    def test_monotonic_in_amount(self):
        outputs = [get_amount_out(101131, 99493, a) for a in range(1, 5000, 37)]
        assert outputs == sorted(outputs)

    def test_strict_cost_bound(self):
        """Output never reaches the full reserve, however large the input."""
        for amount in (10, 10**6, 10**12, 10**30):
            assert get_amount_out(101131, 99493, amount) < 99493

    def test_k_never_decreases(self):
        for reserve_in, reserve_out, amount in [
            (101131, 99493, 100),
            (1000, 1000, 999),
            (10**18, 3 * 10**18, 12345678901234),
            (7, 11, 3),
        ]:
            out = get_amount_out(reserve_in, reserve_out, amount)
            assert (reserve_in + amount) * (reserve_out - out) >= reserve_in * reserve_out


class TestEstimates:
    def test_estimate_close_to_integer(self):
        estimate = estimate_amount_out(101131, 99493, 100)
        assert Decimal(97) <= estimate < Decimal(98)

    def test_estimate_is_not_floored(self):
        assert estimate_amount_out(1000, 1000, Decimal("0.5")) > 0

    def test_estimate_zero_for_empty_pool(self):
        assert estimate_amount_out(0, 1000, 100) == 0

    def test_spot_price(self):
        assert spot_price(1000, 2000) == Decimal(2)
        assert spot_price(0, 2000) == 0


class TestQuoteSwap:
    def test_quote_zero_to_one(self):
        quote = quote_swap(DEMO, SwapDirection.ZERO_TO_ONE, 100)
        assert quote.amount_out == 97
        assert quote.amount_in_with_fee == 99
        assert quote.reserve_in == 101131
        assert quote.reserve_out == 99493
        assert quote.execution_price == Decimal("0.97")

    def test_quote_one_to_zero_uses_swapped_reserves(self):
        quote = quote_swap(DEMO, SwapDirection.ONE_TO_ZERO, 100)
        assert quote.reserve_in == 99493
        assert quote.reserve_out == 101131
        assert quote.amount_out == get_amount_out(99493, 101131, 100)

    def test_quote_empty_pool_is_zero(self):
        quote = quote_swap(Reserves(0, 1000), SwapDirection.ZERO_TO_ONE, 100)
        assert quote.amount_out == 0
        assert quote.spot_price == 0

    def test_quote_uses_fee_schedule(self):
        no_fee = FeeSchedule(1000, 1000)
        assert quote_swap(DEMO, SwapDirection.ZERO_TO_ONE, 100, no_fee).amount_in_with_fee == 100
        assert DEFAULT_FEES.fee_pct == Decimal("0.3")

    @pytest.mark.parametrize("amount", [0, -1, 1.5, "100", True])
    def test_quote_rejects_bad_amounts(self, amount):
        with pytest.raises(InvalidInput):
            quote_swap(DEMO, SwapDirection.ZERO_TO_ONE, amount)
