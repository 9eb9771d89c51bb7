"""Tests for price impact measurement and risk tiers."""

from decimal import Decimal

import pytest

from dex.price_impact import (
    analyze_price_impact,
    classify_impact,
    price_impact,
    price_impact_curve,
)
from dex.types import FeeSchedule, RiskTier, RiskTierThresholds


class TestPriceImpact:
    def test_equal_reserves(self):
        assert round(price_impact(1000, 1000, 100), 2) == Decimal("-9.34")

    def test_small_trade_is_mostly_fee(self):
        impact = price_impact(101131, 99493, 100)
        assert Decimal("-0.5") < impact < Decimal("-0.3")

    def test_never_positive(self):
        for amount in (1, 10, 1000, 10**6, Decimal("0.001")):
            assert price_impact(101131, 99493, amount) <= 0

    def test_grows_with_size(self):
        impacts = [price_impact(101131, 99493, a) for a in (10, 100, 1000, 10000)]
        assert impacts == sorted(impacts, reverse=True)

    @pytest.mark.parametrize(
        "reserve_in,reserve_out,amount_in",
        [(0, 1000, 100), (1000, 0, 100), (1000, 1000, 0)],
    )
    def test_degenerate_inputs_give_zero(self, reserve_in, reserve_out, amount_in):
        assert price_impact(reserve_in, reserve_out, amount_in) == 0

    def test_no_fee_pool(self):
        # Pure curvature: 100 into 1000/1000 -> 90.909..., impact -9.09%
        impact = price_impact(1000, 1000, 100, FeeSchedule(1000, 1000))
        assert round(impact, 2) == Decimal("-9.09")


class TestRiskTiers:
    @pytest.mark.parametrize(
        "impact,tier",
        [
            (Decimal("-0.4"), RiskTier.EXCELLENT),
            (Decimal("-1"), RiskTier.GOOD),
            (Decimal("-2.99"), RiskTier.GOOD),
            (Decimal("-3"), RiskTier.CAUTION),
            (Decimal("-9.99"), RiskTier.CAUTION),
            (Decimal("-10"), RiskTier.HIGH_RISK),
            (Decimal("-45"), RiskTier.HIGH_RISK),
        ],
    )
    def test_default_tiers(self, impact, tier):
        assert classify_impact(impact) is tier

    def test_custom_thresholds(self):
        strict = RiskTierThresholds(Decimal("0.1"), Decimal("0.5"), Decimal("2"))
        assert classify_impact(Decimal("-0.4"), strict) is RiskTier.GOOD

    def test_analysis(self):
        analysis = analyze_price_impact(1000, 1000, 100)
        assert analysis.spot_price == 1
        assert analysis.execution_price < 1
        assert analysis.tier is RiskTier.CAUTION
        assert round(analysis.impact_pct, 2) == Decimal("-9.34")


class TestPriceImpactCurve:
    def test_ten_points_up_to_thirty_percent(self):
        curve = price_impact_curve(101131, 99493)
        assert len(curve) == 10
        sizes = [size for size, _ in curve]
        assert sizes[-1] == Decimal(101131) * Decimal("0.3")
        assert sizes == sorted(sizes)

    def test_curve_impacts_worsen(self):
        impacts = [impact for _, impact in price_impact_curve(101131, 99493)]
        assert all(i <= 0 for i in impacts)
        assert impacts == sorted(impacts, reverse=True)

    def test_empty_pool(self):
        assert price_impact_curve(0, 99493) == []

    def test_custom_steps(self):
        assert len(price_impact_curve(1000, 1000, Decimal("0.5"), steps=4)) == 4
