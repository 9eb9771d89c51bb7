"""Tests for impermanent loss estimation."""

from decimal import Decimal

import pytest

from dex.impermanent_loss import (
    impermanent_loss,
    impermanent_loss_curve,
    impermanent_loss_scenario,
)
from swap_risk.exceptions import InvalidInput


class TestImpermanentLoss:
    def test_no_price_change(self):
        assert impermanent_loss(0) == 0

    def test_fifty_percent_rise(self):
        assert round(impermanent_loss(50), 4) == Decimal("-2.0204")

    def test_double_and_half_are_symmetric(self):
        """p and 1/p lose the same fraction of value."""
        assert round(impermanent_loss(100), 6) == round(impermanent_loss(-50), 6)
        assert round(impermanent_loss(-50), 4) == Decimal("-5.7191")

    @pytest.mark.parametrize("pct", [-99, -50, -10, 1, 25, 300, 10000])
    def test_never_positive(self, pct):
        assert impermanent_loss(pct) <= 0

    @pytest.mark.parametrize("pct", [-100, -150])
    def test_no_price_ratio_gives_zero(self, pct):
        scenario = impermanent_loss_scenario(pct)
        assert scenario.il_pct == 0
        assert scenario.lp_value == 0

    def test_scenario_fields(self):
        scenario = impermanent_loss_scenario("50")
        assert scenario.relative_price == Decimal("1.5")
        assert scenario.hodl_value == Decimal("1.25")
        assert round(scenario.lp_value, 6) == Decimal("1.224745")

    def test_rejects_non_numeric(self):
        with pytest.raises(InvalidInput):
            impermanent_loss("lots")


class TestImpermanentLossCurve:
    def test_default_range(self):
        curve = impermanent_loss_curve()
        assert [pct for pct, _ in curve] == list(range(-50, 201, 25))
        assert dict(curve)[0] == 0

    @pytest.mark.parametrize("step", [0, -25])
    def test_invalid_step(self, step):
        with pytest.raises(InvalidInput) as exc_info:
            impermanent_loss_curve(step=step)
        assert exc_info.value.field == "step"
