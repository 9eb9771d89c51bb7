"""
Core data types for FinePool quoting and risk analysis.

All amounts that can gate a transfer are plain ints in the token's smallest
unit. Display-only ratios (prices, percentages, LP shares) are Decimals.
Every type is frozen: derived values are recomputed from a fresh snapshot,
never patched in place.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Tuple

from swap_risk.exceptions import ConfigurationError, InvalidInput


class SwapDirection(str, Enum):
    """Which pool token is sold. Values match the dashboard's wire format."""

    ZERO_TO_ONE = "0to1"
    ONE_TO_ZERO = "1to0"

    @classmethod
    def parse(cls, value: Any) -> "SwapDirection":
        """
        Parse a direction from its wire value or enum member.

        Raises:
            InvalidInput: If value is not one of the two directions
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError as e:
            raise InvalidInput(
                f"Invalid swap direction: {value!r} (expected '0to1' or '1to0')",
                field="direction",
                value=value,
            ) from e

    @property
    def token_in_index(self) -> int:
        return 0 if self is SwapDirection.ZERO_TO_ONE else 1

    @property
    def token_out_index(self) -> int:
        return 1 - self.token_in_index


class RiskTier(str, Enum):
    """Discrete swap safety label derived from absolute price impact."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    CAUTION = "Caution"
    HIGH_RISK = "High Risk"


@dataclass(frozen=True)
class FeeSchedule:
    """
    Proportional swap fee as a ratio.

    The default 997/1000 keeps 99.7% of the input, i.e. a 0.3% fee.
    """

    numerator: int = 997
    denominator: int = 1000

    def __post_init__(self):
        if self.denominator <= 0 or self.numerator <= 0:
            raise ConfigurationError(
                f"Fee ratio must be positive: {self.numerator}/{self.denominator}"
            )
        if self.numerator > self.denominator:
            raise ConfigurationError(
                f"Fee numerator {self.numerator} exceeds denominator {self.denominator}"
            )

    @property
    def fee_pct(self) -> Decimal:
        return (Decimal(1) - Decimal(self.numerator) / Decimal(self.denominator)) * 100


@dataclass(frozen=True)
class RiskTierThresholds:
    """Upper bounds (exclusive, in percent) for each risk tier."""

    excellent: Decimal = Decimal("1")
    good: Decimal = Decimal("3")
    caution: Decimal = Decimal("10")

    def __post_init__(self):
        if not (0 < self.excellent < self.good < self.caution):
            raise ConfigurationError(
                "Risk tier thresholds must be strictly increasing and positive: "
                f"{self.excellent}, {self.good}, {self.caution}"
            )


@dataclass(frozen=True)
class Reserves:
    """
    Token reserves from a single on-chain snapshot.

    Attributes:
        reserve0: Reserve of token0 in smallest units
        reserve1: Reserve of token1 in smallest units
    """

    reserve0: int
    reserve1: int

    def __post_init__(self):
        for name in ("reserve0", "reserve1"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInput(f"{name} must be an int, got {value!r}", field=name, value=value)
            if value < 0:
                raise InvalidInput(f"{name} must be non-negative: {value}", field=name, value=value)

    def ordered(self, direction: SwapDirection) -> Tuple[int, int]:
        """Return (reserve_in, reserve_out) for a swap direction."""
        if direction is SwapDirection.ZERO_TO_ONE:
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0

    @property
    def has_liquidity(self) -> bool:
        return self.reserve0 > 0 and self.reserve1 > 0


@dataclass(frozen=True)
class PoolState:
    """
    Reserves plus LP share supply.

    Attributes:
        reserves: Snapshot reserves
        total_supply: Outstanding liquidity shares
    """

    reserves: Reserves
    total_supply: int

    def __post_init__(self):
        if isinstance(self.total_supply, bool) or not isinstance(self.total_supply, int):
            raise InvalidInput(
                f"total_supply must be an int, got {self.total_supply!r}",
                field="total_supply",
                value=self.total_supply,
            )
        if self.total_supply < 0:
            raise InvalidInput(
                f"total_supply must be non-negative: {self.total_supply}",
                field="total_supply",
                value=self.total_supply,
            )

    @classmethod
    def from_raw(cls, reserve0: int, reserve1: int, total_supply: int) -> "PoolState":
        return cls(Reserves(int(reserve0), int(reserve1)), int(total_supply))

    @property
    def reserve0(self) -> int:
        return self.reserves.reserve0

    @property
    def reserve1(self) -> int:
        return self.reserves.reserve1

    @property
    def k(self) -> int:
        """Constant-product invariant. Informational only."""
        return self.reserves.reserve0 * self.reserves.reserve1


@dataclass(frozen=True)
class SwapQuote:
    """
    Quote for a single exact-input swap.

    Attributes:
        direction: Swap direction the quote was computed for
        amount_in: Input amount in smallest units
        amount_in_with_fee: Input remaining after the fee, floored
        amount_out: Output amount in smallest units, floored
        reserve_in: Input-side reserve the quote was computed against
        reserve_out: Output-side reserve the quote was computed against
        spot_price: reserve_out / reserve_in before the trade
        execution_price: amount_out / amount_in
    """

    direction: SwapDirection
    amount_in: int
    amount_in_with_fee: int
    amount_out: int
    reserve_in: int
    reserve_out: int
    spot_price: Decimal
    execution_price: Decimal


@dataclass(frozen=True)
class SlippageBound:
    """
    Minimum acceptable output derived from a quote and a tolerance.

    Attributes:
        amount_out: Quoted output the bound was derived from
        max_slippage_pct: Caller tolerance in percent, (0, 100]
        slippage_bps: Tolerance rounded to whole basis points
        min_out: Floor of amount_out * (10000 - bps) / 10000
    """

    amount_out: int
    max_slippage_pct: Decimal
    slippage_bps: int
    min_out: int


@dataclass(frozen=True)
class PriceImpactAnalysis:
    """Spot vs execution price comparison for a hypothetical trade."""

    amount_in: Decimal
    spot_price: Decimal
    execution_price: Decimal
    impact_pct: Decimal
    tier: RiskTier


@dataclass(frozen=True)
class LPAnalysis:
    """
    Proportional claim of an LP share balance on the pool reserves.

    All fields are zero when the wallet holds no shares or the pool has no
    supply.
    """

    lp_balance: int
    pool_share_pct: Decimal
    underlying0: Decimal
    underlying1: Decimal

    @classmethod
    def empty(cls) -> "LPAnalysis":
        return cls(
            lp_balance=0,
            pool_share_pct=Decimal(0),
            underlying0=Decimal(0),
            underlying1=Decimal(0),
        )


@dataclass(frozen=True)
class ImpermanentLossScenario:
    """
    What-if impermanent loss for a relative price move of token0 vs token1.

    Attributes:
        price_change_pct: Signed price change in percent
        relative_price: p = 1 + price_change_pct / 100
        hodl_value: (p + 1) / 2
        lp_value: sqrt(p)
        il_pct: (lp_value / hodl_value - 1) * 100
    """

    price_change_pct: Decimal
    relative_price: Decimal
    hodl_value: Decimal
    lp_value: Decimal
    il_pct: Decimal
