"""
Approve-then-swap orchestration for a single FinePool swap attempt.

One SwapOrchestrator drives one attempt through an explicit state machine:

    IDLE -> ALLOWANCE_CHECKED -> QUOTED -> BOUNDED -> SUBMITTED -> CONFIRMED
                                                                 \\-> FAILED

Each transition is its own coroutine so it can be exercised in isolation;
run() chains them. Nothing is retried: a failure moves the attempt to
FAILED with a typed error and a human-readable reason, and the caller
decides whether to start a new attempt with fresh parameters.
"""

import time
from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal
from enum import Enum
from typing import Any, List, Optional

from swap_risk.exceptions import (
    ApprovalFailed,
    ConfigurationError,
    InvalidInput,
    NoLiquidity,
    SwapRejected,
    SwapRiskError,
    TransportError,
    ZeroOutput,
)
from swap_risk.metrics import SwapMetrics, get_metrics
from swap_risk.utils import get_logger, to_decimal

from .adapters.v2 import DEFAULT_FEES, quote_swap
from .ledger import PendingTx, PoolLedger
from .price_impact import price_impact
from .slippage import DEFAULT_MAX_SLIPPAGE_PCT, slippage_bound, validate_slippage_pct
from .types import FeeSchedule, SlippageBound, SwapDirection, SwapQuote

logger = get_logger(__name__)


class SwapState(str, Enum):
    """Lifecycle of one swap attempt."""

    IDLE = "idle"
    ALLOWANCE_CHECKED = "allowance_checked"
    QUOTED = "quoted"
    BOUNDED = "bounded"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SwapState.CONFIRMED, SwapState.FAILED)


class FailureReason(str, Enum):
    """Why an attempt ended in FAILED."""

    INVALID_INPUT = "invalid input"
    APPROVAL_FAILED = "approval failed"
    NO_LIQUIDITY = "no liquidity"
    ZERO_OUTPUT = "zero output"
    SLIPPAGE_REJECTED = "slippage rejected by ledger"
    TRANSPORT_ERROR = "transport error"


# Checked in order; InvalidSlippage is an InvalidInput
_FAILURE_REASONS = (
    (InvalidInput, FailureReason.INVALID_INPUT),
    (ApprovalFailed, FailureReason.APPROVAL_FAILED),
    (NoLiquidity, FailureReason.NO_LIQUIDITY),
    (ZeroOutput, FailureReason.ZERO_OUTPUT),
    (SwapRejected, FailureReason.SLIPPAGE_REJECTED),
    (TransportError, FailureReason.TRANSPORT_ERROR),
)


def failure_reason_for(error: SwapRiskError) -> FailureReason:
    for error_type, reason in _FAILURE_REASONS:
        if isinstance(error, error_type):
            return reason
    return FailureReason.INVALID_INPUT


def normalize_amount_in(amount_in: Any) -> int:
    """
    Coerce a caller-supplied input amount to whole smallest units.

    Non-integral amounts are floored rather than rejected, matching the
    dashboard's historical behavior; the floor is logged so it is visible.

    Raises:
        InvalidInput: If the amount is non-numeric, non-finite, or floors to
            zero or below
    """
    amount = to_decimal(amount_in, "amount_in")
    if amount <= 0:
        raise InvalidInput(
            f"Amount must be greater than zero: {amount_in}", field="amount_in", value=amount_in
        )

    whole = int(amount.to_integral_value(rounding=ROUND_FLOOR))
    if whole != amount:
        # TODO: decide whether fractional smallest-unit amounts should be rejected outright
        logger.warning(f"Flooring non-integral amount_in {amount} to {whole}")
    if whole <= 0:
        raise InvalidInput(
            f"Amount {amount_in} is below one whole unit", field="amount_in", value=amount_in
        )
    return whole


@dataclass
class SwapAttempt:
    """
    Record of one swap attempt, updated as the orchestrator advances.

    Attributes:
        owner: Wallet that sells the input token
        direction: Parsed swap direction (None until validated)
        amount_in: Whole-unit input amount (None until validated)
        max_slippage_pct: Caller tolerance in percent
        state: Current state
        history: Every state visited, in order
        quote: Quote from the fresh reserve read
        price_impact_pct: Display impact of the quoted trade
        bound: Slippage bound derived from the quote
        approval_tx_hash: Hash of the approval, if one was needed
        tx_hash: Hash of the swap transaction
        reason: Failure reason when state is FAILED
        error: Typed error when state is FAILED
        started_at: Unix timestamp the attempt was created
        finished_at: Unix timestamp the attempt reached a terminal state
    """

    owner: str
    direction: Optional[SwapDirection] = None
    amount_in: Optional[int] = None
    max_slippage_pct: Any = DEFAULT_MAX_SLIPPAGE_PCT
    state: SwapState = SwapState.IDLE
    history: List[SwapState] = field(default_factory=lambda: [SwapState.IDLE])
    quote: Optional[SwapQuote] = None
    price_impact_pct: Optional[Decimal] = None
    bound: Optional[SlippageBound] = None
    approval_tx_hash: Optional[str] = None
    tx_hash: Optional[str] = None
    reason: Optional[FailureReason] = None
    error: Optional[SwapRiskError] = None
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    @property
    def confirmed(self) -> bool:
        return self.state is SwapState.CONFIRMED

    @property
    def failed(self) -> bool:
        return self.state is SwapState.FAILED

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def elapsed_ms(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at) * 1000


class SwapOrchestrator:
    """
    Drives one approve-then-swap attempt against a PoolLedger.

    Usage:
        orchestrator = SwapOrchestrator(ledger, owner, "0to1", 10**18, 1.0)
        attempt = await orchestrator.run()
        if attempt.confirmed:
            print(attempt.tx_hash)
    """

    def __init__(
        self,
        ledger: PoolLedger,
        owner: str,
        direction: Any,
        amount_in: Any,
        max_slippage_pct: Any = DEFAULT_MAX_SLIPPAGE_PCT,
        fees: FeeSchedule = DEFAULT_FEES,
        metrics: Optional[SwapMetrics] = None,
    ):
        self.ledger = ledger
        self.fees = fees
        self.metrics = metrics or get_metrics()

        self._raw_direction = direction
        self._raw_amount_in = amount_in
        self._pending_swap: Optional[PendingTx] = None

        self.attempt = SwapAttempt(owner=owner, max_slippage_pct=max_slippage_pct)

    @property
    def state(self) -> SwapState:
        return self.attempt.state

    def _direction_label(self) -> str:
        direction = self.attempt.direction
        return direction.value if direction else "unknown"

    def _require(self, expected: SwapState, step: str) -> None:
        if self.attempt.state is not expected:
            raise InvalidInput(
                f"invalid transition: {step} requires state '{expected.value}', "
                f"attempt is '{self.attempt.state.value}'",
                field="state",
                value=self.attempt.state.value,
            )

    def _transition(self, state: SwapState) -> None:
        logger.info(f"Swap {self._direction_label()}: {self.attempt.state.value} -> {state.value}")
        self.attempt.state = state
        self.attempt.history.append(state)
        self.metrics.record_transition(state.value)

        if state.is_terminal:
            self.attempt.finished_at = time.time()
            outcome = "confirmed" if state is SwapState.CONFIRMED else self.attempt.reason.value
            self.metrics.record_swap_finished(self._direction_label(), outcome)

    def _fail(self, error: SwapRiskError) -> None:
        reason = failure_reason_for(error)
        self.attempt.reason = reason
        self.attempt.error = error
        if isinstance(error, TransportError):
            self.metrics.record_transport_error(error.endpoint or "unknown")
            logger.error(f"Swap failed ({reason.value}): {error}")
        else:
            logger.warning(f"Swap failed ({reason.value}): {error}")
        self._transition(SwapState.FAILED)

    def _validate(self) -> None:
        attempt = self.attempt
        attempt.direction = SwapDirection.parse(self._raw_direction)
        attempt.amount_in = normalize_amount_in(self._raw_amount_in)
        attempt.max_slippage_pct = validate_slippage_pct(attempt.max_slippage_pct)
        if not attempt.owner or not str(attempt.owner).strip():
            raise InvalidInput("Owner address is required", field="owner", value=attempt.owner)

        # Allowance is read for owner but the ledger signs as its own account
        signer = self.ledger.signer
        if not signer:
            raise ConfigurationError("Ledger has no signer; cannot approve or swap")
        if str(attempt.owner).lower() != str(signer).lower():
            raise InvalidInput(
                f"Owner {attempt.owner} is not the ledger signer {signer}",
                field="owner",
                value=attempt.owner,
            )

    async def check_allowance(self) -> SwapState:
        """
        IDLE -> ALLOWANCE_CHECKED.

        Validates the request, then approves the pool to spend the input
        token if the current allowance is short. Suspends until the approval
        settles: the swap would be rejected without it.
        """
        self._require(SwapState.IDLE, "check_allowance")
        try:
            self._validate()
        except SwapRiskError as e:
            self._fail(e)
            return self.state

        attempt = self.attempt
        self.metrics.record_swap_started(attempt.direction.value)

        try:
            token = self.ledger.token_address(attempt.direction.token_in_index)
            spender = self.ledger.pool_address
            allowance = await self.ledger.get_allowance(token, attempt.owner, spender)

            if allowance < attempt.amount_in:
                logger.info(
                    f"Allowance {allowance} < {attempt.amount_in}, approving {spender} on {token}"
                )
                self.metrics.record_approval_submitted()
                await self._approve(token, spender, attempt.amount_in)
        except SwapRiskError as e:
            self._fail(e)
            return self.state

        self._transition(SwapState.ALLOWANCE_CHECKED)
        return self.state

    async def _approve(self, token: str, spender: str, amount: int) -> None:
        try:
            pending = await self.ledger.submit_approval(token, spender, amount)
            self.attempt.approval_tx_hash = pending.tx_hash
            receipt = await pending.wait()
        except TransportError as e:
            raise ApprovalFailed(
                f"Approval failed: {e}",
                tx_hash=self.attempt.approval_tx_hash,
                details={"cause": str(e)},
            ) from e

        if not receipt.succeeded:
            raise ApprovalFailed(
                f"Approval transaction {receipt.tx_hash} reverted"
                + (f": {receipt.revert_reason}" if receipt.revert_reason else ""),
                tx_hash=receipt.tx_hash,
            )

    async def quote(self) -> SwapState:
        """
        ALLOWANCE_CHECKED -> QUOTED.

        Reads reserves fresh; a snapshot shown earlier in the UI may be
        stale by now.
        """
        self._require(SwapState.ALLOWANCE_CHECKED, "quote")
        attempt = self.attempt
        try:
            pool = await self.ledger.get_reserves()
            reserve_in, reserve_out = pool.reserves.ordered(attempt.direction)
            if not pool.reserves.has_liquidity:
                raise NoLiquidity(
                    f"Pool has no liquidity (reserve_in={reserve_in}, reserve_out={reserve_out})",
                    reserve_in=reserve_in,
                    reserve_out=reserve_out,
                )

            quote = quote_swap(pool.reserves, attempt.direction, attempt.amount_in, self.fees)
            if quote.amount_out <= 0:
                raise ZeroOutput(
                    f"Amount out is zero for amount_in={attempt.amount_in}; "
                    "check reserves and amount",
                    amount_in=attempt.amount_in,
                )
        except SwapRiskError as e:
            self._fail(e)
            return self.state

        attempt.quote = quote
        attempt.price_impact_pct = price_impact(
            reserve_in, reserve_out, attempt.amount_in, self.fees
        )
        self.metrics.record_quote("orchestrator", attempt.direction.value, attempt.price_impact_pct)
        logger.info(
            f"Quoted {attempt.amount_in} -> {quote.amount_out} "
            f"(impact {float(attempt.price_impact_pct):.4f}%)"
        )
        self._transition(SwapState.QUOTED)
        return self.state

    async def bound(self) -> SwapState:
        """QUOTED -> BOUNDED: derive min_out from the fresh quote."""
        self._require(SwapState.QUOTED, "bound")
        try:
            self.attempt.bound = slippage_bound(
                self.attempt.quote.amount_out, self.attempt.max_slippage_pct
            )
        except SwapRiskError as e:
            self._fail(e)
            return self.state

        self._transition(SwapState.BOUNDED)
        return self.state

    async def submit(self) -> SwapState:
        """BOUNDED -> SUBMITTED: issue the direction's swap with min_out."""
        self._require(SwapState.BOUNDED, "submit")
        attempt = self.attempt
        try:
            self._pending_swap = await self.ledger.submit_swap(
                attempt.direction, attempt.amount_in, attempt.bound.min_out
            )
        except SwapRiskError as e:
            self._fail(e)
            return self.state

        attempt.tx_hash = self._pending_swap.tx_hash
        logger.info(f"Submitted swap {attempt.tx_hash} (min_out={attempt.bound.min_out})")
        self._transition(SwapState.SUBMITTED)
        return self.state

    async def confirm(self) -> SwapState:
        """
        SUBMITTED -> CONFIRMED | FAILED.

        A reverted swap means the pool would have paid less than min_out.
        """
        self._require(SwapState.SUBMITTED, "confirm")
        attempt = self.attempt
        try:
            receipt = await self._pending_swap.wait()
            if not receipt.succeeded:
                raise SwapRejected(
                    f"Swap {receipt.tx_hash} rejected by ledger"
                    + (f": {receipt.revert_reason}" if receipt.revert_reason else ""),
                    tx_hash=receipt.tx_hash,
                    min_out=attempt.bound.min_out,
                )
        except SwapRiskError as e:
            self._fail(e)
            return self.state

        attempt.tx_hash = receipt.tx_hash
        self._transition(SwapState.CONFIRMED)
        return self.state

    async def run(self) -> SwapAttempt:
        """Advance through every transition until the attempt is terminal."""
        steps = (self.check_allowance, self.quote, self.bound, self.submit, self.confirm)
        for step in steps:
            if self.attempt.is_terminal:
                break
            await step()
        return self.attempt


async def execute_swap(
    ledger: PoolLedger,
    owner: str,
    direction: Any,
    amount_in: Any,
    max_slippage_pct: Any = DEFAULT_MAX_SLIPPAGE_PCT,
    fees: FeeSchedule = DEFAULT_FEES,
    metrics: Optional[SwapMetrics] = None,
) -> SwapAttempt:
    """Run one full swap attempt and return its record."""
    orchestrator = SwapOrchestrator(
        ledger, owner, direction, amount_in, max_slippage_pct, fees, metrics
    )
    return await orchestrator.run()
