"""
Exception hierarchy for the swap risk dashboard.

Every failure kind maps to a different corrective action for the caller
(lower the trade size, raise the slippage tolerance, resubmit, check the
pool), so each one gets its own type instead of a generic error.
"""

from typing import Any, Dict, Optional


class SwapRiskError(Exception):
    """Base exception for all swap risk related errors."""

    kind = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(SwapRiskError):
    """Raised when there are configuration-related issues."""

    kind = "configuration_error"


class InvalidInput(SwapRiskError):
    """Raised for non-positive or non-finite amounts, bad directions or addresses."""

    kind = "invalid_input"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidSlippage(InvalidInput):
    """Raised when a slippage tolerance falls outside (0, 100]."""

    kind = "invalid_slippage"

    def __init__(
        self,
        message: str,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, field="max_slippage_pct", value=value, details=details)


class NoLiquidity(SwapRiskError):
    """Raised when one of the pool reserves is zero."""

    kind = "no_liquidity"

    def __init__(
        self,
        message: str,
        reserve_in: Optional[int] = None,
        reserve_out: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.reserve_in = reserve_in
        self.reserve_out = reserve_out


class ZeroOutput(SwapRiskError):
    """Raised when a quote rounds down to zero output (dust-sized input)."""

    kind = "zero_output"

    def __init__(
        self,
        message: str,
        amount_in: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.amount_in = amount_in


class ApprovalFailed(SwapRiskError):
    """Raised when the token approval was reverted or could not be confirmed."""

    kind = "approval_failed"

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash


class SwapRejected(SwapRiskError):
    """Raised when the ledger rejects a swap, e.g. because min_out was breached."""

    kind = "swap_rejected"

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        min_out: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash
        self.min_out = min_out


class TransportError(SwapRiskError):
    """Raised when a read or write to the external ledger fails."""

    kind = "transport_error"

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.cause = cause
