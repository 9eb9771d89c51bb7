"""
FinePool Swap Risk Dashboard.

Constant-product AMM quoting and risk analytics (price impact, impermanent
loss, LP share) plus a slippage-bounded approve-then-swap orchestrator for a
FinePool-style two-token pool.
"""

from swap_risk.version import __version__

PROJECT_NAME = "FinePool-Swap-Risk-Dashboard"
VERSION = __version__

from swap_risk.exceptions import (  # noqa: E402
    ApprovalFailed,
    ConfigurationError,
    InvalidInput,
    InvalidSlippage,
    NoLiquidity,
    SwapRejected,
    SwapRiskError,
    TransportError,
    ZeroOutput,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "SwapRiskError",
    "ConfigurationError",
    "InvalidInput",
    "InvalidSlippage",
    "NoLiquidity",
    "ZeroOutput",
    "ApprovalFailed",
    "SwapRejected",
    "TransportError",
]
