"""
Common utilities and helper functions for the swap risk dashboard.

This module provides centralized helpers for logging, numeric coercion,
token unit conversion and percentage formatting.
"""

import logging
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union

from swap_risk.exceptions import InvalidInput

BPS_DENOMINATOR = 10_000


# Numeric utilities
def to_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Coerce an int, float, str or Decimal into a finite Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.

    Raises:
        InvalidInput: If the value is not numeric or not finite
    """
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be numeric, got bool", field=field, value=value)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, (float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise InvalidInput(
                f"{field} is not a number: {value!r}", field=field, value=value
            ) from e
    else:
        raise InvalidInput(
            f"{field} must be numeric, got {type(value).__name__}",
            field=field,
            value=value,
        )

    if not result.is_finite():
        raise InvalidInput(f"{field} must be finite: {value!r}", field=field, value=value)
    return result


def percent_to_basis_points(percent: Decimal) -> int:
    """Convert a percentage to whole basis points (1% = 100 bps), rounding half-up."""
    return int((Decimal(percent) * 100).to_integral_value(rounding=ROUND_HALF_UP))


# Token unit utilities
def to_base_units(amount: Any, decimals: int) -> int:
    """
    Convert a human-readable token amount into the token's smallest unit.

    Digits beyond the token's precision are floored, never rounded up.

    Args:
        amount: Amount in whole tokens (e.g. "1.5")
        decimals: Token decimals (e.g. 18)

    Returns:
        Integer amount in smallest units

    Example:
        >>> to_base_units("1.5", 18)
        1500000000000000000
    """
    if decimals < 0:
        raise InvalidInput(f"decimals must be >= 0: {decimals}", field="decimals", value=decimals)
    scaled = to_decimal(amount, "amount") * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def from_base_units(amount: int, decimals: int) -> Decimal:
    """Convert an integer amount in smallest units to whole tokens."""
    return Decimal(amount) / (Decimal(10) ** decimals)


def format_pct(value: Decimal, places: int = 4) -> str:
    """Format a percentage with a sign prefix.

    Examples:
        >>> format_pct(Decimal("-2.0204"), 2)
        '-2.02%'
        >>> format_pct(Decimal("0"), 2)
        '+0.00%'
    """
    quantized = float(value)
    if quantized >= 0:
        return f"+{quantized:.{places}f}%"
    return f"{quantized:.{places}f}%"


# Logging utilities
def get_logger(
    name: str,
    level: Union[str, int] = logging.INFO,
    extra: Optional[Dict[str, Any]] = None,
    minimal: bool = False,
) -> logging.Logger:
    """
    Get a structured logger with consistent formatting and extra context.

    Args:
        name: Logger name (typically __name__)
        level: Logging level
        extra: Additional context fields to include in all log messages
        minimal: If True, use simplified format (time + message only)

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()

        if minimal:
            format_str = "%(asctime)s | %(message)s"
        else:
            format_str = (
                "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | " "%(message)s"
            )

        if extra:
            extra_fields = " | ".join([f"{k}=%(extra_{k})s" for k in extra.keys()])
            format_str = format_str.replace(
                " | %(message)s", f" | {extra_fields} | %(message)s"
            )

        formatter = logging.Formatter(format_str, datefmt="%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if extra:
            logger = logging.LoggerAdapter(
                logger, {"extra_" + k: v for k, v in extra.items()}
            )

    return logger
