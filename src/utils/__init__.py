"""
Shared utility functions.

Includes:
- Logging setup
- Decimal helpers
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

# Re-export logging utilities for convenience
from src.utils.logging import setup_logging, get_logger, LogContext


# =============================================================================
# Decimal Helpers
# =============================================================================

def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a number or numeric string to Decimal.

    Floats go through ``str`` so 1.95 becomes Decimal("1.95") rather than
    its binary expansion. Returns None for None or blank strings and
    raises ``ValueError`` for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value).strip()
    if not text:
        return None
    try:
        result = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def quantize_money(amount: Decimal, places: int = 2) -> Decimal:
    """Round an amount for display."""
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


__all__ = [
    "setup_logging",
    "get_logger",
    "LogContext",
    "to_decimal",
    "quantize_money",
]
