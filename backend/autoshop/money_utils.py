from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce int/float/str/Decimal to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, float):
        return Decimal(repr(value))
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"not a number: {value!r}")


def quantize_money(value: Any) -> Decimal:
    """Round half-up to whole cents."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Optional[Decimal]) -> Optional[str]:
    """Fixed two-decimal wire format, e.g. Decimal('230') -> '230.00'."""
    if value is None:
        return None
    return f"{quantize_money(value):.2f}"


def format_currency(value: Decimal, symbol: str) -> str:
    return f"{symbol}{quantize_money(value):,.2f}"
