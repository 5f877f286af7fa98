from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(value: Decimal) -> Decimal:
    """Round to whole cents (half-up)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def total(amounts: Iterable[Decimal]) -> Decimal:
    return quantize(sum(amounts, ZERO))


def to_str(value: Optional[Decimal]) -> Optional[str]:
    """Serialize an amount as a fixed 2-place string ("12.00")."""
    if value is None:
        return None
    return f"{quantize(Decimal(value)):.2f}"
