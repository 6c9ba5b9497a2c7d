from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

CENT = Decimal("0.01")


def quantize_money(value: Optional[Decimal]) -> Optional[Decimal]:
    """Round to cents, half-up. None passes through."""
    if value is None:
        return None
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value) -> Optional[str]:
    """Serialize a money amount as a two-decimal string ("10.00")."""
    if value is None:
        return None
    return str(quantize_money(Decimal(str(value))))
