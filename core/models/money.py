"""Money handling.

Amounts are Decimal quantized to cents. Floats are converted through str()
so 0.1 stays 0.10 instead of 0.1000000000000000055511151231257827.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_amount(value: Any) -> Decimal:
    """
    Coerce user input to a non-negative amount.

    None and blank strings become zero. A comma decimal separator is
    accepted ("12,50"); thousands separators are not.

    Raises:
        ValueError: If value is malformed, not finite, or negative
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return ZERO
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: {value!r}")

    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
