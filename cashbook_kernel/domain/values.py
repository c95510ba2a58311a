"""
Values -- Decimal helpers shared by every monetary computation.

Responsibility:
    One place for converting inputs to ``Decimal`` and for rounding amounts
    to a currency's minor unit.  Every VAT and fee split in the engines
    rounds through ``round_money`` so the half-up rule is applied
    identically everywhere.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Monetary amounts are ``Decimal``; ``float`` is rejected outright
      because its binary representation has already lost the cents.
    - Rounding is ROUND_HALF_UP to the requested number of decimal places.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
HUNDRED = Decimal("100")

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Convert a value to ``Decimal``.

    Accepts ``Decimal``, ``int`` and numeric strings.  A comma decimal
    separator ("12,50") is accepted for strings.

    Raises:
        TypeError: if given a float.
        ValueError: if a string is not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Monetary values must not be {type(value).__name__}: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            return Decimal(value.strip().replace(",", "."))
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the only rounding function used for VAT and fee splits.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """``amount * percent / 100`` without rounding."""
    return amount * percent / HUNDRED
