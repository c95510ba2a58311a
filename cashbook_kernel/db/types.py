"""
Module: cashbook_kernel.db.types
Responsibility: Column types for monetary values and short codes.  Every model
    stores amounts through ``DecimalString`` so that values round-trip exactly
    on every backend, SQLite included.
Architecture position: Kernel > DB.  May be imported by models/ and selectors/.
    MUST NOT import from either.

Invariants enforced:
    - Amounts are stored as their canonical decimal string and read back as
      ``Decimal`` with the same digits.  No float conversion on the way.
"""

from decimal import Decimal
from typing import Annotated

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class DecimalString(TypeDecorator):
    """
    Decimal stored as String(40).

    Contract:
        Transparently converts between Python ``Decimal`` and its string
        representation.  SQLite's NUMERIC affinity would otherwise store
        amounts as floating point.

    Guarantees:
        - process_bind_param: Decimal -> str on INSERT/UPDATE.
        - process_result_value: str -> Decimal on SELECT.
        - cache_ok=True enables SQLAlchemy statement caching.
    """

    impl = String(40)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert Decimal to string when storing.  Floats are refused."""
        if value is None:
            return None
        if isinstance(value, float):
            raise TypeError(f"Refusing to store float amount {value!r}")
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        """Convert string back to Decimal when loading."""
        if value is not None:
            return Decimal(value)
        return None


# Monetary amount stored exactly
Money = Annotated[Decimal, DecimalString()]

# VAT or fee percentage
Percent = Annotated[Decimal, DecimalString()]

# ISO 4217 currency code (e.g., "RSD", "EUR")
Currency = Annotated[str, String(3)]

# Enum values stored by name
ShortCode = Annotated[str, String(32)]

# Free-form notes and descriptions
LongText = Annotated[str, String(2000)]
