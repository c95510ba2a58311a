"""
Records -- Immutable transaction records consumed by the engines.

Responsibility:
    Typed, frozen representations of the rows the bookkeeping application
    stores: incomes, expenses, supplier transactions, suppliers and per-account
    settings.  Selectors convert ORM rows into these; engines only ever see
    these.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Every monetary field is a ``Decimal`` after construction (strings and
      ints are converted, floats rejected).
    - Enum fields accept their string values and are normalized to the enum.

Non-goals:
    - Derived fields (fee/net/VAT) are NOT recomputed here.  They are set
      together at entry time by ``cashbook_engines.entries``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from cashbook_kernel.domain.currency import CurrencyRegistry, validate_currency
from cashbook_kernel.domain.values import ZERO, to_decimal


class IncomeChannel(str, Enum):
    """Where the revenue came in."""

    LOCAL = "LOCAL"  # Served on premises, no platform fee
    DELIVERY = "DELIVERY"  # Delivery platform, fee withheld


class ExpenseType(str, Enum):
    """Expense classification; drives VAT and cash-impact rules."""

    SUPPLIER = "SUPPLIER"  # Supplier invoice, paid now or on credit
    SUPPLIER_PAYMENT = "SUPPLIER_PAYMENT"  # Settles supplier credit, no VAT
    SALARY = "SALARY"
    OTHER = "OTHER"


class SupplierTransactionType(str, Enum):
    """Entry type in a supplier's ledger."""

    INVOICE = "INVOICE"
    PAYMENT = "PAYMENT"
    CORRECTION = "CORRECTION"


class SupplierCategory(str, Enum):
    MEAT = "MEAT"
    VEGETABLES = "VEGETABLES"
    PACKAGING = "PACKAGING"
    OTHER = "OTHER"


def _coerce(record: object, money_fields: tuple[str, ...], enum_fields: dict[str, type[Enum]]) -> None:
    """Normalize money and enum fields on a frozen dataclass in place."""
    names = {f.name for f in fields(record)}
    for name in money_fields:
        if name not in names:
            continue
        value = getattr(record, name)
        if value is not None:
            object.__setattr__(record, name, to_decimal(value))
    for name, enum_type in enum_fields.items():
        value = getattr(record, name)
        if not isinstance(value, enum_type):
            object.__setattr__(record, name, enum_type(value))


@dataclass(frozen=True)
class Income:
    """A day's revenue entry, net of any delivery platform fee."""

    date: date | datetime
    amount: Decimal  # Gross
    channel: IncomeChannel
    net_amount: Decimal
    fee_percent_applied: Decimal = ZERO
    fee_amount: Decimal = ZERO
    id: int | None = None
    note: str = ""

    def __post_init__(self) -> None:
        _coerce(
            self,
            ("amount", "net_amount", "fee_percent_applied", "fee_amount"),
            {"channel": IncomeChannel},
        )


@dataclass(frozen=True)
class Expense:
    """
    An outgoing amount.

    ``paid_now`` is meaningful only for SUPPLIER expenses: False records a
    credit purchase (a liability, not yet a cash outflow).
    """

    date: date | datetime
    gross_amount: Decimal
    type: ExpenseType
    net_amount: Decimal
    vat_percent: Decimal = ZERO
    vat_amount: Decimal = ZERO
    contributions_amount: Decimal = ZERO  # SALARY only
    paid_now: bool = False
    supplier_id: int | None = None
    id: int | None = None
    note: str = ""

    def __post_init__(self) -> None:
        _coerce(
            self,
            ("gross_amount", "net_amount", "vat_percent", "vat_amount", "contributions_amount"),
            {"type": ExpenseType},
        )


@dataclass(frozen=True)
class SupplierTransaction:
    """An invoice, payment or correction in a supplier's ledger."""

    id: int
    date: datetime
    created_at: datetime
    type: SupplierTransactionType
    amount: Decimal  # Always a non-negative magnitude
    vat_rate: Decimal | None = None
    description: str = ""
    invoice_number: str | None = None

    def __post_init__(self) -> None:
        _coerce(self, ("amount", "vat_rate"), {"type": SupplierTransactionType})

    @property
    def is_payment(self) -> bool:
        return self.type == SupplierTransactionType.PAYMENT


@dataclass(frozen=True)
class AccountSettings:
    """Per-account settings snapshot. Read-only input to the builders."""

    starting_balance: Decimal = ZERO
    default_vat_percent: Decimal = ZERO
    delivery_fee_percent: Decimal = ZERO
    currency: str = "RSD"

    def __post_init__(self) -> None:
        _coerce(self, ("starting_balance", "default_vat_percent", "delivery_fee_percent"), {})
        object.__setattr__(self, "currency", validate_currency(self.currency))

    @property
    def decimal_places(self) -> int:
        """Minor-unit precision used when splitting VAT and fees."""
        return CurrencyRegistry.get_decimal_places(self.currency)


@dataclass(frozen=True)
class Supplier:
    id: int
    number: int
    category: SupplierCategory = SupplierCategory.OTHER
    name: str | None = None
    vat_percent: Decimal | None = None
    opening_balance: Decimal = ZERO
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        _coerce(self, ("vat_percent", "opening_balance"), {"category": SupplierCategory})

    @property
    def display_name(self) -> str:
        if self.name:
            return f"{self.name} (#{self.number})"
        return f"Supplier #{self.number}"


def calendar_day(value: date | datetime) -> date:
    """Date portion of a record date; time of day is ignored."""
    if isinstance(value, datetime):
        return value.date()
    return value
