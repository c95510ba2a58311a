"""
cashbook_engines.supplier_ledger -- Per-supplier running balance with VAT decomposition.

Responsibility:
    Order a supplier's invoices, payments and corrections chronologically,
    annotate each with the balance owed after it, split invoice amounts into
    net and VAT, and total the ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Never reads the clock; the
    caller supplies the date used to place a synthetic opening entry when
    the supplier has no transactions.

Invariants enforced:
    - Ordering is ``(date, created_at, id)`` ascending, so same-day entries
      keep insertion order and the running balance is deterministic.
    - A non-zero opening balance becomes a synthetic CORRECTION that sorts
      strictly before every real transaction.  Real history is never touched.
    - PAYMENT entries carry no VAT.
    - ``outstanding == total_invoiced - total_paid``.
    - Filtering never recomputes balances: rows keep the running balance of
      the complete history.

Failure modes:
    - ValueError when an opening balance needs a date and neither a real
      transaction nor ``opening_balance_date`` provides one.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time as day_time, timedelta, timezone
from decimal import Decimal

from cashbook_engines.tracer import traced_engine
from cashbook_engines.vat import compute_vat_breakdown
from cashbook_kernel.domain.records import SupplierTransaction, SupplierTransactionType
from cashbook_kernel.domain.values import MONEY_DECIMAL_PLACES, ZERO, to_decimal
from cashbook_kernel.logging_config import get_logger

logger = get_logger("engines.supplier_ledger")

OPENING_BALANCE_ENTRY_ID = -1
OPENING_BALANCE_DESCRIPTION = "Opening balance"

# Spacing between the synthetic opening entry and the earliest real one
_OPENING_OFFSET = timedelta(seconds=1)


@dataclass(frozen=True)
class SupplierLedgerRow:
    """One ledger entry with the balance owed after applying it."""

    id: int
    date: datetime
    created_at: datetime
    type: SupplierTransactionType
    description: str
    invoice_number: str | None
    gross_amount: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    vat_rate: Decimal
    running_balance: Decimal
    is_opening_balance: bool = False


@dataclass(frozen=True)
class SupplierLedgerSummary:
    total_invoiced: Decimal
    total_paid: Decimal
    outstanding: Decimal
    total_net: Decimal
    total_vat: Decimal
    total_gross: Decimal


@dataclass(frozen=True)
class SupplierLedger:
    rows: tuple[SupplierLedgerRow, ...]
    summary: SupplierLedgerSummary

    @property
    def closing_balance(self) -> Decimal:
        return self.rows[-1].running_balance if self.rows else ZERO


def resolve_vat_rate(
    transaction_rate: Decimal | None,
    supplier_rate: Decimal | None,
    account_rate: Decimal | None,
    legacy_rate: Decimal,
    is_payment: bool = False,
) -> Decimal:
    """
    Effective VAT rate for a supplier transaction.

    Priority: transaction -> supplier default -> account default -> legacy
    fallback.  Payments are never taxed.
    """
    if is_payment:
        return ZERO
    for rate in (transaction_rate, supplier_rate, account_rate):
        if rate is not None:
            return rate
    return legacy_rate


def _opening_entry(
    opening_balance: Decimal,
    transactions: Sequence[SupplierTransaction],
    opening_balance_date: datetime | None,
    description: str = OPENING_BALANCE_DESCRIPTION,
) -> SupplierTransaction:
    earliest = min((t.date for t in transactions), default=None)
    if earliest is None:
        if opening_balance_date is None:
            raise ValueError(
                "opening_balance_date is required when the supplier has no transactions"
            )
        opening_date = opening_balance_date
    elif opening_balance_date is None or opening_balance_date >= earliest:
        opening_date = earliest - _OPENING_OFFSET
    else:
        opening_date = opening_balance_date

    return SupplierTransaction(
        id=OPENING_BALANCE_ENTRY_ID,
        date=opening_date,
        created_at=opening_date,
        type=SupplierTransactionType.CORRECTION,
        amount=opening_balance,
        vat_rate=ZERO,
        description=description,
        invoice_number=None,
    )


@traced_engine(
    "supplier_ledger",
    "1.0",
    fingerprint_fields=("legacy_vat_percent", "opening_balance", "opening_balance_date"),
)
def build_supplier_ledger(
    transactions: Sequence[SupplierTransaction],
    legacy_vat_percent: Decimal,
    opening_balance: Decimal = ZERO,
    opening_balance_date: datetime | None = None,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    opening_description: str = OPENING_BALANCE_DESCRIPTION,
) -> SupplierLedger:
    """
    Build a supplier's running-balance ledger.

    Args:
        transactions: The supplier's transactions, in any order.
        legacy_vat_percent: Rate for invoices/corrections without their own rate.
        opening_balance: Amount owed before the first transaction, negative
            when the supplier owes the restaurant.  Never split for VAT.
        opening_balance_date: Where to place the opening entry when it is
            earlier than every transaction, or when there are none.
        decimal_places: Minor-unit precision for VAT splits.
        opening_description: Description shown on the opening entry.

    Returns:
        SupplierLedger with chronologically ordered rows and totals.
    """
    t0 = time.monotonic()
    opening_balance = to_decimal(opening_balance)
    logger.info("supplier_ledger_started", extra={
        "transaction_count": len(transactions),
        "opening_balance": str(opening_balance),
        "legacy_vat_percent": str(legacy_vat_percent),
    })

    entries = list(transactions)
    if opening_balance != ZERO:
        entries.insert(0, _opening_entry(
            opening_balance, transactions, opening_balance_date, opening_description,
        ))

    entries.sort(key=lambda e: (e.date, e.created_at, e.id))

    running = ZERO
    total_invoiced = ZERO
    total_paid = ZERO
    total_net = ZERO
    total_vat = ZERO
    total_gross = ZERO
    rows: list[SupplierLedgerRow] = []

    for entry in entries:
        gross = entry.amount
        is_opening = entry.id == OPENING_BALANCE_ENTRY_ID
        if entry.is_payment:
            vat_rate = ZERO
            net, vat = gross, ZERO
            running -= gross
            total_paid += gross
        else:
            # The opening balance may be negative (a credit) and is never taxed
            if is_opening:
                vat_rate = ZERO
                net, vat = gross, ZERO
            else:
                vat_rate = entry.vat_rate if entry.vat_rate is not None else legacy_vat_percent
                breakdown = compute_vat_breakdown(gross, vat_rate, decimal_places)
                net, vat = breakdown.net_amount, breakdown.vat_amount
            running += gross
            total_invoiced += gross
            total_gross += gross
            total_net += net
            total_vat += vat

        rows.append(SupplierLedgerRow(
            id=entry.id,
            date=entry.date,
            created_at=entry.created_at,
            type=entry.type,
            description=entry.description,
            invoice_number=entry.invoice_number,
            gross_amount=gross,
            net_amount=net,
            vat_amount=vat,
            vat_rate=vat_rate,
            running_balance=running,
            is_opening_balance=is_opening,
        ))

    summary = SupplierLedgerSummary(
        total_invoiced=total_invoiced,
        total_paid=total_paid,
        outstanding=total_invoiced - total_paid,
        total_net=total_net,
        total_vat=total_vat,
        total_gross=total_gross,
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("supplier_ledger_completed", extra={
        "row_count": len(rows),
        "outstanding": str(summary.outstanding),
        "total_vat": str(summary.total_vat),
        "duration_ms": duration_ms,
    })
    return SupplierLedger(rows=tuple(rows), summary=summary)


def filter_supplier_rows(
    rows: Sequence[SupplierLedgerRow],
    date_from: date | None = None,
    date_to: date | None = None,
    query: str | None = None,
    transaction_type: SupplierTransactionType | str | None = None,
) -> list[SupplierLedgerRow]:
    """
    Select rows for display.

    Balances are taken as computed over the full history.  ``date_to``
    covers the whole day.  ``query`` matches description or invoice number,
    case-insensitively.  A ``transaction_type`` of None or "ALL" keeps every
    type.  Timezone-aware row dates are compared in UTC.
    """
    lower = datetime.combine(date_from, day_time.min) if date_from else None
    upper = datetime.combine(date_to, day_time.max) if date_to else None
    needle = (query or "").strip().lower()
    wanted = None
    if transaction_type is not None and transaction_type != "ALL":
        wanted = SupplierTransactionType(transaction_type)

    selected: list[SupplierLedgerRow] = []
    for row in rows:
        if wanted is not None and row.type != wanted:
            continue
        row_date = row.date
        if row_date.tzinfo is not None:
            row_date = row_date.astimezone(timezone.utc).replace(tzinfo=None)
        if lower is not None and row_date < lower:
            continue
        if upper is not None and row_date > upper:
            continue
        if needle:
            description = row.description.lower()
            invoice_number = (row.invoice_number or "").lower()
            if needle not in description and needle not in invoice_number:
                continue
        selected.append(row)
    return selected
