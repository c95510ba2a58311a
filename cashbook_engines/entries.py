"""
cashbook_engines.entries -- Derived-field computation for new and edited records.

Responsibility:
    Compute every derived field of an income, expense or supplier
    transaction in one place, from the raw inputs a user types in plus the
    account settings.  Creating and editing a record both go through these
    functions, so fee/net/VAT fields are never stale relative to each other.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Income: ``net_amount == amount - fee_amount``; LOCAL carries no fee.
    - Expense: ``net_amount + vat_amount == gross_amount``.
    - SUPPLIER_PAYMENT carries no VAT.
    - ``paid_now`` is True for every type except SUPPLIER, where the caller
      decides (False records a credit purchase).
    - ``contributions_amount`` is zero unless the expense is SALARY.
    - A SUPPLIER_PAYMENT supplier transaction never stores a VAT rate.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from cashbook_engines.supplier_ledger import resolve_vat_rate
from cashbook_engines.vat import compute_delivery_fee, compute_vat_breakdown
from cashbook_kernel.domain.records import (
    AccountSettings,
    Expense,
    ExpenseType,
    Income,
    IncomeChannel,
    SupplierTransaction,
    SupplierTransactionType,
)
from cashbook_kernel.domain.values import ZERO, to_decimal
from cashbook_kernel.logging_config import get_logger

logger = get_logger("engines.entries")

# Expense types recorded against a supplier
SUPPLIER_EXPENSE_TYPES = frozenset({ExpenseType.SUPPLIER, ExpenseType.SUPPLIER_PAYMENT})

# Expense types that fall back to the account's default VAT rate
_DEFAULT_VAT_EXPENSE_TYPES = frozenset({ExpenseType.SUPPLIER, ExpenseType.OTHER})


def prepare_income(
    date: date | datetime,
    amount: Decimal,
    channel: IncomeChannel | str,
    settings: AccountSettings,
    fee_percent: Decimal | None = None,
    note: str = "",
    id: int | None = None,
) -> Income:
    """
    Build an Income with its fee and net amounts filled in.

    DELIVERY income uses ``fee_percent`` when given, else the account's
    ``delivery_fee_percent``.  LOCAL income never carries a fee.
    """
    channel = IncomeChannel(channel)
    amount = to_decimal(amount)

    if channel == IncomeChannel.DELIVERY:
        applied = to_decimal(fee_percent) if fee_percent is not None else settings.delivery_fee_percent
    else:
        applied = ZERO

    split = compute_delivery_fee(amount, applied, settings.decimal_places)
    return Income(
        id=id,
        date=date,
        amount=amount,
        channel=channel,
        fee_percent_applied=applied,
        fee_amount=split.fee_amount,
        net_amount=split.net_amount,
        note=note,
    )


def _expense_vat_percent(
    expense_type: ExpenseType,
    settings: AccountSettings,
    vat_percent: Decimal | None,
    supplier_vat_percent: Decimal | None,
) -> Decimal:
    if expense_type == ExpenseType.SUPPLIER_PAYMENT:
        return ZERO
    if vat_percent is not None:
        return to_decimal(vat_percent)
    if supplier_vat_percent is not None:
        return to_decimal(supplier_vat_percent)
    if expense_type in _DEFAULT_VAT_EXPENSE_TYPES:
        return settings.default_vat_percent
    return ZERO


def prepare_expense(
    date: date | datetime,
    gross_amount: Decimal,
    expense_type: ExpenseType | str,
    settings: AccountSettings,
    supplier_vat_percent: Decimal | None = None,
    vat_percent: Decimal | None = None,
    paid_now: bool = False,
    contributions_amount: Decimal = ZERO,
    supplier_id: int | None = None,
    note: str = "",
    id: int | None = None,
) -> Expense:
    """
    Build an Expense with VAT, net and payment fields filled in.

    VAT rate priority: explicit ``vat_percent`` -> the supplier's default ->
    the account default (SUPPLIER and OTHER only; SALARY falls back to 0).
    SUPPLIER_PAYMENT is always VAT-free.

    Raises:
        ValueError: if a SUPPLIER or SUPPLIER_PAYMENT expense has no supplier.
    """
    expense_type = ExpenseType(expense_type)
    gross_amount = to_decimal(gross_amount)

    if expense_type in SUPPLIER_EXPENSE_TYPES and supplier_id is None:
        logger.error("expense_missing_supplier", extra={"expense_type": expense_type.value})
        raise ValueError(f"{expense_type.value} expense requires a supplier")

    rate = _expense_vat_percent(expense_type, settings, vat_percent, supplier_vat_percent)
    split = compute_vat_breakdown(gross_amount, rate, settings.decimal_places)

    return Expense(
        id=id,
        date=date,
        gross_amount=gross_amount,
        type=expense_type,
        net_amount=split.net_amount,
        vat_percent=rate,
        vat_amount=split.vat_amount,
        contributions_amount=(
            to_decimal(contributions_amount) if expense_type == ExpenseType.SALARY else ZERO
        ),
        paid_now=paid_now if expense_type == ExpenseType.SUPPLIER else True,
        supplier_id=supplier_id,
        note=note,
    )


def prepare_supplier_transaction(
    id: int,
    date: datetime,
    created_at: datetime,
    transaction_type: SupplierTransactionType | str,
    amount: Decimal,
    legacy_vat_percent: Decimal,
    vat_rate: Decimal | None = None,
    supplier_vat_percent: Decimal | None = None,
    account_vat_percent: Decimal | None = None,
    description: str = "",
    invoice_number: str | None = None,
) -> SupplierTransaction:
    """
    Build a SupplierTransaction with its VAT rate resolved at entry time.

    The stored rate follows the same priority chain the ledger uses, so a
    later change to the supplier or account default does not rewrite
    history.  Payments store no rate.

    Raises:
        ValueError: if ``amount`` is negative.
    """
    transaction_type = SupplierTransactionType(transaction_type)
    amount = to_decimal(amount)
    if amount < ZERO:
        raise ValueError(f"amount cannot be negative: {amount}")

    is_payment = transaction_type == SupplierTransactionType.PAYMENT
    rate = None
    if not is_payment:
        rate = resolve_vat_rate(
            to_decimal(vat_rate) if vat_rate is not None else None,
            supplier_vat_percent,
            account_vat_percent,
            legacy_vat_percent,
        )

    return SupplierTransaction(
        id=id,
        date=date,
        created_at=created_at,
        type=transaction_type,
        amount=amount,
        vat_rate=rate,
        description=description.strip(),
        invoice_number=(invoice_number or "").strip() or None,
    )
