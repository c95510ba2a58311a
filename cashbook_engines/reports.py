"""
cashbook_engines.reports -- VAT report and supplier balance aggregations.

Responsibility:
    Aggregate expenses into the figures shown on the VAT report page and in
    the export workbook: period totals, per-supplier, per-type and per-month
    VAT breakdowns, and what each supplier has been invoiced, paid and is
    still owed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Every breakdown line satisfies ``net + vat == gross`` because each
      expense does.
    - Breakdowns partition the input: their gross amounts sum to the total.
    - ``owed == purchased - paid`` for every supplier balance.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from cashbook_kernel.domain.records import Expense, ExpenseType, Supplier, calendar_day
from cashbook_kernel.domain.values import ZERO
from cashbook_kernel.logging_config import get_logger

logger = get_logger("engines.reports")

OTHER_SUPPLIER_LABEL = "Other"


@dataclass(frozen=True)
class VatLine:
    """One line of a VAT breakdown."""

    key: str
    label: str
    gross_amount: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    expense_count: int


@dataclass(frozen=True)
class VatReport:
    gross_amount: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    by_supplier: tuple[VatLine, ...]
    by_type: tuple[VatLine, ...]
    by_month: tuple[VatLine, ...]


@dataclass(frozen=True)
class SupplierBalance:
    supplier_id: int
    display_name: str
    category: str
    vat_percent: Decimal | None
    purchased: Decimal
    paid: Decimal
    owed: Decimal


class _Accumulator:
    __slots__ = ("label", "gross", "net", "vat", "count")

    def __init__(self, label: str):
        self.label = label
        self.gross = ZERO
        self.net = ZERO
        self.vat = ZERO
        self.count = 0

    def add(self, expense: Expense) -> None:
        self.gross += expense.gross_amount
        self.net += expense.net_amount
        self.vat += expense.vat_amount
        self.count += 1

    def to_line(self, key: str) -> VatLine:
        return VatLine(
            key=key,
            label=self.label,
            gross_amount=self.gross,
            net_amount=self.net,
            vat_amount=self.vat,
            expense_count=self.count,
        )


def _group(expenses: Iterable[Expense], key_and_label) -> dict[str, _Accumulator]:
    groups: dict[str, _Accumulator] = {}
    for expense in expenses:
        key, label = key_and_label(expense)
        if key not in groups:
            groups[key] = _Accumulator(label)
        groups[key].add(expense)
    return groups


def build_vat_report(
    expenses: Sequence[Expense],
    supplier_names: Mapping[int, str],
) -> VatReport:
    """
    Build the VAT report for a set of expenses.

    Args:
        expenses: Expenses in the reporting period.
        supplier_names: Display name per supplier id.  Expenses without a
            supplier, or with an unknown one, are grouped under "Other".

    Returns:
        VatReport with totals, a per-supplier breakdown sorted by name, a
        per-type breakdown in enum order and a per-month (``YYYY-MM``)
        breakdown in ascending month order.
    """

    def by_supplier(expense: Expense) -> tuple[str, str]:
        if expense.supplier_id is None or expense.supplier_id not in supplier_names:
            return "other", OTHER_SUPPLIER_LABEL
        return str(expense.supplier_id), supplier_names[expense.supplier_id]

    def by_type(expense: Expense) -> tuple[str, str]:
        return expense.type.value, expense.type.value

    def by_month(expense: Expense) -> tuple[str, str]:
        month = calendar_day(expense.date).strftime("%Y-%m")
        return month, month

    supplier_groups = _group(expenses, by_supplier)
    type_groups = _group(expenses, by_type)
    month_groups = _group(expenses, by_month)

    type_order = [t.value for t in ExpenseType]

    report = VatReport(
        gross_amount=sum((e.gross_amount for e in expenses), ZERO),
        net_amount=sum((e.net_amount for e in expenses), ZERO),
        vat_amount=sum((e.vat_amount for e in expenses), ZERO),
        by_supplier=tuple(
            acc.to_line(key)
            for key, acc in sorted(supplier_groups.items(), key=lambda kv: (kv[1].label.lower(), kv[0]))
        ),
        by_type=tuple(
            type_groups[key].to_line(key) for key in type_order if key in type_groups
        ),
        by_month=tuple(month_groups[key].to_line(key) for key in sorted(month_groups)),
    )

    logger.info("vat_report_built", extra={
        "expense_count": len(expenses),
        "vat_amount": str(report.vat_amount),
        "supplier_count": len(report.by_supplier),
        "month_count": len(report.by_month),
    })
    return report


def build_supplier_balances(
    suppliers: Sequence[Supplier],
    expenses: Sequence[Expense],
) -> list[SupplierBalance]:
    """
    What each supplier was invoiced, paid and is still owed.

    ``purchased`` sums SUPPLIER expense gross amounts.  ``paid`` sums
    SUPPLIER_PAYMENT expenses plus SUPPLIER expenses paid on the spot.
    Suppliers keep the order they were given in.
    """
    purchased: dict[int, Decimal] = {}
    paid: dict[int, Decimal] = {}
    for expense in expenses:
        if expense.supplier_id is None:
            continue
        if expense.type == ExpenseType.SUPPLIER:
            purchased[expense.supplier_id] = purchased.get(expense.supplier_id, ZERO) + expense.gross_amount
            if expense.paid_now:
                paid[expense.supplier_id] = paid.get(expense.supplier_id, ZERO) + expense.gross_amount
        elif expense.type == ExpenseType.SUPPLIER_PAYMENT:
            paid[expense.supplier_id] = paid.get(expense.supplier_id, ZERO) + expense.gross_amount

    balances = []
    for supplier in suppliers:
        bought = purchased.get(supplier.id, ZERO)
        settled = paid.get(supplier.id, ZERO)
        balances.append(SupplierBalance(
            supplier_id=supplier.id,
            display_name=supplier.display_name,
            category=supplier.category.value,
            vat_percent=supplier.vat_percent,
            purchased=bought,
            paid=settled,
            owed=bought - settled,
        ))
    return balances
