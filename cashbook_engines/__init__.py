"""
Module: cashbook_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for cashbook_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import cashbook_kernel.domain and cashbook_kernel.logging_config.
    MUST NOT import cashbook_services, cashbook_config or the db layer.

Invariants enforced:
    - Purity: engines never read the clock.  Dates used to place synthetic
      entries or bound a range are passed in by the caller.
    - Decimal-only arithmetic; floats are rejected at the record boundary.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from cashbook_engines import build_daily_ledger, build_supplier_ledger
    from cashbook_engines import compute_vat_breakdown, prepare_expense
"""

from cashbook_engines.daily_ledger import (
    LedgerRow,
    LedgerSummary,
    build_daily_ledger,
    build_range_ledger,
    expense_cash_amount,
    is_cash_impacting,
    reconstruct_opening_balance,
    summarize_ledger,
)
from cashbook_engines.entries import (
    prepare_expense,
    prepare_income,
    prepare_supplier_transaction,
)
from cashbook_engines.reports import (
    SupplierBalance,
    VatLine,
    VatReport,
    build_supplier_balances,
    build_vat_report,
)
from cashbook_engines.supplier_ledger import (
    OPENING_BALANCE_ENTRY_ID,
    SupplierLedger,
    SupplierLedgerRow,
    SupplierLedgerSummary,
    build_supplier_ledger,
    filter_supplier_rows,
    resolve_vat_rate,
)
from cashbook_engines.tracer import compute_input_fingerprint, traced_engine
from cashbook_engines.vat import (
    DeliveryFee,
    VatBreakdown,
    compute_delivery_fee,
    compute_vat_breakdown,
)

__all__ = [
    # Daily ledger
    "LedgerRow",
    "LedgerSummary",
    "build_daily_ledger",
    "build_range_ledger",
    "expense_cash_amount",
    "is_cash_impacting",
    "reconstruct_opening_balance",
    "summarize_ledger",
    # Entries
    "prepare_expense",
    "prepare_income",
    "prepare_supplier_transaction",
    # Reports
    "SupplierBalance",
    "VatLine",
    "VatReport",
    "build_supplier_balances",
    "build_vat_report",
    # Supplier ledger
    "OPENING_BALANCE_ENTRY_ID",
    "SupplierLedger",
    "SupplierLedgerRow",
    "SupplierLedgerSummary",
    "build_supplier_ledger",
    "filter_supplier_rows",
    "resolve_vat_rate",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
    # VAT
    "DeliveryFee",
    "VatBreakdown",
    "compute_delivery_fee",
    "compute_vat_breakdown",
]
