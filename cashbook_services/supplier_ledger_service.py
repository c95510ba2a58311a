"""
cashbook_services.supplier_ledger_service -- A supplier's ledger with filters.

Responsibility:
    Fetch a supplier and its transactions, build the running-balance ledger
    over the complete history (opening balance included), then narrow the
    rows for display.  Totals always describe the whole ledger, not the
    filtered view.

Architecture position:
    Services -- stateful orchestration over engines + kernel.  Reads only.

Invariants enforced:
    - Balances are computed before filtering, so a filtered row shows the
      same balance it shows unfiltered.
    - The opening balance entry is dated from the supplier's ``created_at``
      when the supplier has no earlier transaction.

Failure modes:
    - SupplierNotFoundError if the supplier is missing or belongs to another
      account.
    - InvalidDateRangeError if the filter range ends before it starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from cashbook_config import CashbookConfig
from cashbook_engines.supplier_ledger import (
    SupplierLedgerRow,
    SupplierLedgerSummary,
    build_supplier_ledger,
    filter_supplier_rows,
    resolve_vat_rate,
)
from cashbook_kernel.domain.records import Supplier, SupplierTransactionType
from cashbook_kernel.exceptions import InvalidDateRangeError
from cashbook_kernel.logging_config import LogContext, get_logger
from cashbook_kernel.selectors.cashbook_selector import CashbookSelector
from cashbook_services.bookkeeping_service import default_settings

logger = get_logger("services.supplier_ledger")


@dataclass(frozen=True)
class SupplierLedgerFilters:
    """Display filters.  None means no restriction."""

    date_from: date | None = None
    date_to: date | None = None
    query: str | None = None
    transaction_type: SupplierTransactionType | str | None = None

    def __post_init__(self) -> None:
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise InvalidDateRangeError(self.date_from, self.date_to)


@dataclass(frozen=True)
class SupplierLedgerView:
    supplier: Supplier
    currency: str
    # Rate a new invoice would get: supplier -> account default -> legacy
    effective_vat_percent: Decimal
    rows: tuple[SupplierLedgerRow, ...]
    summary: SupplierLedgerSummary
    total_row_count: int


class SupplierLedgerService:
    """Builds a supplier's ledger for display or export."""

    def __init__(self, session: Session, config: CashbookConfig):
        self.session = session
        self.config = config
        self.selector = CashbookSelector(session)

    def supplier_ledger(
        self,
        account_id: int,
        supplier_id: int,
        filters: SupplierLedgerFilters | None = None,
    ) -> SupplierLedgerView:
        """
        The supplier's ledger, filtered for display.

        Stored transactions without a rate are split at the configured
        legacy rate.
        """
        filters = filters or SupplierLedgerFilters()

        with LogContext.bind(account_id=account_id, supplier_id=supplier_id):
            supplier = self.selector.supplier(account_id, supplier_id)
            settings = self.selector.settings(account_id, default_settings(self.config))
            transactions = self.selector.supplier_transactions(account_id, supplier_id)
            legacy = self.config.ledger.legacy_vat_percent

            ledger = build_supplier_ledger(
                transactions,
                legacy,
                opening_balance=supplier.opening_balance,
                opening_balance_date=supplier.created_at,
                decimal_places=settings.decimal_places,
                opening_description=self.config.ledger.opening_balance_label,
            )
            rows = filter_supplier_rows(
                ledger.rows,
                date_from=filters.date_from,
                date_to=filters.date_to,
                query=filters.query,
                transaction_type=filters.transaction_type,
            )

            logger.info("supplier_ledger_viewed", extra={
                "row_count": len(ledger.rows),
                "shown_count": len(rows),
                "outstanding": str(ledger.summary.outstanding),
            })

        return SupplierLedgerView(
            supplier=supplier,
            currency=settings.currency,
            effective_vat_percent=resolve_vat_rate(
                None, supplier.vat_percent, settings.default_vat_percent, legacy,
            ),
            rows=tuple(rows),
            summary=ledger.summary,
            total_row_count=len(ledger.rows),
        )
