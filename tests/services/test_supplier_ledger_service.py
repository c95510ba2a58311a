"""Tests for SupplierLedgerService."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from cashbook_kernel.exceptions import InvalidDateRangeError, SupplierNotFoundError
from cashbook_kernel.models.supplier import SupplierTransactionRecord
from cashbook_services.supplier_ledger_service import (
    SupplierLedgerFilters,
    SupplierLedgerService,
)


@pytest.fixture
def service(session, config):
    return SupplierLedgerService(session, config)


@pytest.fixture
def meat(book, account_id):
    """Opening balance 500, invoice 1200 at 20% on March 1st, payment 700 on March 5th."""
    supplier = book.create_supplier(account_id, name="Meat Co", opening_balance="500")
    book.create_supplier_transaction(
        account_id, supplier.id, "INVOICE", "1200", date=date(2024, 3, 1),
        vat_rate="20", invoice_number="F-100", description="Beef",
    )
    book.create_supplier_transaction(
        account_id, supplier.id, "PAYMENT", "700", date=date(2024, 3, 5),
        description="Bank transfer",
    )
    return supplier


class TestSupplierLedger:

    def test_rows_and_balances(self, service, account_id, meat):
        view = service.supplier_ledger(account_id, meat.id)

        assert [r.running_balance for r in view.rows] == [
            Decimal("500"), Decimal("1700"), Decimal("1000"),
        ]
        opening = view.rows[0]
        assert opening.is_opening_balance
        assert opening.description == "Opening balance"
        assert opening.date < datetime(2024, 3, 1)

    def test_summary(self, service, account_id, meat):
        summary = service.supplier_ledger(account_id, meat.id).summary

        assert summary.total_invoiced == Decimal("1700")
        assert summary.total_paid == Decimal("700")
        assert summary.outstanding == Decimal("1000")
        assert summary.total_vat == Decimal("200.00")

    def test_filter_keeps_full_totals_and_balances(self, service, account_id, meat):
        view = service.supplier_ledger(
            account_id, meat.id, SupplierLedgerFilters(transaction_type="PAYMENT"),
        )

        assert len(view.rows) == 1
        assert view.rows[0].running_balance == Decimal("1000")
        assert view.summary.outstanding == Decimal("1000")
        assert view.total_row_count == 3

    def test_query_and_date_filters(self, service, account_id, meat):
        by_invoice = service.supplier_ledger(
            account_id, meat.id, SupplierLedgerFilters(query="f-100"),
        )
        by_date = service.supplier_ledger(
            account_id, meat.id,
            SupplierLedgerFilters(date_from=date(2024, 3, 2), date_to=date(2024, 3, 5)),
        )

        assert [r.description for r in by_invoice.rows] == ["Beef"]
        assert [r.description for r in by_date.rows] == ["Bank transfer"]

    def test_inverted_filter_range(self):
        with pytest.raises(InvalidDateRangeError):
            SupplierLedgerFilters(date_from=date(2024, 3, 5), date_to=date(2024, 3, 1))

    def test_effective_rate_falls_back_to_account_default(self, service, account_id, meat):
        view = service.supplier_ledger(account_id, meat.id)

        assert view.effective_vat_percent == Decimal("20")
        assert view.currency == "RSD"

    def test_no_transactions_dates_opening_at_creation(self, service, book, account_id):
        supplier = book.create_supplier(account_id, opening_balance="75")

        view = service.supplier_ledger(account_id, supplier.id)

        assert len(view.rows) == 1
        assert view.rows[0].date == datetime(2024, 3, 15, 12, 0)
        assert view.summary.outstanding == Decimal("75")

    def test_negative_opening_balance_is_a_credit(self, service, book, account_id):
        supplier = book.create_supplier(account_id, name="Dairy", opening_balance="-300")
        book.create_supplier_transaction(
            account_id, supplier.id, "INVOICE", "1200", date=date(2024, 3, 1), vat_rate="20",
        )

        view = service.supplier_ledger(account_id, supplier.id)

        assert view.rows[0].is_opening_balance
        assert view.rows[0].vat_amount == Decimal("0")
        assert [r.running_balance for r in view.rows] == [Decimal("-300"), Decimal("900")]
        assert view.summary.outstanding == Decimal("900")

    def test_stored_rows_without_rate_use_legacy_rate(self, service, session, book, account_id):
        supplier = book.create_supplier(account_id)
        session.add(SupplierTransactionRecord(
            account_id=account_id,
            supplier_id=supplier.id,
            type="INVOICE",
            amount=Decimal("110"),
            vat_rate=None,
            description="Imported",
            date=datetime(2023, 6, 1),
            created_at=datetime(2023, 6, 1),
        ))
        session.flush()

        row = service.supplier_ledger(account_id, supplier.id).rows[0]

        assert row.vat_rate == Decimal("10")
        assert row.vat_amount == Decimal("10.00")

    def test_other_account_refused(self, service, book, meat):
        other = book.create_account("Cafe", "cafe")

        with pytest.raises(SupplierNotFoundError):
            service.supplier_ledger(other, meat.id)
