"""
Tests for the supplier running-balance ledger.

Covers:
- Reconciliation of outstanding balance with the last running balance
- Ordering by date, then creation time, then id
- Placement of the synthetic opening balance entry
- VAT decomposition and legacy rate fallback
- Display filtering that keeps full-history balances
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cashbook_engines.supplier_ledger import (
    OPENING_BALANCE_DESCRIPTION,
    OPENING_BALANCE_ENTRY_ID,
    build_supplier_ledger,
    filter_supplier_rows,
    resolve_vat_rate,
)
from cashbook_kernel.domain.records import SupplierTransaction, SupplierTransactionType

LEGACY = Decimal("10")


def _tx(id, when, kind, amount, rate=None, created_at=None, description="", invoice_number=None):
    return SupplierTransaction(
        id=id,
        date=when,
        created_at=created_at or when,
        type=kind,
        amount=Decimal(amount),
        vat_rate=Decimal(rate) if rate is not None else None,
        description=description,
        invoice_number=invoice_number,
    )


INVOICE = SupplierTransactionType.INVOICE
PAYMENT = SupplierTransactionType.PAYMENT
CORRECTION = SupplierTransactionType.CORRECTION


class TestReconciliation:

    def setup_method(self):
        self.transactions = [
            _tx(1, datetime(2024, 3, 1, 9), INVOICE, "1200", rate="20", invoice_number="F-1"),
            _tx(2, datetime(2024, 3, 5, 9), PAYMENT, "700"),
            _tx(3, datetime(2024, 3, 8, 9), CORRECTION, "110"),
            _tx(4, datetime(2024, 3, 9, 9), INVOICE, "300", rate="0"),
        ]

    def test_running_balance(self):
        ledger = build_supplier_ledger(self.transactions, LEGACY)

        assert [r.running_balance for r in ledger.rows] == [
            Decimal("1200"), Decimal("500"), Decimal("610"), Decimal("910"),
        ]

    def test_outstanding_matches_last_balance(self):
        ledger = build_supplier_ledger(self.transactions, LEGACY)
        summary = ledger.summary

        assert summary.total_invoiced == Decimal("1610")
        assert summary.total_paid == Decimal("700")
        assert summary.outstanding == summary.total_invoiced - summary.total_paid
        assert summary.outstanding == ledger.rows[-1].running_balance
        assert ledger.closing_balance == Decimal("910")

    def test_vat_split(self):
        ledger = build_supplier_ledger(self.transactions, LEGACY)
        invoice, payment, correction, zero_rated = ledger.rows

        assert (invoice.net_amount, invoice.vat_amount) == (Decimal("1000.00"), Decimal("200.00"))
        assert payment.vat_rate == Decimal("0")
        assert payment.vat_amount == Decimal("0")
        assert payment.net_amount == Decimal("700")
        # Correction without its own rate falls back to the legacy rate
        assert correction.vat_rate == LEGACY
        assert (correction.net_amount, correction.vat_amount) == (Decimal("100.00"), Decimal("10.00"))
        assert zero_rated.vat_amount == Decimal("0")

    def test_totals_exclude_payments(self):
        summary = build_supplier_ledger(self.transactions, LEGACY).summary

        assert summary.total_gross == Decimal("1610")
        assert summary.total_net + summary.total_vat == summary.total_gross
        assert summary.total_vat == Decimal("210.00")

    def test_empty_ledger(self):
        ledger = build_supplier_ledger([], LEGACY)

        assert ledger.rows == ()
        assert ledger.summary.outstanding == Decimal("0")
        assert ledger.closing_balance == Decimal("0")


class TestOrdering:

    def test_input_order_irrelevant(self):
        a = _tx(1, datetime(2024, 3, 2), INVOICE, "100")
        b = _tx(2, datetime(2024, 3, 1), INVOICE, "50")

        ledger = build_supplier_ledger([a, b], LEGACY)

        assert [r.id for r in ledger.rows] == [2, 1]

    def test_same_date_uses_created_at(self):
        day = datetime(2024, 3, 1)
        later = _tx(1, day, PAYMENT, "100", created_at=datetime(2024, 3, 1, 15))
        earlier = _tx(2, day, INVOICE, "100", created_at=datetime(2024, 3, 1, 10))

        ledger = build_supplier_ledger([later, earlier], LEGACY)

        assert [r.id for r in ledger.rows] == [2, 1]
        assert [r.running_balance for r in ledger.rows] == [Decimal("100"), Decimal("0")]

    def test_full_tie_uses_id(self):
        day = datetime(2024, 3, 1)
        ledger = build_supplier_ledger(
            [_tx(9, day, INVOICE, "1"), _tx(3, day, INVOICE, "2")], LEGACY,
        )

        assert [r.id for r in ledger.rows] == [3, 9]


class TestOpeningBalance:

    def test_placed_before_first_transaction(self):
        first = datetime(2024, 3, 1, 9)
        ledger = build_supplier_ledger(
            [_tx(1, first, INVOICE, "100")], LEGACY, opening_balance=Decimal("500"),
        )

        opening = ledger.rows[0]
        assert opening.is_opening_balance
        assert opening.id == OPENING_BALANCE_ENTRY_ID
        assert opening.description == OPENING_BALANCE_DESCRIPTION
        assert opening.type == CORRECTION
        assert opening.date < first
        assert opening.vat_amount == Decimal("0")
        assert [r.running_balance for r in ledger.rows] == [Decimal("500"), Decimal("600")]

    def test_opening_counts_as_invoiced(self):
        ledger = build_supplier_ledger(
            [_tx(1, datetime(2024, 3, 1), PAYMENT, "200")], LEGACY,
            opening_balance=Decimal("500"),
        )

        assert ledger.summary.total_invoiced == Decimal("500")
        assert ledger.summary.outstanding == Decimal("300")

    def test_earlier_opening_date_is_kept(self):
        created = datetime(2024, 1, 1)
        ledger = build_supplier_ledger(
            [_tx(1, datetime(2024, 3, 1), INVOICE, "100")], LEGACY,
            opening_balance=Decimal("500"), opening_balance_date=created,
        )

        assert ledger.rows[0].date == created

    def test_later_opening_date_moves_before_history(self):
        first = datetime(2024, 3, 1)
        ledger = build_supplier_ledger(
            [_tx(1, first, INVOICE, "100")], LEGACY,
            opening_balance=Decimal("500"), opening_balance_date=datetime(2024, 6, 1),
        )

        assert ledger.rows[0].is_opening_balance
        assert ledger.rows[0].date < first

    def test_no_transactions_uses_opening_date(self):
        created = datetime(2024, 2, 1)
        ledger = build_supplier_ledger(
            [], LEGACY, opening_balance=Decimal("75"), opening_balance_date=created,
        )

        assert len(ledger.rows) == 1
        assert ledger.rows[0].date == created
        assert ledger.summary.outstanding == Decimal("75")

    def test_no_transactions_and_no_date_raises(self):
        with pytest.raises(ValueError, match="opening_balance_date"):
            build_supplier_ledger([], LEGACY, opening_balance=Decimal("75"))

    def test_zero_opening_adds_no_row(self):
        ledger = build_supplier_ledger(
            [_tx(1, datetime(2024, 3, 1), INVOICE, "100")], LEGACY,
        )

        assert not any(r.is_opening_balance for r in ledger.rows)

    def test_negative_opening_is_a_credit(self):
        ledger = build_supplier_ledger(
            [_tx(1, datetime(2024, 3, 1), INVOICE, "1200", rate="20")], LEGACY,
            opening_balance=Decimal("-300"),
        )

        opening = ledger.rows[0]
        assert opening.is_opening_balance
        assert opening.gross_amount == Decimal("-300")
        assert opening.net_amount == Decimal("-300")
        assert opening.vat_amount == Decimal("0")
        assert opening.vat_rate == Decimal("0")
        assert [r.running_balance for r in ledger.rows] == [Decimal("-300"), Decimal("900")]
        assert ledger.summary.outstanding == Decimal("900")
        assert ledger.summary.total_vat == Decimal("200.00")

    def test_opening_ignores_legacy_rate(self):
        ledger = build_supplier_ledger(
            [], LEGACY, opening_balance=Decimal("110"), opening_balance_date=datetime(2024, 1, 1),
        )

        assert ledger.rows[0].net_amount == Decimal("110")
        assert ledger.summary.total_vat == Decimal("0")


class TestFilter:

    def setup_method(self):
        self.ledger = build_supplier_ledger([
            _tx(1, datetime(2024, 3, 1, 9), INVOICE, "100", description="Beef", invoice_number="A-17"),
            _tx(2, datetime(2024, 3, 10, 23, 30), PAYMENT, "40", description="Bank transfer"),
            _tx(3, datetime(2024, 3, 20, 9), INVOICE, "60", description="Pork"),
        ], LEGACY)

    def test_date_range_includes_whole_end_day(self):
        rows = filter_supplier_rows(self.ledger.rows, date(2024, 3, 2), date(2024, 3, 10))

        assert [r.id for r in rows] == [2]

    def test_balances_are_from_full_history(self):
        rows = filter_supplier_rows(self.ledger.rows, date_from=date(2024, 3, 15))

        assert [r.id for r in rows] == [3]
        assert rows[0].running_balance == Decimal("120")

    def test_query_matches_description_or_invoice(self):
        assert [r.id for r in filter_supplier_rows(self.ledger.rows, query="beef")] == [1]
        assert [r.id for r in filter_supplier_rows(self.ledger.rows, query="a-1")] == [1]
        assert [r.id for r in filter_supplier_rows(self.ledger.rows, query="  TRANSFER ")] == [2]

    def test_type_filter(self):
        assert [r.id for r in filter_supplier_rows(self.ledger.rows, transaction_type="PAYMENT")] == [2]
        assert len(filter_supplier_rows(self.ledger.rows, transaction_type="ALL")) == 3
        assert len(filter_supplier_rows(self.ledger.rows, transaction_type=INVOICE)) == 2

    def test_aware_dates_compared_in_utc(self):
        ledger = build_supplier_ledger([
            _tx(1, datetime(2024, 3, 2, 0, 30, tzinfo=timezone(timedelta(hours=2))), INVOICE, "10"),
        ], LEGACY)

        assert [r.id for r in filter_supplier_rows(ledger.rows, date_to=date(2024, 3, 1))] == [1]
        assert filter_supplier_rows(ledger.rows, date_from=date(2024, 3, 2)) == []

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            filter_supplier_rows(self.ledger.rows, transaction_type="REFUND")


class TestResolveVatRate:

    def test_priority_chain(self):
        assert resolve_vat_rate(Decimal("5"), Decimal("10"), Decimal("20"), LEGACY) == Decimal("5")
        assert resolve_vat_rate(None, Decimal("10"), Decimal("20"), LEGACY) == Decimal("10")
        assert resolve_vat_rate(None, None, Decimal("20"), LEGACY) == Decimal("20")
        assert resolve_vat_rate(None, None, None, LEGACY) == LEGACY

    def test_explicit_zero_is_respected(self):
        assert resolve_vat_rate(Decimal("0"), Decimal("10"), None, LEGACY) == Decimal("0")

    def test_payment_is_untaxed(self):
        assert resolve_vat_rate(Decimal("20"), None, None, LEGACY, is_payment=True) == Decimal("0")
