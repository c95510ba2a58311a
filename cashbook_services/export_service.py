"""
cashbook_services.export_service -- XLSX workbooks of the cash book and supplier ledgers.

Responsibility:
    Render the data behind the ledger, supplier and VAT pages into openpyxl
    workbooks and return the file bytes.

Architecture position:
    Services -- reads through the selector and the other services, computes
    through the engines.  No figures are computed here that the engines do
    not already produce.

Sheets:
    export_cashbook         "Ledger" (every income and expense in the range),
                            "Suppliers" (purchased / paid / owed),
                            "VAT" (per month)
    export_supplier_ledger  "Supplier" (filtered ledger rows plus totals)
"""

from __future__ import annotations

import io
from datetime import date

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from cashbook_config import CashbookConfig
from cashbook_engines.reports import build_supplier_balances, build_vat_report
from cashbook_kernel.domain.clock import Clock, SystemClock
from cashbook_kernel.domain.records import Expense, Income, calendar_day
from cashbook_kernel.logging_config import LogContext, get_logger
from cashbook_kernel.selectors.cashbook_selector import CashbookSelector
from cashbook_services.ledger_service import CashLedgerService
from cashbook_services.supplier_ledger_service import (
    SupplierLedgerFilters,
    SupplierLedgerService,
)

logger = get_logger("services.export")

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

MONEY_FORMAT = "#,##0.00"

LEDGER_HEADERS = [
    "Date", "Kind", "Note", "Gross", "Net", "VAT %", "VAT amount",
    "Channel", "Supplier", "Paid now",
]
SUPPLIER_HEADERS = ["Name", "Category", "VAT %", "Purchased (gross)", "Paid", "Owed"]
VAT_HEADERS = ["Month", "Total gross", "Total net", "Total VAT"]
SUPPLIER_LEDGER_HEADERS = [
    "Date", "Type", "Description", "Invoice number", "Net", "VAT %",
    "VAT amount", "Gross", "Balance",
]


def _style_header(ws, row=1):
    """Apply header styling to a worksheet row."""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = max((len(str(c.value)) for c in ws[letter] if c.value is not None), default=0)
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _format_money_columns(ws, columns, first_row=2):
    for col in columns:
        for row in range(first_row, ws.max_row + 1):
            ws.cell(row, col).number_format = MONEY_FORMAT


def _new_sheet(wb, title, headers):
    ws = wb.create_sheet(title)
    ws.append(headers)
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    return ws


def _to_bytes(wb: Workbook) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def cashbook_filename(date_from: date, date_to: date) -> str:
    return f"cashbook_export_{date_from.isoformat()}_to_{date_to.isoformat()}.xlsx"


class ExportService:
    """Builds XLSX exports for an account."""

    def __init__(
        self,
        session: Session,
        config: CashbookConfig,
        clock: Clock | None = None,
    ):
        self.session = session
        self.config = config
        self.clock = clock or SystemClock()
        self.selector = CashbookSelector(session)

    def export_cashbook(
        self,
        account_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> bytes:
        """
        Workbook of every income and expense in the range, supplier
        balances and VAT per month.

        The range defaults the same way the cash ledger's does.
        """
        ledger_service = CashLedgerService(self.session, self.config, self.clock)
        date_from, date_to = ledger_service.resolve_range(date_from, date_to)

        with LogContext.bind(account_id=account_id):
            self.selector.require_account(account_id)
            incomes = self.selector.incomes(account_id, date_from, date_to)
            expenses = self.selector.expenses(account_id, date_from, date_to)
            suppliers = self.selector.suppliers(account_id)
            names = {s.id: s.display_name for s in suppliers}

            wb = Workbook()
            wb.remove(wb.active)

            ws = _new_sheet(wb, "Ledger", LEDGER_HEADERS)
            for _, values in sorted(
                [(calendar_day(i.date), _income_row(i)) for i in incomes]
                + [(calendar_day(e.date), _expense_row(e, names)) for e in expenses],
                key=lambda pair: pair[0],
            ):
                ws.append(values)
            _format_money_columns(ws, (4, 5, 7))
            _autosize_columns(ws)

            ws = _new_sheet(wb, "Suppliers", SUPPLIER_HEADERS)
            for balance in build_supplier_balances(suppliers, expenses):
                ws.append([
                    balance.display_name,
                    balance.category,
                    balance.vat_percent if balance.vat_percent is not None else "",
                    balance.purchased,
                    balance.paid,
                    balance.owed,
                ])
            _format_money_columns(ws, (4, 5, 6))
            _autosize_columns(ws)

            ws = _new_sheet(wb, "VAT", VAT_HEADERS)
            report = build_vat_report(expenses, names)
            for line in report.by_month:
                ws.append([line.key, line.gross_amount, line.net_amount, line.vat_amount])
            _format_money_columns(ws, (2, 3, 4))
            _autosize_columns(ws)

            data = _to_bytes(wb)
            logger.info("cashbook_exported", extra={
                "date_from": date_from.isoformat(),
                "date_to": date_to.isoformat(),
                "income_count": len(incomes),
                "expense_count": len(expenses),
                "size_bytes": len(data),
            })
        return data

    def export_supplier_ledger(
        self,
        account_id: int,
        supplier_id: int,
        filters: SupplierLedgerFilters | None = None,
    ) -> bytes:
        """Workbook with the supplier's (filtered) ledger rows and totals."""
        view = SupplierLedgerService(self.session, self.config).supplier_ledger(
            account_id, supplier_id, filters,
        )

        wb = Workbook()
        ws = wb.active
        ws.title = "Supplier"
        ws.append(SUPPLIER_LEDGER_HEADERS)
        _style_header(ws, 1)
        ws.freeze_panes = "A2"

        for row in view.rows:
            ws.append([
                row.date.strftime("%Y-%m-%d"),
                row.type.value,
                row.description,
                row.invoice_number or "",
                row.net_amount,
                row.vat_rate,
                row.vat_amount,
                row.gross_amount,
                row.running_balance,
            ])

        summary = view.summary
        ws.append([])
        for label, value in (
            ("Total invoiced", summary.total_invoiced),
            ("Total paid", summary.total_paid),
            ("Outstanding", summary.outstanding),
            ("Total net", summary.total_net),
            ("Total VAT", summary.total_vat),
        ):
            ws.append([label, value])
            ws.cell(ws.max_row, 1).font = Font(bold=True)
            ws.cell(ws.max_row, 2).number_format = MONEY_FORMAT

        _format_money_columns(ws, (5, 7, 8, 9))
        _autosize_columns(ws)

        data = _to_bytes(wb)
        with LogContext.bind(account_id=account_id, supplier_id=supplier_id):
            logger.info("supplier_ledger_exported", extra={
                "row_count": len(view.rows),
                "size_bytes": len(data),
            })
        return data


def _income_row(income: Income) -> list:
    return [
        calendar_day(income.date).isoformat(),
        "Income",
        income.note,
        income.amount,
        income.net_amount,
        0,
        0,
        income.channel.value,
        "-",
        "-",
    ]


def _expense_row(expense: Expense, names: dict[int, str]) -> list:
    return [
        calendar_day(expense.date).isoformat(),
        expense.type.value,
        expense.note,
        expense.gross_amount,
        expense.net_amount,
        expense.vat_percent,
        expense.vat_amount,
        "-",
        names.get(expense.supplier_id, "-") if expense.supplier_id is not None else "-",
        "Yes" if expense.paid_now else "No",
    ]
