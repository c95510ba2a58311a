"""
cashbook_services -- Stateful orchestration over the engines and the kernel.

Each service takes a caller-owned SQLAlchemy Session and the active
CashbookConfig; services that need "today" or "now" also take a Clock.

Usage:
    from cashbook_config import get_active_config
    from cashbook_kernel.db import init_engine_from_url, initialize, session_scope
    from cashbook_services import BookkeepingService, CashLedgerService

    config = get_active_config()
    init_engine_from_url(config.database.url, echo=config.database.echo)
    initialize()

    with session_scope() as session:
        ledger = CashLedgerService(session, config).daily_ledger(account_id)
"""

from cashbook_services.bookkeeping_service import UNCHANGED, BookkeepingService
from cashbook_services.export_service import XLSX_CONTENT_TYPE, ExportService
from cashbook_services.ledger_service import CashLedger, CashLedgerService, Dashboard
from cashbook_services.supplier_ledger_service import (
    SupplierLedgerFilters,
    SupplierLedgerService,
    SupplierLedgerView,
)

__all__ = [
    "BookkeepingService",
    "CashLedger",
    "CashLedgerService",
    "Dashboard",
    "ExportService",
    "SupplierLedgerFilters",
    "SupplierLedgerService",
    "SupplierLedgerView",
    "UNCHANGED",
    "XLSX_CONTENT_TYPE",
]
