"""ORM models.  Importing this package registers every table on Base.metadata."""

from cashbook_kernel.models.account import Account, AccountSettingsRecord
from cashbook_kernel.models.expense import ExpenseRecord
from cashbook_kernel.models.revenue import RevenueRecord
from cashbook_kernel.models.supplier import SupplierRecord, SupplierTransactionRecord

__all__ = [
    "Account",
    "AccountSettingsRecord",
    "ExpenseRecord",
    "RevenueRecord",
    "SupplierRecord",
    "SupplierTransactionRecord",
]
