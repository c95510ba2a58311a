"""
Typed exception hierarchy for the cashbook.

Every error carries a class-level ``code`` (machine-readable, API-safe) and
stores its context as attributes so it survives logging and serialization.

    CashbookError (base)
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- SupplierNotFoundError
    |   +-- RecordNotFoundError
    |
    +-- SupplierInUseError
    +-- InvalidDateRangeError
    +-- InvalidCurrencyError
    +-- ConfigurationError

The computation engines do not raise these.  They are raised by the storage
and service layers, where a missing row or a malformed request is detected.
"""

from datetime import date


class CashbookError(Exception):
    """Base exception for all cashbook errors."""

    code: str = "CASHBOOK_ERROR"


class NotFoundError(CashbookError):
    """Base exception for missing rows."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account with given ID does not exist."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class SupplierNotFoundError(NotFoundError):
    """Supplier does not exist within the account."""

    code: str = "SUPPLIER_NOT_FOUND"

    def __init__(self, account_id: int, supplier_id: int):
        self.account_id = account_id
        self.supplier_id = supplier_id
        super().__init__(
            f"Supplier {supplier_id} not found for account {account_id}"
        )


class RecordNotFoundError(NotFoundError):
    """An income, expense or supplier transaction does not exist."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_type: str, record_id: int):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(f"{record_type} not found: {record_id}")


class InvalidDateRangeError(CashbookError):
    """Requested date range ends before it starts."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, date_from: date, date_to: date):
        self.date_from = date_from
        self.date_to = date_to
        super().__init__(
            f"Invalid date range: {date_from.isoformat()} is after {date_to.isoformat()}"
        )


class InvalidCurrencyError(CashbookError):
    """Currency code is not a known ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class ConfigurationError(CashbookError):
    """Configuration file is missing a value or holds an invalid one."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")


class SupplierInUseError(CashbookError):
    """Supplier cannot be deleted while expenses still reference it."""

    code: str = "SUPPLIER_IN_USE"

    def __init__(self, supplier_id: int, expense_count: int):
        self.supplier_id = supplier_id
        self.expense_count = expense_count
        super().__init__(
            f"Supplier {supplier_id} is referenced by {expense_count} expense(s)"
        )
