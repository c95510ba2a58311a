"""Pure domain layer: value helpers, currency registry, records, clock."""

from cashbook_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from cashbook_kernel.domain.currency import CurrencyInfo, CurrencyRegistry, validate_currency
from cashbook_kernel.domain.records import (
    AccountSettings,
    Expense,
    ExpenseType,
    Income,
    IncomeChannel,
    Supplier,
    SupplierCategory,
    SupplierTransaction,
    SupplierTransactionType,
    calendar_day,
)
from cashbook_kernel.domain.values import ZERO, round_money, to_decimal

__all__ = [
    "AccountSettings",
    "Clock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "Expense",
    "ExpenseType",
    "Income",
    "IncomeChannel",
    "Supplier",
    "SupplierCategory",
    "SupplierTransaction",
    "SupplierTransactionType",
    "SystemClock",
    "ZERO",
    "calendar_day",
    "round_money",
    "to_decimal",
    "validate_currency",
]
