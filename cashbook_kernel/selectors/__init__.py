"""Read-only selectors returning domain records."""

from cashbook_kernel.selectors.base import BaseSelector
from cashbook_kernel.selectors.cashbook_selector import CashbookSelector

__all__ = [
    "BaseSelector",
    "CashbookSelector",
]
