"""Database layer - engine, base classes and column types."""

from cashbook_kernel.db.base import Base, TrackedBase
from cashbook_kernel.db.engine import (
    get_engine,
    get_session,
    init_engine_from_url,
    initialize,
    reset_engine,
    session_scope,
)
from cashbook_kernel.db.types import Currency, DecimalString, LongText, Money, Percent, ShortCode

__all__ = [
    "Base",
    "TrackedBase",
    "DecimalString",
    "Money",
    "Percent",
    "Currency",
    "ShortCode",
    "LongText",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "initialize",
    "reset_engine",
    "session_scope",
]
