"""
Structured logging for the cashbook.

Every logger lives under the ``cashbook_kernel`` namespace and writes one
JSON object per line.  Request-scoped fields (account, supplier, actor,
correlation id) are held in context variables and merged into every record
emitted while they are set.

Usage:
    from cashbook_kernel.logging_config import LogContext, get_logger

    logger = get_logger("services.bookkeeping")
    with LogContext.bind(account_id=account_id):
        logger.info("income_created", extra={"amount": str(amount)})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Iterator

_NAMESPACE = "cashbook_kernel"

_CONTEXT_FIELDS = ("correlation_id", "account_id", "supplier_id", "actor_id")

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"cashbook_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """Context fields attached to every log record; safe across threads and tasks."""

    @staticmethod
    def set(**fields: Any) -> None:
        """Set the given fields.  None and unknown names leave the context untouched."""
        for name, value in fields.items():
            if value is not None and name in _context_vars:
                _context_vars[name].set(str(value))

    @staticmethod
    def get_all() -> dict[str, str]:
        values = {name: var.get() for name, var in _context_vars.items()}
        return {name: value for name, value in values.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _context_vars.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        tokens = [
            (_context_vars[name], _context_vars[name].set(str(value)))
            for name, value in fields.items()
            if value is not None and name in _context_vars
        ]
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON line per record: timestamp, level, logger, message, context, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RESERVED and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger ``cashbook_kernel.<name>``."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


_state_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``cashbook_kernel`` logger.

    Only the first call has an effect until ``reset_logging()``.
    """
    global _configured
    with _state_lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    namespace_logger = logging.getLogger(_NAMESPACE)
    namespace_logger.setLevel(level)
    namespace_logger.propagate = False
    namespace_logger.addHandler(handler)


def reset_logging() -> None:
    """Remove handlers and allow ``configure_logging()`` again.  Tests only."""
    global _configured
    with _state_lock:
        _configured = False
    namespace_logger = logging.getLogger(_NAMESPACE)
    namespace_logger.handlers.clear()
    namespace_logger.setLevel(logging.WARNING)
