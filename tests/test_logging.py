"""JSON log output, log context and logger configuration."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from cashbook_kernel.exceptions import SupplierNotFoundError
from cashbook_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


class JsonSink:
    """Handler plus the JSON lines it has written."""

    def __init__(self):
        self.buffer = StringIO()
        self.handler = logging.StreamHandler(self.buffer)
        self.handler.setFormatter(StructuredFormatter())

    def records(self) -> list[dict]:
        return [json.loads(line) for line in self.buffer.getvalue().splitlines() if line]

    def only(self) -> dict:
        (record,) = self.records()
        return record


@pytest.fixture
def sink():
    """Fresh logging configuration writing into a JsonSink."""
    reset_logging()
    LogContext.clear()
    target = JsonSink()
    configure_logging(level=logging.DEBUG, handler=target.handler)
    yield target
    LogContext.clear()
    reset_logging()


class TestRecordShape:

    def test_standard_keys(self, sink):
        get_logger("ledger").info("ledger_built")

        record = sink.only()
        assert record["message"] == "ledger_built"
        assert record["level"] == "INFO"
        assert record["logger"] == "cashbook_kernel.ledger"
        assert record["ts"].endswith("+00:00")

    def test_extras_become_top_level_keys(self, sink):
        get_logger("services").info("expense_created", extra={"expense_id": 3, "kind": "SUPPLIER"})

        record = sink.only()
        assert record["expense_id"] == 3
        assert record["kind"] == "SUPPLIER"

    def test_money_and_dates_as_strings(self, sink):
        get_logger("services").info(
            "balance", extra={"closing": Decimal("100.10"), "on": date(2024, 5, 31)},
        )

        record = sink.only()
        assert record["closing"] == "100.10"
        assert record["on"] == "2024-05-31"

    def test_context_merged(self, sink):
        LogContext.set(account_id=12, actor_id="owner")
        get_logger("services").warning("settings_changed")

        record = sink.only()
        assert record["account_id"] == "12"
        assert record["actor_id"] == "owner"
        assert "supplier_id" not in record


class TestExceptionFields:

    def test_plain_exception(self, sink):
        try:
            int("x")
        except ValueError:
            get_logger("services").exception("parse_failed")

        record = sink.only()
        assert record["level"] == "ERROR"
        assert record["exc_type"] == "ValueError"
        assert "invalid literal" in record["exc_message"]
        assert "Traceback" in record["traceback"]

    def test_cashbook_error_attributes(self, sink):
        try:
            raise SupplierNotFoundError(4, 17)
        except SupplierNotFoundError:
            get_logger("services").exception("lookup_failed")

        record = sink.only()
        assert record["exc_type"] == "SupplierNotFoundError"
        assert record["exc_code"] == "SUPPLIER_NOT_FOUND"
        assert record["exc_account_id"] == 4
        assert record["exc_supplier_id"] == 17


class TestLogContext:

    def test_bind_is_scoped(self):
        LogContext.clear()
        LogContext.set(account_id=1)
        with LogContext.bind(account_id=2, supplier_id=9):
            assert LogContext.get_all() == {"account_id": "2", "supplier_id": "9"}
        assert LogContext.get_all() == {"account_id": "1"}
        LogContext.clear()

    def test_none_values_ignored(self):
        LogContext.clear()
        with LogContext.bind(correlation_id=None, actor_id="cashier"):
            assert LogContext.get_all() == {"actor_id": "cashier"}
        assert LogContext.get_all() == {}

    def test_unknown_names_ignored(self):
        LogContext.clear()
        LogContext.set(table="expenses", account_id=3)
        with LogContext.bind(table="revenues"):
            assert LogContext.get_all() == {"account_id": "3"}
        LogContext.clear()

    def test_clear_empties_everything(self):
        LogContext.set(correlation_id="req-1", supplier_id=3)
        LogContext.clear()

        assert LogContext.get_all() == {}


class TestConfigureLogging:

    def test_second_call_is_ignored(self, sink):
        late = JsonSink()
        configure_logging(handler=late.handler)

        get_logger("db").info("engine_initialized")

        assert len(sink.records()) == 1
        assert late.records() == []

    def test_level_filters_records(self):
        reset_logging()
        target = JsonSink()
        configure_logging(level="WARNING", handler=target.handler)
        try:
            logger = get_logger("db")
            logger.debug("noise")
            logger.info("noise")
            logger.warning("session_rolled_back")
        finally:
            reset_logging()

        assert [r["message"] for r in target.records()] == ["session_rolled_back"]

    def test_engines_emit_traces(self, sink):
        from cashbook_engines.daily_ledger import build_daily_ledger

        build_daily_ledger(Decimal("50"), [], [], date(2024, 2, 1), date(2024, 2, 3))

        traces = [r for r in sink.records() if r["message"] == "CASHBOOK_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "daily_ledger"
        assert len(traces[0]["input_fingerprint"]) == 16
