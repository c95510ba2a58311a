"""
Pytest fixtures for the cashbook test suite.

Provides:
- Structured logging configured for every test, with captured JSON records
- An in-memory SQLite session with the schema initialized
- The packaged default configuration
- A deterministic clock
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from cashbook_config import CONFIG_ENV_VAR, get_active_config
from cashbook_kernel.db.engine import (
    get_session,
    init_engine_from_url,
    initialize,
    reset_engine,
)
from cashbook_kernel.domain.clock import DeterministicClock
from cashbook_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

TEST_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture cashbook_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            build_daily_ledger(...)
            logs = captured_logs()
            assert any(r["message"] == "daily_ledger_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("cashbook_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration, clock and database
# =============================================================================


@pytest.fixture
def config(monkeypatch):
    """The packaged default configuration."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    return get_active_config()


@pytest.fixture
def clock():
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def session():
    """A session on a fresh in-memory database."""
    init_engine_from_url("sqlite://")
    initialize()
    s = get_session()
    try:
        yield s
    finally:
        s.rollback()
        s.close()
        reset_engine()


@pytest.fixture
def book(session, config, clock):
    """BookkeepingService on the test session."""
    from cashbook_services.bookkeeping_service import BookkeepingService

    return BookkeepingService(session, config, clock)


@pytest.fixture
def account_id(book):
    return book.create_account("Bistro", "bistro")
