"""
cashbook_engines.tracer -- CASHBOOK_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` logs one trace record per engine call: the engine's
    name and version, how long the call took and a fingerprint of the
    arguments that determine its output.  Two calls with the same
    fingerprint over the same records must give the same result.

Architecture position:
    Engines -- support code.  Writes a log record and nothing else; the
    engine function itself stays pure.

Invariants enforced:
    - The fingerprint is the first 16 hex digits of the SHA-256 of a
      canonical JSON rendering: sorted keys, decimals and dates as strings,
      enums as their values, dataclasses as dicts.
    - Arguments are read, never modified.

Usage:
    @traced_engine("daily_ledger", "1.0", fingerprint_fields=("date_from", "date_to"))
    def build_daily_ledger(starting_balance, incomes, expenses, date_from, date_to):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from cashbook_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_MESSAGE = "CASHBOOK_ENGINE_TRACE"


def _plain(value: Any) -> Any:
    """JSON fallback for the value types engines receive."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, date)):
        return value.isoformat() if isinstance(value, date) else str(value)
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Fingerprint of the named arguments; absent ones count as null."""
    selected = {name: arguments.get(name) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, default=_plain, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[Callable], Callable]:
    """
    Decorate an engine function so each call is traced.

    Args:
        engine_name: Name in the trace, e.g. "supplier_ledger".
        engine_version: Bumped whenever the engine's output changes.
        fingerprint_fields: Parameter names, given positionally or by
            keyword, that go into the fingerprint.
    """

    def wrap(engine: Callable) -> Callable:
        signature = inspect.signature(engine)

        @functools.wraps(engine)
        def traced(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound)

            started = time.monotonic()
            result = engine(*args, **kwargs)
            elapsed_ms = round((time.monotonic() - started) * 1000, 2)

            _logger.info(TRACE_MESSAGE, extra={
                "trace_type": TRACE_MESSAGE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": elapsed_ms,
                "function": engine.__qualname__,
            })
            return result

        return traced

    return wrap
