"""
Configuration Loader (``cashbook_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses each section into the typed
``cashbook_config.schema`` dataclasses.  Callers should go through
``cashbook_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Monetary and percentage values are parsed as ``Decimal``; floats in the
  YAML are rejected so no value passes through binary floating point.
* Every invalid value raises ``ConfigurationError`` naming the offending
  key.  Missing keys fall back to the schema defaults.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``ConfigurationError`` wrapping ``yaml.YAMLError``.
* Wrong type or out-of-range value  -> ``ConfigurationError``.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from cashbook_config.schema import (
    AccountDefaults,
    CashbookConfig,
    DatabaseConfig,
    LedgerConfig,
    LoggingConfig,
)
from cashbook_kernel.domain.currency import CurrencyRegistry
from cashbook_kernel.exceptions import ConfigurationError

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        ConfigurationError: if the file is not valid YAML or not a mapping.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(str(path), f"invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(name, "section must be a mapping")
    return value


def parse_decimal(key: str, value: Any, *, non_negative: bool = True) -> Decimal:
    """Parse a decimal from a YAML string or integer."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ConfigurationError(key, f"must be a quoted decimal string, got {value!r}")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ConfigurationError(key, f"not a decimal: {value!r}") from e
    if not result.is_finite():
        raise ConfigurationError(key, f"not a finite decimal: {value!r}")
    if non_negative and result < 0:
        raise ConfigurationError(key, f"cannot be negative: {value!r}")
    return result


def parse_ledger(data: dict[str, Any]) -> LedgerConfig:
    """Parse the ``ledger`` section."""
    defaults = LedgerConfig()
    range_days = data.get("default_range_days", defaults.default_range_days)
    if isinstance(range_days, bool) or not isinstance(range_days, int) or range_days < 1:
        raise ConfigurationError(
            "ledger.default_range_days", f"must be a positive integer, got {range_days!r}"
        )
    return LedgerConfig(
        legacy_vat_percent=parse_decimal(
            "ledger.legacy_vat_percent",
            data.get("legacy_vat_percent", defaults.legacy_vat_percent),
        ),
        default_range_days=range_days,
        opening_balance_label=str(
            data.get("opening_balance_label", defaults.opening_balance_label)
        ),
    )


def parse_defaults(data: dict[str, Any]) -> AccountDefaults:
    """Parse the ``defaults`` section."""
    defaults = AccountDefaults()
    currency = str(data.get("currency", defaults.currency)).strip().upper()
    if not CurrencyRegistry.is_valid(currency):
        raise ConfigurationError("defaults.currency", f"unknown currency code {currency!r}")
    return AccountDefaults(
        starting_balance=parse_decimal(
            "defaults.starting_balance",
            data.get("starting_balance", defaults.starting_balance),
            non_negative=False,
        ),
        default_vat_percent=parse_decimal(
            "defaults.default_vat_percent",
            data.get("default_vat_percent", defaults.default_vat_percent),
        ),
        delivery_fee_percent=parse_decimal(
            "defaults.delivery_fee_percent",
            data.get("delivery_fee_percent", defaults.delivery_fee_percent),
        ),
        currency=currency,
    )


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse the ``database`` section."""
    defaults = DatabaseConfig()
    url = data.get("url", defaults.url)
    if not isinstance(url, str) or not url:
        raise ConfigurationError("database.url", "must be a non-empty string")
    echo = data.get("echo", defaults.echo)
    if not isinstance(echo, bool):
        raise ConfigurationError("database.echo", f"must be true or false, got {echo!r}")
    return DatabaseConfig(url=url, echo=echo)


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    """Parse the ``logging`` section."""
    level = str(data.get("level", LoggingConfig().level)).upper()
    if level not in _VALID_LOG_LEVELS:
        raise ConfigurationError("logging.level", f"unknown level {level!r}")
    return LoggingConfig(level=level)


def parse_config(data: dict[str, Any], source_path: Path | None = None) -> CashbookConfig:
    """Parse a complete configuration mapping."""
    return CashbookConfig(
        ledger=parse_ledger(_section(data, "ledger")),
        defaults=parse_defaults(_section(data, "defaults")),
        database=parse_database(_section(data, "database")),
        logging=parse_logging(_section(data, "logging")),
        source_path=source_path,
    )


def load_config(path: Path) -> CashbookConfig:
    """Load and parse a configuration file."""
    return parse_config(load_yaml_file(path), source_path=path)


def log_level(config: CashbookConfig) -> int:
    """Numeric ``logging`` level for the configured level name."""
    return logging.getLevelName(config.logging.level)
