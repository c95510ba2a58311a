"""
Cashbook configuration schema.

Frozen dataclasses the YAML file is parsed into.  One dataclass per
top-level YAML section; ``CashbookConfig`` holds them all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger computation settings."""

    legacy_vat_percent: Decimal = Decimal("10")  # Rate for supplier entries with none stored
    default_range_days: int = 30
    opening_balance_label: str = "Opening balance"


@dataclass(frozen=True)
class AccountDefaults:
    """Settings given to an account that has no settings row yet."""

    starting_balance: Decimal = Decimal("0")
    default_vat_percent: Decimal = Decimal("20")
    delivery_fee_percent: Decimal = Decimal("0")
    currency: str = "RSD"


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///cashbook.db"
    echo: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class CashbookConfig:
    """Complete runtime configuration."""

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    defaults: AccountDefaults = field(default_factory=AccountDefaults)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source_path: Path | None = None
