"""
cashbook_config -- single public entrypoint for cashbook configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive the returned
    ``CashbookConfig`` through their constructor and never read files or
    environment variables themselves.

Architecture position:
    Configuration -- sits above ``cashbook_kernel`` and below
    ``cashbook_services``.  The kernel and the engines MUST NEVER import
    from ``cashbook_config``.

Failure modes:
    - ``FileNotFoundError`` -- the explicit or environment-named file does
      not exist.
    - ``ConfigurationError`` -- malformed YAML or an invalid value.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``CASHBOOK_CONFIG_TRACE`` log entry recording where the configuration
    came from and its key values.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from cashbook_config.loader import load_config, log_level
from cashbook_config.schema import (
    AccountDefaults,
    CashbookConfig,
    DatabaseConfig,
    LedgerConfig,
    LoggingConfig,
)

_logger = logging.getLogger("cashbook_kernel.config")

CONFIG_ENV_VAR = "CASHBOOK_CONFIG"

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> CashbookConfig:
    """The public configuration entrypoint.

    Resolution order: ``path`` if given, else the file named by the
    ``CASHBOOK_CONFIG`` environment variable, else the packaged
    ``defaults.yaml``.

    Args:
        path: Explicit configuration file.

    Returns:
        A frozen ``CashbookConfig``.

    Raises:
        FileNotFoundError: If the selected file does not exist.
        ConfigurationError: If the file is malformed or holds invalid values.
    """
    if path is not None:
        source = Path(path)
        origin = "argument"
    elif os.environ.get(CONFIG_ENV_VAR):
        source = Path(os.environ[CONFIG_ENV_VAR])
        origin = "environment"
    else:
        source = _DEFAULT_CONFIG_PATH
        origin = "packaged_defaults"

    config = load_config(source)

    _logger.info(
        "CASHBOOK_CONFIG_TRACE",
        extra={
            "trace_type": "CASHBOOK_CONFIG_TRACE",
            "config_path": str(source),
            "config_origin": origin,
            "legacy_vat_percent": str(config.ledger.legacy_vat_percent),
            "default_range_days": config.ledger.default_range_days,
            "default_currency": config.defaults.currency,
        },
    )
    return config


__all__ = [
    "AccountDefaults",
    "CONFIG_ENV_VAR",
    "CashbookConfig",
    "DatabaseConfig",
    "LedgerConfig",
    "LoggingConfig",
    "get_active_config",
    "log_level",
]
