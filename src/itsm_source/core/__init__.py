# src/itsm_source/core/__init__.py
"""Core infrastructure: Configuration, Logging."""

from itsm_source.core.config import (
    ConnectorSettings,
    DatasourceSettings,
    LoggingSettings,
    RetrySettings,
    load_settings,
)
from itsm_source.core.logging import (
    configure_logging,
    get_logger,
)

__all__ = [
    "ConnectorSettings",
    "DatasourceSettings",
    "LoggingSettings",
    "RetrySettings",
    "configure_logging",
    "get_logger",
    "load_settings",
]
