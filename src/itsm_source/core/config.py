# src/itsm_source/core/config.py
"""
Configuration schema and loading for itsm-source runs.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_BACKOFF_SECONDS: tuple[float, ...] = (60.0, 120.0, 240.0)


class DatasourceSettings(BaseModel):
    """Source plugin configuration."""

    model_config = {"frozen": True}

    plugin: str = Field(
        default="servicenow_table",
        description="Source plugin name",
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Plugin-specific options (validated by the plugin)",
    )


class RetrySettings(BaseModel):
    """Retry behavior for transient API failures.

    backoff_seconds[i] is the delay before retry i+1, so its length is the
    number of retries after the initial attempt. The schedule is a flat
    table, not exponential.
    """

    model_config = {"frozen": True}

    backoff_seconds: tuple[float, ...] = Field(
        default=DEFAULT_BACKOFF_SECONDS,
        description="Delay before each retry, in seconds",
    )

    @field_validator("backoff_seconds")
    @classmethod
    def validate_delays_not_negative(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if any(delay < 0 for delay in v):
            raise ValueError("backoff_seconds entries must be >= 0")
        return v

    @property
    def max_retries(self) -> int:
        return len(self.backoff_seconds)


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    format: Literal["json", "console"] = Field(
        default="console",
        description="Render logs as JSON lines or human-readable console output",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class ConnectorSettings(BaseModel):
    """Top-level itsm-source configuration.

    This is the single source of truth for a run. All settings are
    validated and frozen after construction.
    """

    model_config = {"frozen": True}

    datasource: DatasourceSettings = Field(
        description="Source plugin configuration",
    )
    retry: RetrySettings = Field(
        default_factory=RetrySettings,
        description="Retry behavior configuration",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )


def load_settings(config_path: Path) -> ConnectorSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (ITSM_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: ITSM_DATASOURCE__OPTIONS__PASSWORD for
    nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated ConnectorSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="ITSM",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase top-level keys; Pydantic expects lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): v
        for k, v in dynaconf_settings.as_dict().items()
        if k not in internal_keys
    }
    return ConnectorSettings(**raw_config)
