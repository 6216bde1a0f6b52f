# src/itsm_source/plugins/config_base.py
"""Base classes for typed plugin configurations.

This module provides base classes that plugins inherit from to get:
- Strict validation (reject unknown fields)
- Factory methods with clear error messages
- Common validation patterns (credentials, endpoint handling)

Example usage:
    class TableSourceConfig(CredentialsConfig):
        table_name: str | None = None
        page_size: int = 5000

    cfg = TableSourceConfig.from_dict(config)
    url = cfg.base_url()  # Direct access, fails fast if missing
"""

from typing import Any, Self

from pydantic import BaseModel, ValidationError, ValidationInfo, field_validator


class PluginConfigError(Exception):
    """Raised when plugin configuration is invalid."""

    pass


class PluginConfig(BaseModel):
    """Base class for typed plugin configurations.

    Provides common validation patterns and helpful error messages.
    All plugin configs should inherit from this class.
    """

    model_config = {"extra": "forbid"}  # Reject unknown fields

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """Create config from dict with clear error on validation failure.

        Args:
            config: Dictionary of configuration values.

        Returns:
            Validated configuration instance.

        Raises:
            PluginConfigError: If configuration is invalid.
        """
        try:
            return cls(**config)
        except ValidationError as e:
            raise PluginConfigError(
                f"Invalid configuration for {cls.__name__}: {e}"
            ) from e


class CredentialsConfig(PluginConfig):
    """Base for configs that connect to a ServiceNow instance.

    The instance authenticates with an OAuth2 password grant, so all five
    values are required.
    """

    client_id: str
    client_secret: str
    api_endpoint: str
    user: str
    password: str

    @field_validator("client_id", "client_secret", "api_endpoint", "user", "password")
    @classmethod
    def validate_not_empty(cls, v: str, info: ValidationInfo) -> str:
        """Validate that a credential is not empty or whitespace-only."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v

    def base_url(self) -> str:
        """Instance URL without a trailing slash.

        Example: https://instance.service-now.com
        """
        return self.api_endpoint.strip().rstrip("/")
