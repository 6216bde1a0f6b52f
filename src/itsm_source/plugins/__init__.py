# src/itsm_source/plugins/__init__.py
"""Plugin infrastructure for itsm-source.

- Protocols: Type contracts for sources and the remote Table API
- Base classes: BaseSource with lifecycle hooks
- Schemas: Pydantic output schemas generated from discovered tables
- Config: Typed plugin configuration with strict validation
"""

from itsm_source.plugins.base import BaseSource
from itsm_source.plugins.config_base import (
    CredentialsConfig,
    PluginConfig,
    PluginConfigError,
)
from itsm_source.plugins.context import PluginContext
from itsm_source.plugins.protocols import SourceProtocol, TableApiProtocol
from itsm_source.plugins.schemas import (
    DynamicRowSchema,
    PluginSchema,
    schema_model_for,
)

__all__ = [
    # Base
    "BaseSource",
    # Config
    "CredentialsConfig",
    "PluginConfig",
    "PluginConfigError",
    # Context
    "PluginContext",
    # Protocols
    "SourceProtocol",
    "TableApiProtocol",
    # Schemas
    "DynamicRowSchema",
    "PluginSchema",
    "schema_model_for",
]
