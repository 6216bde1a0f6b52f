# src/itsm_source/plugins/base.py
"""Base classes for plugin implementations.

These provide common functionality and ensure proper interface compliance.
Plugins can subclass these for convenience, or implement protocols directly.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

from itsm_source.plugins.context import PluginContext
from itsm_source.plugins.schemas import PluginSchema


class BaseSource(ABC):
    """Base class for source plugins.

    Subclass and implement load() and close().

    Example:
        class StaticSource(BaseSource):
            name = "static"
            output_schema = RowSchema

            def load(self, ctx: PluginContext) -> Iterator[dict]:
                yield from self.config["rows"]

            def close(self) -> None:
                pass
    """

    name: str
    output_schema: type[PluginSchema]

    plugin_version: str = "0.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize with configuration."""
        self.config = config

    @abstractmethod
    def load(self, ctx: PluginContext) -> Iterator[dict[str, Any]]:
        """Load and yield records from the source.

        Args:
            ctx: Plugin context

        Yields:
            Record dicts matching output_schema
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Clean up resources."""
        ...

    # === Lifecycle Hooks ===

    def on_start(self, ctx: PluginContext) -> None:  # noqa: B027
        """Called before load()."""

    def on_complete(self, ctx: PluginContext) -> None:  # noqa: B027
        """Called after load() completes (before close)."""
