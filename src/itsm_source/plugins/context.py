# src/itsm_source/plugins/context.py
"""Plugin execution context.

The PluginContext carries run metadata a plugin might need while loading.
"""

from dataclasses import dataclass


@dataclass
class PluginContext:
    """Context passed to every plugin operation.

    run_id ties a plugin's log lines to one CLI invocation.
    """

    run_id: str
