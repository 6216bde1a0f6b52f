# tests/conftest.py
"""Shared test fixtures and helpers.

This module provides an in-memory Table API so the fetch/decode cycle can be
tested without HTTP.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import os
from collections.abc import Callable
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from itsm_source.contracts import ColumnInfo
from itsm_source.plugins.context import PluginContext

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Fake Table API
# =============================================================================


class FakeTableApi:
    """In-memory stand-in for TableAPIClient.

    Rows are served by offset/page_size slicing. Queued failures are raised,
    one per call, before any rows are served.

    Usage:
        api = FakeTableApi(rows=[{"number": "1"}], catalog=[ColumnInfo("number", "integer")])
        api.record_failures = [RetriableError("busy")]
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        catalog: list[ColumnInfo] | None = None,
    ) -> None:
        self.rows = rows or []
        self.catalog = catalog
        self.record_failures: list[Exception] = []
        self.schema_failures: list[Exception] = []
        self.record_calls: list[tuple[Any, ...]] = []
        self.schema_calls: list[tuple[Any, ...]] = []
        self.count_calls: list[tuple[Any, ...]] = []
        self.closed = False

    def fetch_table_records(
        self,
        table_name: str,
        start_date: str | None,
        end_date: str | None,
        offset: int,
        page_size: int,
    ) -> list[dict[str, Any]]:
        self.record_calls.append((table_name, start_date, end_date, offset, page_size))
        if self.record_failures:
            raise self.record_failures.pop(0)
        if not table_name:
            return []
        return self.rows[offset : offset + page_size]

    def fetch_table_schema(
        self,
        table_name: str,
        filter: str | None = None,
        fields: str | None = None,
        include_display_values: bool = False,
    ) -> list[ColumnInfo] | None:
        self.schema_calls.append((table_name, filter, fields, include_display_values))
        if self.schema_failures:
            raise self.schema_failures.pop(0)
        return self.catalog

    def fetch_record_count(
        self,
        table_name: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> int:
        self.count_calls.append((table_name, start_date, end_date))
        if not table_name:
            return 0
        return len(self.rows)

    def close(self) -> None:
        self.closed = True


INCIDENT_CATALOG = [
    ColumnInfo("number", "string"),
    ColumnInfo("priority", "integer"),
    ColumnInfo("active", "boolean"),
    ColumnInfo("cost", "decimal"),
]


def incident_rows(count: int) -> list[dict[str, Any]]:
    """Rows matching INCIDENT_CATALOG."""
    return [
        {
            "number": f"INC{i:07d}",
            "priority": str(i % 5 + 1),
            "active": "true" if i % 2 == 0 else "false",
            "cost": f"{i}.5",
        }
        for i in range(count)
    ]


@pytest.fixture
def make_api() -> Callable[..., FakeTableApi]:
    """Factory for FakeTableApi instances."""
    return FakeTableApi


@pytest.fixture
def incident_api() -> FakeTableApi:
    """Fake API serving 3 incident rows with a 4-column catalog."""
    return FakeTableApi(rows=incident_rows(3), catalog=list(INCIDENT_CATALOG))


@pytest.fixture
def sleeps() -> list[float]:
    """Collects delays passed to an injected sleep function."""
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]) -> Callable[[float], None]:
    """Sleep replacement that records the delay instead of blocking."""
    return sleeps.append


@pytest.fixture
def ctx() -> PluginContext:
    """Create a minimal plugin context."""
    return PluginContext(run_id="test-run")


@pytest.fixture
def make_incident_rows() -> Callable[[int], list[dict[str, Any]]]:
    """Factory for rows matching the incident catalog."""
    return incident_rows


@pytest.fixture
def incident_catalog() -> list[ColumnInfo]:
    return list(INCIDENT_CATALOG)
