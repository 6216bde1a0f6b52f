"""Built-in source plugins and the fetch/decode cycle behind them.

A source reads exactly one table per run.
"""

from itsm_source.plugins.sources.fetcher import PagedTableFetcher
from itsm_source.plugins.sources.reader import TableRecordReader
from itsm_source.plugins.sources.table_source import (
    TableSource,
    TableSourceConfig,
    plan_splits,
)

__all__ = [
    "PagedTableFetcher",
    "TableRecordReader",
    "TableSource",
    "TableSourceConfig",
    "plan_splits",
]
