# src/itsm_source/plugins/sources/reader.py
"""Forward-only record reader for one split.

The reader fetches its split's page on the first advance(), builds the
schema once from that page, and then decodes rows one at a time:

    reader = TableRecordReader(split, fetcher, page_size=1000)
    while reader.advance():
        record = reader.current_record()

A split covers exactly one page. Reading further pages is the job of split
planning, which creates one split per page window.
"""

from __future__ import annotations

from collections.abc import Iterator

from itsm_source.contracts import (
    RawRow,
    RecordDecodeError,
    SourceError,
    Split,
    TableSchema,
    TypedRecord,
)
from itsm_source.core.logging import get_logger
from itsm_source.plugins.sources.coercion import convert_field
from itsm_source.plugins.sources.fetcher import PagedTableFetcher
from itsm_source.plugins.sources.schema_builder import ensure_schema

logger = get_logger(__name__)


class TableRecordReader:
    """Lazy cursor over the rows of one split, decoding them into typed records.

    Args:
        split: Table and offset to read
        fetcher: Fetcher used for the single page request
        page_size: Rows per page
        start_date: Optional inclusive lower bound on sys_updated_on (YYYY-MM-DD)
        end_date: Optional inclusive upper bound on sys_updated_on (YYYY-MM-DD)
        table_name_field: Reporting mode field holding the table name, or
            None in table mode
    """

    def __init__(
        self,
        split: Split,
        fetcher: PagedTableFetcher,
        *,
        page_size: int,
        start_date: str | None = None,
        end_date: str | None = None,
        table_name_field: str | None = None,
    ) -> None:
        self._split = split
        self._fetcher = fetcher
        self._page_size = page_size
        self._start_date = start_date
        self._end_date = end_date
        self._table_name_field = table_name_field

        self._rows: Iterator[RawRow] | None = None
        self._row: RawRow | None = None
        self._schema: TableSchema | None = None
        self._exhausted = False
        self.pos = 0

    @property
    def split(self) -> Split:
        return self._split

    @property
    def schema(self) -> TableSchema | None:
        """Schema discovered from the first non-empty page, if any."""
        return self._schema

    @property
    def fetched(self) -> bool:
        return self._rows is not None

    def advance(self) -> bool:
        """Move to the next row, fetching the page on the first call.

        Returns:
            True if a row is available via current_record(), False once the
            page is exhausted (and on every call after that).
        """
        if self._exhausted:
            return False
        rows = self._rows
        if rows is None:
            rows = self._rows = self._fetch()

        row = next(rows, None)
        if row is None:
            self._exhausted = True
            self._row = None
            return False

        self._row = row
        self.pos += 1
        return True

    def current_record(self) -> TypedRecord:
        """Decode the current row into a record in schema order.

        Raises:
            RuntimeError: If advance() has not returned True for this row.
            RecordDecodeError: If any field fails to decode. The whole row
                fails; the original error is chained.
        """
        if self._row is None or self._schema is None:
            raise RuntimeError("current_record() called without a current row; call advance() first")

        table_name = self._split.table_name
        record: TypedRecord = {}
        for field in self._schema.table_fields:
            try:
                record[field.name] = convert_field(field.name, field.field_type, self._row)
            except (SourceError, ValueError, TypeError) as e:
                logger.error(
                    "Error decoding row",
                    table=table_name,
                    field=field.name,
                    position=self.pos,
                    error=str(e),
                )
                raise RecordDecodeError(table_name, field.name, str(e)) from e

        if self._schema.table_name_field is not None:
            record[self._schema.table_name_field] = table_name
        return record

    def __iter__(self) -> Iterator[TypedRecord]:
        while self.advance():
            yield self.current_record()

    def close(self) -> None:
        """Drop the buffered page."""
        self._rows = iter(())
        self._row = None
        self._exhausted = True

    def _fetch(self) -> Iterator[RawRow]:
        page = self._fetcher.fetch_page(
            self._split.table_name,
            self._start_date,
            self._end_date,
            self._split.offset,
            self._page_size,
        )
        logger.debug("Page buffered", table=self._split.table_name, size=len(page.rows))
        self._schema = ensure_schema(page, self._split.table_name, self._table_name_field)
        return iter(page.rows)
