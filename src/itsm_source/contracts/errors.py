"""Exception hierarchy for the fetch/decode cycle.

RetriableError is the only signal the fetcher masks. Every other error here
propagates to the caller and ends the current split.
"""

from __future__ import annotations


class SourceError(Exception):
    """Base class for errors raised while reading a table."""


class RetriableError(SourceError):
    """Transient remote failure (rate limit, timeout, server fault).

    Eligible for bounded retry with backoff.

    Attributes:
        status_code: HTTP status when the failure was an HTTP response,
            None for transport-level failures.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ApiError(SourceError):
    """Non-retriable remote failure (auth rejection, malformed payload)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class UnsupportedFieldTypeError(SourceError):
    """Schema declares a type the decoder cannot produce."""


class RecordDecodeError(SourceError):
    """A field of the current row could not be decoded.

    The original exception is chained as __cause__.
    """

    def __init__(self, table_name: str, field_name: str, message: str) -> None:
        self.table_name = table_name
        self.field_name = field_name
        super().__init__(
            f"Error decoding field {field_name!r} of row from table {table_name!r}: {message}"
        )
