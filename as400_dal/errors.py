"""
Error taxonomy for the AS400 data-access layer.

The engine never swallows driver faults: every failure surfaces as one of the
exceptions below and carries the originating driver message. Downgrading them
to empty results or booleans is left to callers.
"""

from __future__ import annotations


class As400Error(Exception):
    """Base class for all errors raised by the data-access layer."""


class DatabaseConnectionError(As400Error):
    """The underlying ODBC connection could not be established."""


class DatabaseOperationError(As400Error):
    """A prepare/execute/fetch call faulted (any open transaction was rolled back)."""


class FetchError(DatabaseOperationError):
    """A fault occurred while streaming rows; already-yielded rows remain valid."""


class ValidationError(As400Error):
    """Caller misuse detected before any statement was prepared."""


__all__ = [
    "As400Error",
    "DatabaseConnectionError",
    "DatabaseOperationError",
    "FetchError",
    "ValidationError",
]
