"""
as400-dal - typed data access for legacy AS400 / IBM i databases over ODBC.

This package maps rows of a legacy relational database onto typed records
while hiding the plumbing behind a uniform API:

- Parameterized SQL built from structured criteria, ordering and paging
- Explicit per-statement transactions with guaranteed commit/rollback
- Row-at-a-time streaming of large result sets
- Trimming and UTF-8 repair of legacy driver output
- Cached column metadata and logical -> physical schema remapping
- Audit recorders notified after committed mutations
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from as400_dal.config import Settings, get_settings
from as400_dal.domain.models import Column, ColumnType, Entity, EntityDescriptor, MappedRecord
from as400_dal.engine import Engine
from as400_dal.errors import (
    As400Error,
    DatabaseConnectionError,
    DatabaseOperationError,
    FetchError,
    ValidationError,
)
from as400_dal.infrastructure.connection import As400Connection
from as400_dal.infrastructure.db_factory import create_connection
from as400_dal.infrastructure.streaming import StreamingReader
from as400_dal.mapping.hydrator import Dehydrator, Hydrator
from as400_dal.mapping.metadata import MetadataRegistry
from as400_dal.mapping.schema import SchemaResolver
from as400_dal.recording import AbstractDataRecorder, DataRecorder, DataRecordType
from as400_dal.repository import Repository
from as400_dal.utils.logging import configure_logging, get_logger
from as400_dal.utils.normalizer import ValueNormalizer
from as400_dal.utils.profiler import QueryLogger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Declarations
    "Column",
    "ColumnType",
    "Entity",
    "EntityDescriptor",
    "MappedRecord",
    # Engine
    "Engine",
    "As400Connection",
    "Repository",
    "StreamingReader",
    "create_connection",
    # Mapping
    "Dehydrator",
    "Hydrator",
    "MetadataRegistry",
    "SchemaResolver",
    # Recording
    "AbstractDataRecorder",
    "DataRecorder",
    "DataRecordType",
    # Errors
    "As400Error",
    "DatabaseConnectionError",
    "DatabaseOperationError",
    "FetchError",
    "ValidationError",
    # Utilities
    "QueryLogger",
    "ValueNormalizer",
    "configure_logging",
    "get_logger",
]
