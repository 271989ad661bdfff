"""
Infrastructure package for the AS400 data-access layer.

Centralizes database connectivity concerns (ODBC connection factory,
transactional execution, streaming reads). Keep this layer focused on I/O
and resource management, decoupled from record mapping.
"""

from as400_dal.infrastructure.connection import As400Connection
from as400_dal.infrastructure.db_factory import (
    build_connection_string,
    connect,
    create_connection,
)
from as400_dal.infrastructure.streaming import StreamingReader

__all__ = [
    "As400Connection",
    "StreamingReader",
    "build_connection_string",
    "connect",
    "create_connection",
]
