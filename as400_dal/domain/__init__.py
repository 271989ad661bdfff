"""
Domain package for the AS400 data-access layer.

Exports the declarations used to map record types onto tables and columns.
Keep this package focused on data definitions; no I/O happens here.
"""

from as400_dal.domain.models import (
    Column,
    ColumnMeta,
    ColumnType,
    Entity,
    EntityDescriptor,
    MappedRecord,
)

__all__ = [
    "Column",
    "ColumnMeta",
    "ColumnType",
    "Entity",
    "EntityDescriptor",
    "MappedRecord",
]
