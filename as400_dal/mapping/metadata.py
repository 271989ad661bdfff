"""
Per-type column metadata for mapped records.

`MetadataRegistry.get` reads a record type's pydantic field table once,
keeps the fields carrying a `Column` marker, and caches the resulting
column -> `ColumnMeta` mapping, read-only, for the lifetime of the registry.
Hydration runs per row, so the cached path is a single dict lookup with no lock.
"""

from __future__ import annotations

import datetime as dt
import enum
import threading
import types
from typing import Any, Dict, Mapping, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel

from as400_dal.domain.models import Column, ColumnMeta, ColumnType
from as400_dal.utils.logging import get_logger

log = get_logger(__name__)

RecordMetadata = Mapping[str, ColumnMeta]

# Checked in order: enums first, bool before int, datetime before date.
_INFERRED_TYPES = (
    (enum.Enum, ColumnType.ENUM),
    (bool, ColumnType.BOOLEAN),
    (int, ColumnType.INTEGER),
    (float, ColumnType.FLOAT),
    (str, ColumnType.STRING),
    (dt.datetime, ColumnType.DATETIME),
    (dt.date, ColumnType.DATE),
    (dt.time, ColumnType.TIME),
    (bytes, ColumnType.BINARY),
    (dict, ColumnType.JSON),
    (list, ColumnType.ARRAY),
    (tuple, ColumnType.ARRAY),
)


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return _unwrap_optional(args[0])
    return annotation


def infer_column_type(annotation: Any) -> Optional[ColumnType]:
    """Map a field annotation to a semantic column type, or None when unknown."""
    annotation = _unwrap_optional(annotation)
    candidate = get_origin(annotation) or annotation
    if not isinstance(candidate, type):
        return None
    for python_type, column_type in _INFERRED_TYPES:
        if issubclass(candidate, python_type):
            return column_type
    return None


class MetadataRegistry:
    """
    Cache of column metadata keyed by record type.

    Population is guarded by a lock with a double check, so concurrent first
    use builds each entry once; reads of populated entries take no lock.
    """

    def __init__(self) -> None:
        self._cache: Dict[Type[BaseModel], RecordMetadata] = {}
        self._lock = threading.Lock()

    def get(self, record_type: Type[BaseModel]) -> RecordMetadata:
        metadata = self._cache.get(record_type)
        if metadata is not None:
            return metadata

        with self._lock:
            metadata = self._cache.get(record_type)
            if metadata is None:
                metadata = self._build(record_type)
                self._cache[record_type] = metadata
        return metadata

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._cache

    def clear(self) -> None:
        """Drop every cached entry (test harnesses only)."""
        with self._lock:
            self._cache = {}

    @staticmethod
    def _build(record_type: Type[BaseModel]) -> RecordMetadata:
        if not (isinstance(record_type, type) and issubclass(record_type, BaseModel)):
            raise TypeError(f"{record_type!r} is not a mapped record type")

        metadata: Dict[str, ColumnMeta] = {}
        for attribute, field_info in record_type.model_fields.items():
            marker = next((m for m in field_info.metadata if isinstance(m, Column)), None)
            if marker is None:
                continue
            column_name = marker.name or attribute
            if marker.type is not None:
                column_type = ColumnType(marker.type)
            else:
                column_type = infer_column_type(field_info.annotation)
            metadata[column_name] = ColumnMeta(
                attribute=attribute,
                column=column_name,
                type=column_type,
                nullable=marker.nullable,
            )

        log.debug(
            "Built column metadata",
            extra={"record_type": record_type.__qualname__, "columns": list(metadata)},
        )
        return types.MappingProxyType(metadata)


__all__ = ["MetadataRegistry", "RecordMetadata", "infer_column_type"]
