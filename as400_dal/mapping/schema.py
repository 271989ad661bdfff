"""
Database/table/identifier resolution for mapped record types.

A record type declares a logical database (library) name; deployments can
point it at a different physical library through a schema mapping, e.g.
``{"DICADCDE": "ICADCDE"}`` in a test environment, without touching the
record classes.
"""

from __future__ import annotations

import threading
from typing import Dict, Mapping, Optional, Type

from as400_dal.domain.models import Column, Entity, EntityDescriptor
from as400_dal.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_IDENTIFIER = "id"


class SchemaResolver:
    """
    Resolve and cache `EntityDescriptor`s per record type.

    Replacing the schema mapping invalidates the cache; otherwise a resolved
    descriptor never changes until `clear()` is called.
    """

    def __init__(self, schema_mapping: Optional[Mapping[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._schema_mapping: Dict[str, str] = dict(schema_mapping or {})
        self._cache: Dict[type, EntityDescriptor] = {}

    @property
    def schema_mapping(self) -> Dict[str, str]:
        return dict(self._schema_mapping)

    def set_schema_mapping(self, schema_mapping: Optional[Mapping[str, str]]) -> None:
        with self._lock:
            self._schema_mapping = dict(schema_mapping or {})
            self._cache = {}
        log.info("Schema mapping updated", extra={"schema_mapping": self.schema_mapping})

    def resolve(self, record_type: type) -> EntityDescriptor:
        descriptor = self._cache.get(record_type)
        if descriptor is not None:
            return descriptor

        with self._lock:
            descriptor = self._cache.get(record_type)
            if descriptor is None:
                descriptor = self._build(record_type, self._schema_mapping)
                self._cache[record_type] = descriptor
        return descriptor

    def database(self, record_type: type) -> str:
        return self.resolve(record_type).database

    def table(self, record_type: type) -> str:
        return self.resolve(record_type).table

    def identifier(self, record_type: type) -> str:
        return self.resolve(record_type).identifier

    def qualified_table(self, record_type: type) -> str:
        return self.resolve(record_type).qualified_table

    def clear(self) -> None:
        """Drop every cached descriptor (test harnesses only)."""
        with self._lock:
            self._cache = {}

    @staticmethod
    def _build(record_type: Type, schema_mapping: Mapping[str, str]) -> EntityDescriptor:
        entity = getattr(record_type, "__entity__", None)
        if not isinstance(entity, Entity):
            entity = Entity()

        database = entity.database or ""
        if database in schema_mapping:
            database = schema_mapping[database]

        return EntityDescriptor(
            database=database,
            table=entity.table or record_type.__name__,
            identifier=entity.identifier or _primary_column(record_type) or DEFAULT_IDENTIFIER,
        )


def _primary_column(record_type: Type) -> Optional[str]:
    """Column name of the first field marked `Column(primary=True)`."""
    for attribute, field_info in getattr(record_type, "model_fields", {}).items():
        for marker in field_info.metadata:
            if isinstance(marker, Column) and marker.primary:
                return marker.name or attribute
    return None


__all__ = ["DEFAULT_IDENTIFIER", "SchemaResolver"]
