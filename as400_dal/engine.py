"""
Root object of the AS400 data-access layer.

`Engine` owns the connection and the process-wide registries (column
metadata, schema resolution) and hands them by reference to the hydrator,
dehydrator and repositories it creates. Build one at startup:

    engine = Engine.from_settings(recorders=[AuditTableRecorder()])
    customers = engine.repository(Customer)
    active = customers.find_by({"CUSSTS": "A"}, order_by={"CUSNAM": "asc"}, limit=50)
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel

from as400_dal.config import Settings, get_settings
from as400_dal.infrastructure.connection import As400Connection
from as400_dal.infrastructure.db_factory import create_connection
from as400_dal.mapping.hydrator import Dehydrator, Hydrator
from as400_dal.mapping.metadata import MetadataRegistry
from as400_dal.mapping.schema import SchemaResolver
from as400_dal.recording.abstract import DataRecorderProtocol
from as400_dal.recording.recorder import DataRecorder
from as400_dal.repository import Repository
from as400_dal.utils.logging import get_logger

log = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class Engine:
    def __init__(
        self,
        connection: As400Connection,
        *,
        metadata: Optional[MetadataRegistry] = None,
        schema: Optional[SchemaResolver] = None,
    ) -> None:
        self.connection = connection
        self.metadata = metadata or MetadataRegistry()
        self.schema = schema or SchemaResolver()
        self.hydrator = Hydrator(self.metadata)
        self.dehydrator = Dehydrator(self.metadata)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        recorders: Iterable[DataRecorderProtocol] = (),
    ) -> "Engine":
        """Connect using `settings` (environment by default) and apply its schema mapping."""
        settings = settings or get_settings()
        connection = create_connection(settings, recorder=DataRecorder(recorders))
        if settings.schema_mapping:
            log.info("Applying schema mapping", extra={"schema_mapping": settings.schema_mapping})
        return cls(connection, schema=SchemaResolver(settings.schema_mapping))

    def repository(self, record_type: Type[RecordT]) -> Repository[RecordT]:
        return Repository(
            self.connection,
            record_type,
            schema=self.schema,
            hydrator=self.hydrator,
            dehydrator=self.dehydrator,
        )

    def hydrate(self, row: Dict[str, Any], record_type: Type[RecordT]) -> RecordT:
        return self.hydrator.hydrate(row, record_type)

    def dehydrate(self, record: BaseModel) -> Dict[str, Any]:
        return self.dehydrator.dehydrate(record)

    def reset_caches(self) -> None:
        """Clear metadata and schema caches (test harnesses only)."""
        self.metadata.clear()
        self.schema.clear()

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> "Engine":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()


__all__ = ["Engine"]
