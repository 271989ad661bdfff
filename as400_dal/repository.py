"""
Record-level access to one mapped table.

A `Repository` binds a record type to a connection: it resolves the table and
primary-key names through the schema resolver, builds statements from
criteria, and hydrates the rows it reads. Errors from the engine propagate
unchanged; the only degradation is on insert, where an unresolvable
generated id falls back to the boolean insert result.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from as400_dal import query as sql
from as400_dal.domain.models import EntityDescriptor
from as400_dal.errors import ValidationError
from as400_dal.infrastructure.connection import As400Connection
from as400_dal.mapping.hydrator import Dehydrator, Hydrator
from as400_dal.mapping.schema import SchemaResolver
from as400_dal.query import Criteria, Fields, OrderSpec

RecordT = TypeVar("RecordT", bound=BaseModel)

Data = Union[Mapping[str, Any], BaseModel]


class Repository(Generic[RecordT]):
    """Find, count and mutate the rows of one record type's table."""

    def __init__(
        self,
        connection: As400Connection,
        record_type: Type[RecordT],
        *,
        schema: SchemaResolver,
        hydrator: Hydrator,
        dehydrator: Dehydrator,
    ) -> None:
        self.connection = connection
        self.record_type = record_type
        self.schema = schema
        self.hydrator = hydrator
        self.dehydrator = dehydrator

    @property
    def descriptor(self) -> EntityDescriptor:
        return self.schema.resolve(self.record_type)

    @property
    def table_name(self) -> str:
        """``DATABASE.TABLE`` after schema remapping, or ``TABLE`` without a database."""
        return self.descriptor.qualified_table

    @property
    def identifier(self) -> str:
        return self.descriptor.identifier

    # ------------------------------------------------------------------ writes

    def insert(self, data: Data) -> Union[int, bool]:
        """Insert a row and return its generated id, or the boolean result when unknown."""
        return self.connection.insert_returning_id(
            self.table_name, self._row(data), self.identifier
        )

    def update(self, data: Data, conditions: Criteria) -> bool:
        if not conditions:
            raise ValidationError("Refusing to update without conditions")
        return self.connection.update(self.table_name, self._row(data), conditions)

    def delete(self, conditions: Criteria) -> bool:
        if not conditions:
            raise ValidationError("Refusing to delete without conditions")
        return self.connection.delete(self.table_name, conditions)

    # ------------------------------------------------------------------ reads

    def find(
        self, id: Union[int, str], fields: Fields = None, hydrate: bool = True
    ) -> Union[RecordT, Dict[str, Any], None]:
        return self.find_one_by({self.identifier: id}, fields=fields, hydrate=hydrate)

    def find_all(self, fields: Fields = None, hydrate: bool = True) -> List[Any]:
        return self.find_by(fields=fields, hydrate=hydrate)

    def find_by(
        self,
        criteria: Criteria = None,
        order_by: OrderSpec = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Fields = None,
        hydrate: bool = True,
    ) -> List[Any]:
        rows = self.connection.select(self.table_name, fields, criteria, order_by, limit, offset)
        if hydrate:
            return self.hydrator.hydrate_all(rows, self.record_type)
        return rows

    def find_one_by(
        self,
        criteria: Criteria,
        order_by: OrderSpec = None,
        fields: Fields = None,
        hydrate: bool = True,
    ) -> Union[RecordT, Dict[str, Any], None]:
        results = self.find_by(criteria, order_by, 1, fields=fields, hydrate=hydrate)
        return results[0] if results else None

    def iter_by(
        self,
        criteria: Criteria = None,
        order_by: OrderSpec = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Fields = None,
        hydrate: bool = True,
    ) -> Iterator[Any]:
        """
        Stream matching rows, hydrated one at a time.

        The underlying reader is closed when the iterator is exhausted, closed,
        or garbage collected after an early break.
        """
        reader = self.connection.select_iter(
            self.table_name, fields, criteria, order_by, limit, offset
        )
        with reader:
            if hydrate:
                yield from self.hydrator.hydrate_iter(reader, self.record_type)
            else:
                yield from reader

    def count(self, criteria: Criteria = None) -> int:
        return self.connection.count(self.table_name, criteria)

    def get_max_id(self) -> int:
        return int(self.connection.fetch_column(sql.build_max(self.table_name, self.identifier)) or 0)

    def get_next_id(self) -> int:
        query = sql.build_max(self.table_name, self.identifier, increment=1)
        return int(self.connection.fetch_column(query) or 0)

    # ------------------------------------------------------------------ internals

    def _row(self, data: Data) -> Dict[str, Any]:
        # Unset record fields are left to column defaults.
        if isinstance(data, BaseModel):
            return {k: v for k, v in self.dehydrator.dehydrate(data).items() if v is not None}
        return dict(data)


__all__ = ["Repository"]
