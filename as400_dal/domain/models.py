"""
Mapping declarations for AS400 records.

Record types are pydantic models deriving from `MappedRecord`. Each mapped
field carries a `Column` marker through `typing.Annotated`, and the class
declares its table through an `Entity` assigned to `__entity__`:

    class Customer(MappedRecord):
        __entity__ = Entity(table="CUSTOMERS", database="SALES", identifier="CUSNUM")

        number: Annotated[Optional[int], Column("CUSNUM", primary=True)] = None
        name: Annotated[Optional[str], Column("CUSNAM")] = None
        created: Annotated[Optional[date], Column("CUSCRT", type=ColumnType.DATE)] = None

The declarations are read once per type by the metadata registry and the
schema resolver; nothing here performs I/O.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Optional

from pydantic import BaseModel


class ColumnType(str, enum.Enum):
    """Semantic column types understood by the hydration pipeline."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    FLOAT = "float"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    ARRAY = "array"
    OBJECT = "object"
    JSON = "json"
    BLOB = "blob"
    TEXT = "text"
    BINARY = "binary"
    ENUM = "enum"


@dataclass(frozen=True)
class Column:
    """
    Marks a record field as mapped to a database column.

    Parameters
    ----------
    name : str, optional
        Column name as returned by the driver. Defaults to the field name.
    type : ColumnType, optional
        Semantic type. Inferred from the field annotation when omitted.
    primary : bool
        Identifier column, used when the `Entity` declares no identifier.

    `unique`, `autoincrement`, `unsigned`, `default` and `comment` describe the
    table for readers and are not interpreted here.
    """

    name: Optional[str] = None
    type: Optional[ColumnType] = None
    nullable: bool = False
    unique: bool = False
    primary: bool = False
    autoincrement: bool = False
    unsigned: bool = False
    default: Optional[str] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class Entity:
    """Table-level declaration: table name, primary-key column, logical database."""

    table: Optional[str] = None
    identifier: Optional[str] = None
    database: Optional[str] = None


@dataclass(frozen=True)
class ColumnMeta:
    """Resolved mapping of one column onto a record attribute."""

    attribute: str
    column: str
    type: Optional[ColumnType]
    nullable: bool = False


@dataclass(frozen=True)
class EntityDescriptor:
    """Resolved physical names for a record type."""

    database: str
    table: str
    identifier: str

    @property
    def qualified_table(self) -> str:
        if self.database:
            return f"{self.database}.{self.table}"
        return self.table


class MappedRecord(BaseModel):
    """
    Base class for records mapped onto AS400 tables.

    Subclasses assign an `Entity` to `__entity__`; without one the table name
    falls back to the class name and the identifier to the
    ``Column(primary=True)`` field, else ``"id"``.
    """

    __entity__: ClassVar[Optional[Entity]] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "validate_assignment": False,
    }


__all__ = [
    "Column",
    "ColumnMeta",
    "ColumnType",
    "Entity",
    "EntityDescriptor",
    "MappedRecord",
]
