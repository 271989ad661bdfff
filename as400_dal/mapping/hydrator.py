"""
Conversion between raw rows and mapped records.

`Hydrator` turns ``{column: value}`` rows into record instances using the
cached column metadata; `Dehydrator` goes the other way. Batches and lazy
sequences look the metadata up once for all of their rows.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from as400_dal.domain.models import ColumnType
from as400_dal.mapping.metadata import MetadataRegistry, RecordMetadata
from as400_dal.utils.logging import get_logger

log = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

_TEMPORAL_TYPES = (ColumnType.DATE, ColumnType.DATETIME)

# DB2 for i renders timestamps as 2024-01-31-13.45.10.000000
_DB2_FORMATS = (
    "%Y-%m-%d-%H.%M.%S.%f",
    "%Y-%m-%d-%H.%M.%S",
    "%Y-%m-%d %H.%M.%S",
    "%Y%m%d",
)


def parse_temporal(value: Any, column_type: ColumnType) -> Optional[Union[dt.date, dt.datetime]]:
    """
    Parse a driver value into a date (DATE) or datetime (DATETIME).

    Empty strings become None. Raises ValueError when the value cannot be parsed.
    """
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime.combine(value, dt.time())
    else:
        text = str(value).strip()
        if not text:
            return None
        parsed = _parse_text(text)

    if column_type is ColumnType.DATE:
        return parsed.date()
    return parsed


def _parse_text(text: str) -> dt.datetime:
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DB2_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unparsable date/time value: {text!r}")


class Hydrator:
    """Build record instances from raw rows."""

    def __init__(self, metadata: MetadataRegistry) -> None:
        self.metadata = metadata

    def hydrate(
        self,
        row: Mapping[str, Any],
        target: Union[Type[RecordT], RecordT],
    ) -> RecordT:
        """
        Hydrate one row into a new instance of `target`, or into `target` itself
        when an instance is given.
        """
        record_type = target if isinstance(target, type) else type(target)
        values = self._values(row, self.metadata.get(record_type), record_type)

        if isinstance(target, type):
            return target.model_construct(**values)
        for attribute, value in values.items():
            setattr(target, attribute, value)
        return target

    def hydrate_all(self, rows: Iterable[Mapping[str, Any]], record_type: Type[RecordT]) -> List[RecordT]:
        return list(self.hydrate_iter(rows, record_type))

    def hydrate_iter(
        self, rows: Iterable[Mapping[str, Any]], record_type: Type[RecordT]
    ) -> Iterator[RecordT]:
        """Lazily hydrate `rows`; the source is pulled one row per record."""
        metadata = self.metadata.get(record_type)
        for row in rows:
            yield record_type.model_construct(**self._values(row, metadata, record_type))

    @staticmethod
    def _values(
        row: Mapping[str, Any], metadata: RecordMetadata, record_type: type
    ) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for column, meta in metadata.items():
            value = row.get(column)
            if value is not None:
                if isinstance(value, str):
                    value = value.strip()
                if meta.type in _TEMPORAL_TYPES:
                    try:
                        value = parse_temporal(value, meta.type)
                    except ValueError:
                        log.warning(
                            "Unparsable %s value for %s.%s, using None",
                            meta.type.value,
                            record_type.__name__,
                            meta.attribute,
                            extra={"column": column, "value": value},
                        )
                        value = None
            values[meta.attribute] = value
        return values


class Dehydrator:
    """Turn record instances back into ``{column: value}`` rows."""

    def __init__(self, metadata: MetadataRegistry) -> None:
        self.metadata = metadata

    def dehydrate(self, record: BaseModel) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for column, meta in self.metadata.get(type(record)).items():
            value = getattr(record, meta.attribute, None)
            if meta.type is ColumnType.DATE and isinstance(value, dt.date):
                value = value.strftime("%Y-%m-%d")
            data[column] = value
        return data


__all__ = ["Dehydrator", "Hydrator", "parse_temporal"]
