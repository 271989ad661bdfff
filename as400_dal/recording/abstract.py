"""
Audit recorder interfaces for the AS400 data-access layer.

Recorders are notified after a mutating statement commits, with the row
state before and after the change. Concrete recorders (an audit table, a
change feed, a test spy) implement `DataRecorderProtocol`, or subclass
`AbstractDataRecorder` and implement `record` only.
"""

from __future__ import annotations

import abc
import enum
from typing import Any, Dict, List, Optional, Protocol, TypedDict, Union, runtime_checkable

from as400_dal.query import Criteria

OldData = Union[Dict[str, Any], List[Dict[str, Any]]]


class DataRecordType(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class AuditRecord(TypedDict, total=False):
    """
    One change notification, as produced for recorders.

    `old_data` is a single row for updates and the list of matched rows for
    deletes; it is empty for inserts.
    """

    table: str
    new_data: Dict[str, Any]
    old_data: OldData
    where: Criteria
    action: DataRecordType


@runtime_checkable
class DataRecorderProtocol(Protocol):
    """Interface every recorder must implement."""

    def record(
        self,
        table: str,
        new_data: Optional[Dict[str, Any]] = None,
        old_data: Optional[OldData] = None,
        where: Criteria = None,
        action: Optional[DataRecordType] = None,
    ) -> None:
        ...

    def insert(self, table: str, new_data: Dict[str, Any]) -> None:
        ...

    def update(
        self, table: str, new_data: Dict[str, Any], old_data: OldData, where: Criteria
    ) -> None:
        ...

    def delete(self, table: str, old_data: OldData, where: Criteria) -> None:
        ...


class AbstractDataRecorder(abc.ABC):
    """
    Optional ABC helper: routes insert/update/delete to a single `record` call.
    """

    @abc.abstractmethod
    def record(
        self,
        table: str,
        new_data: Optional[Dict[str, Any]] = None,
        old_data: Optional[OldData] = None,
        where: Criteria = None,
        action: Optional[DataRecordType] = None,
    ) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def insert(self, table: str, new_data: Dict[str, Any]) -> None:
        self.record(table, new_data, {}, None, DataRecordType.INSERT)

    def update(
        self, table: str, new_data: Dict[str, Any], old_data: OldData, where: Criteria
    ) -> None:
        self.record(table, new_data, old_data, where, DataRecordType.UPDATE)

    def delete(self, table: str, old_data: OldData, where: Criteria) -> None:
        self.record(table, {}, old_data, where, DataRecordType.DELETE)


__all__ = [
    "AbstractDataRecorder",
    "AuditRecord",
    "DataRecordType",
    "DataRecorderProtocol",
    "OldData",
]
