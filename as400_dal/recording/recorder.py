"""
Fan-out of change notifications to every registered recorder.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from as400_dal.query import Criteria
from as400_dal.recording.abstract import (
    AuditRecord,
    DataRecorderProtocol,
    DataRecordType,
    OldData,
)
from as400_dal.utils.logging import get_logger

log = get_logger(__name__)


class DataRecorder:
    """
    Broadcast insert/update/delete notifications to registered recorders.

    The connection checks `has_recorders` before doing any extra work (such
    as selecting the old row state), so an empty recorder costs nothing.
    """

    def __init__(self, recorders: Iterable[DataRecorderProtocol] = ()) -> None:
        self._recorders: List[DataRecorderProtocol] = []
        for recorder in recorders:
            self.register(recorder)

    def register(self, recorder: DataRecorderProtocol) -> None:
        if not isinstance(recorder, DataRecorderProtocol):
            raise TypeError(f"{recorder!r} does not implement the recorder interface")
        self._recorders.append(recorder)

    @property
    def recorders(self) -> List[DataRecorderProtocol]:
        return list(self._recorders)

    @property
    def has_recorders(self) -> bool:
        return bool(self._recorders)

    def record(self, audit: AuditRecord) -> None:
        """Dispatch a prepared `AuditRecord` to every recorder's generic hook."""
        for recorder in self._recorders:
            recorder.record(
                audit.get("table", ""),
                audit.get("new_data", {}),
                audit.get("old_data", {}),
                audit.get("where"),
                audit.get("action"),
            )

    def insert(self, table: str, new_data: Dict[str, Any]) -> None:
        log.debug("Recording insert", extra={"table": table, "recorders": len(self._recorders)})
        for recorder in self._recorders:
            recorder.insert(table, new_data)

    def update(
        self,
        table: str,
        new_data: Dict[str, Any],
        old_data: Optional[OldData],
        where: Criteria,
    ) -> None:
        log.debug("Recording update", extra={"table": table, "recorders": len(self._recorders)})
        for recorder in self._recorders:
            recorder.update(table, new_data, old_data or {}, where)

    def delete(self, table: str, old_data: Optional[OldData], where: Criteria) -> None:
        log.debug("Recording delete", extra={"table": table, "recorders": len(self._recorders)})
        for recorder in self._recorders:
            recorder.delete(table, old_data or [], where)


__all__ = ["DataRecorder", "DataRecordType"]
