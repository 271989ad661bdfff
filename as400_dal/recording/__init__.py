"""
Recording package for the AS400 data-access layer.

Re-exports the recorder interfaces and the fan-out dispatcher so callers can
import from `as400_dal.recording` directly.
"""

from as400_dal.recording.abstract import (
    AbstractDataRecorder,
    AuditRecord,
    DataRecorderProtocol,
    DataRecordType,
)
from as400_dal.recording.recorder import DataRecorder

__all__ = [
    "AbstractDataRecorder",
    "AuditRecord",
    "DataRecorder",
    "DataRecorderProtocol",
    "DataRecordType",
]
