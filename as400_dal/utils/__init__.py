"""
Utilities package for the AS400 data-access layer.

Exports shared helpers for logging, statement instrumentation, profiling and
value normalization. Keep this package free of SQL construction logic.
"""

from as400_dal.utils.logging import configure_logging, get_logger
from as400_dal.utils.normalizer import ValueNormalizer
from as400_dal.utils.profiler import ProfileStats, QueryLogEntry, QueryLogger, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ValueNormalizer",
    "ProfileStats",
    "QueryLogEntry",
    "QueryLogger",
    "profile_block",
]
