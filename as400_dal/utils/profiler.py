"""
Profiling utilities for the AS400 data-access layer.

This module provides:
- `QueryLogger`: per-statement instrumentation (SQL, parameters, start time,
  elapsed milliseconds) consumed by an external profiler panel.
- `profile_block`: wall-clock, CPU and peak-memory measurement of a block,
  used by the CLI to report on ad-hoc statements.

Usage examples:
    from as400_dal.utils.profiler import QueryLogger, profile_block

    queries = QueryLogger()
    index = queries.start("SELECT * FROM SALES.CUSTOMERS", [])
    ...
    queries.stop(index)

    with profile_block("run-sql") as stats:
        rows = connection.fetch_all(sql)
    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Generator, List, Optional, Sequence

import psutil

from as400_dal.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class QueryLogEntry:
    """One executed statement. `execution_time` stays None until stopped."""

    query: str
    params: List[Any]
    start_time: float
    execution_time: Optional[float] = None  # milliseconds


class QueryLogger:
    """
    Append-only log of executed statements.

    Entries are addressed by their insertion index, returned from `start`.
    The log lives as long as the connection it instruments; call `reset`
    between requests.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or log
        self._lock = threading.Lock()
        self.queries: List[QueryLogEntry] = []

    def start(self, query: str, params: Optional[Sequence[Any]] = None) -> int:
        """Record a statement about to run and return its index."""
        params_list = list(params or [])
        self._logger.info("AS400 Query: %s", query, extra={"params": params_list})
        entry = QueryLogEntry(query=query, params=params_list, start_time=time.time())
        with self._lock:
            self.queries.append(entry)
            return len(self.queries) - 1

    def stop(self, index: int) -> None:
        """Record the elapsed time of the statement at `index`. Unknown indexes are ignored."""
        with self._lock:
            if not 0 <= index < len(self.queries):
                return
            entry = self.queries[index]
            entry.execution_time = round((time.time() - entry.start_time) * 1000, 3)

    def log_query(
        self,
        query: str,
        params: Optional[Sequence[Any]] = None,
        execution_time: Optional[float] = None,
    ) -> None:
        """Record a statement whose timing was measured elsewhere."""
        params_list = list(params or [])
        self._logger.info("AS400 Query: %s", query, extra={"params": params_list})
        with self._lock:
            self.queries.append(
                QueryLogEntry(
                    query=query,
                    params=params_list,
                    start_time=time.time(),
                    execution_time=execution_time,
                )
            )

    @property
    def query_count(self) -> int:
        return len(self.queries)

    def total_execution_time(self) -> float:
        """Sum of completed execution times, in milliseconds."""
        return round(sum(e.execution_time for e in self.queries if e.execution_time), 3)

    def reset(self) -> None:
        with self._lock:
            self.queries = []


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)


@contextlib.contextmanager
def profile_block(label: str, sample_interval_ms: int = 50) -> Generator[ProfileStats, None, None]:
    """
    Context manager to profile a block of code.

    Measures wall-clock duration (perf_counter), peak RSS via a background
    sampling thread, and a CPU percent snapshot (psutil).

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    sample_interval_ms : int
        Interval in milliseconds for RSS sampling.

    Notes
    -----
    Sampling captures the peak while rows are being consumed, which is what
    distinguishes a streamed read from a materialized one.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    stop_sampling = threading.Event()
    peak_rss = process.memory_info().rss

    def _sample_memory() -> None:
        nonlocal peak_rss
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, process.memory_info().rss)
            except psutil.Error:
                return
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    # CPU percent needs a priming call
    process.cpu_percent(interval=None)

    sampler = threading.Thread(target=_sample_memory, daemon=True)
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts

        stop_sampling.set()
        sampler.join(timeout=1.0)

        stats.peak_rss_bytes = peak_rss if peak_rss > 0 else None
        stats.cpu_percent = process.cpu_percent(interval=None)


__all__ = ["ProfileStats", "QueryLogEntry", "QueryLogger", "profile_block"]
