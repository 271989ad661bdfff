from __future__ import annotations

import logging
from time import sleep

from as400_dal.utils.profiler import QueryLogger, profile_block


def test_start_and_stop_record_elapsed_milliseconds() -> None:
    query_logger = QueryLogger()

    index = query_logger.start("SELECT * FROM SALES.CUSTOMERS WHERE CUSNUM = ?", (7,))
    assert query_logger.queries[index].execution_time is None
    sleep(0.01)
    query_logger.stop(index)

    entry = query_logger.queries[index]
    assert entry.params == [7]
    assert entry.execution_time >= 5
    assert entry.execution_time == round(entry.execution_time, 3)


def test_stop_ignores_unknown_indexes() -> None:
    query_logger = QueryLogger()

    query_logger.stop(0)
    query_logger.stop(-1)

    assert query_logger.query_count == 0


def test_total_and_reset() -> None:
    query_logger = QueryLogger()
    query_logger.log_query("SELECT 1 FROM SYSIBM.SYSDUMMY1", execution_time=1.5)
    query_logger.log_query("SELECT 2 FROM SYSIBM.SYSDUMMY1", execution_time=2.25)
    query_logger.start("SELECT 3 FROM SYSIBM.SYSDUMMY1")

    assert query_logger.query_count == 3
    assert query_logger.total_execution_time() == 3.75

    query_logger.reset()
    assert query_logger.query_count == 0
    assert query_logger.total_execution_time() == 0


def test_statements_are_logged_with_params(caplog) -> None:
    query_logger = QueryLogger()

    with caplog.at_level(logging.INFO, logger="as400_dal.utils.profiler"):
        query_logger.start("DELETE FROM T WHERE ID = ?", [3])

    (record,) = caplog.records
    assert record.getMessage() == "AS400 Query: DELETE FROM T WHERE ID = ?"
    assert record.params == [3]


def test_profile_block_measures_time():
    with profile_block("sleep") as stats:
        sleep(0.05)
    assert stats.duration_seconds >= 0.05
    assert stats.label == "sleep"
    if stats.cpu_percent is not None:
        assert isinstance(stats.cpu_percent, float)
    if stats.peak_rss_bytes is not None:
        assert stats.peak_rss_bytes > 0
