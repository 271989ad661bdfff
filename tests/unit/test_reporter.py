from __future__ import annotations

from io import StringIO

import pytest
from rich.console import Console

from as400_dal.reporter import print_query_log, print_rows
from as400_dal.utils.profiler import QueryLogEntry


@pytest.fixture
def output() -> StringIO:
    return StringIO()


@pytest.fixture
def console(output: StringIO) -> Console:
    return Console(file=output, width=120, color_system=None)


def test_bracketed_cell_values_print_verbatim(console: Console, output: StringIO) -> None:
    rows = [{"NOTE": "see [/b] tag"}, {"NOTE": "[bold]not bold[/bold]"}]

    assert print_rows(rows, console=console) == 2

    text = output.getvalue()
    assert "see [/b] tag" in text
    assert "[bold]not bold[/bold]" in text


def test_bracketed_column_names_print_verbatim(console: Console, output: StringIO) -> None:
    print_rows([{"[/X]": 1}], console=console)

    assert "[/X]" in output.getvalue()


def test_raw_rows_keep_tabs(console: Console, output: StringIO) -> None:
    count = print_rows(iter([{"A": 1, "B": None}, {"A": 2, "B": "[/b]"}]), raw=True, console=console)

    assert count == 2
    assert output.getvalue() == "A\tB\n1\t\n2\t[/b]\n"


def test_no_rows_prints_nothing(console: Console, output: StringIO) -> None:
    assert print_rows([], console=console) == 0
    assert output.getvalue() == ""


def test_query_log_prints_statements_and_params_verbatim(console: Console, output: StringIO) -> None:
    entries = [
        QueryLogEntry("SELECT * FROM T WHERE NOTE = ?", ["[/i]"], 0.0, 1.5),
        QueryLogEntry("UPDATE T SET [A] = 1", [], 0.0),
    ]

    print_query_log(entries, console=console)

    text = output.getvalue()
    assert "['[/i]']" in text
    assert "UPDATE T SET [A] = 1" in text
    assert "running" in text


def test_empty_query_log(console: Console, output: StringIO) -> None:
    print_query_log([], console=console)

    assert "No queries recorded." in output.getvalue()
