from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from as400_dal.utils.profiler import ProfileStats, QueryLogEntry


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _plain(value: Any) -> Text:
    # Data is never rich markup: "[/b]" in a cell must print as is.
    return Text(_cell(value))


def print_rows(
    rows: Iterable[Dict[str, Any]],
    raw: bool = False,
    console: Optional[Console] = None,
) -> int:
    """
    Render result rows and return how many were printed.

    `raw` prints tab-separated lines (header first), suitable for piping;
    otherwise rows are collected into a rich table. Raw output consumes the
    rows lazily, so it pairs with streamed reads.
    """
    console = console or Console()
    count = 0
    headers: List[str] = []

    if raw:
        # Written straight to the file: rich would expand the tabs.
        out = console.file
        for row in rows:
            if not headers:
                headers = list(row.keys())
                out.write("\t".join(headers) + "\n")
            out.write("\t".join(_cell(v) for v in row.values()) + "\n")
            count += 1
        out.flush()
        return count

    table = Table(box=box.ROUNDED)
    for row in rows:
        if not headers:
            headers = list(row.keys())
            for header in headers:
                table.add_column(_plain(header), overflow="fold")
        table.add_row(*(_plain(v) for v in row.values()))
        count += 1

    if count:
        console.print(table)
    return count


def print_query_log(entries: Sequence[QueryLogEntry], console: Optional[Console] = None) -> None:
    """Render the statements recorded by a QueryLogger."""
    console = console or Console()

    if not entries:
        console.print("[yellow]No queries recorded.[/yellow]")
        return

    table = Table(title="AS400 Queries", box=box.ROUNDED)
    table.add_column("#", justify="right", style="cyan", no_wrap=True)
    table.add_column("Query", style="white")
    table.add_column("Params", style="magenta")
    table.add_column("Time (ms)", justify="right", style="green")

    for index, entry in enumerate(entries):
        elapsed = "running" if entry.execution_time is None else f"{entry.execution_time:.3f}"
        table.add_row(str(index), _plain(entry.query), _plain(repr(entry.params)), elapsed)

    console.print(table)


def print_profile(stats: ProfileStats, rows: int, console: Optional[Console] = None) -> None:
    console = console or Console(stderr=True)
    mem_mb = (stats.peak_rss_bytes or 0) / (1024 * 1024)
    cpu = stats.cpu_percent or 0.0
    console.print(
        f"[dim]{rows:,} row(s) in {stats.duration_seconds:.3f}s | "
        f"peak RSS {mem_mb:.2f} MB | CPU {cpu:.1f}%[/dim]"
    )


__all__ = ["print_profile", "print_query_log", "print_rows"]
