from __future__ import annotations

import re
import sys

import typer
from rich.console import Console
from rich.markup import escape

from as400_dal.config import get_settings
from as400_dal.errors import As400Error
from as400_dal.infrastructure.db_factory import build_connection_string, create_connection
from as400_dal.reporter import print_profile, print_query_log, print_rows
from as400_dal.utils.logging import configure_logging
from as400_dal.utils.profiler import profile_block

app = typer.Typer(help="AS400 data-access layer CLI.")

_READ_QUERY_RE = re.compile(r"^\s*(SELECT|SHOW|DESCRIBE|EXPLAIN|WITH|VALUES)\s", re.IGNORECASE)


def is_read_query(sql: str) -> bool:
    return _READ_QUERY_RE.match(sql) is not None


@app.command()
def info() -> None:
    """
    Show effective configuration values (password masked).
    """
    settings = get_settings()
    typer.echo(f"Connection: {build_connection_string(settings)}")
    typer.echo(f"User: {settings.user or '-'} | Password: {'*' * 8 if settings.password.get_secret_value() else '-'}")
    if settings.schema_mapping:
        mapping = ", ".join(f"{k} => {v}" for k, v in settings.schema_mapping.items())
        typer.echo(f"Schema mapping: {mapping}")


@app.command("run-sql")
def run_sql(
    sql: str = typer.Argument(..., help="The SQL statement to execute."),
    force_fetch: bool = typer.Option(
        False, "--force-fetch", help="Fetch results even for non-SELECT statements."
    ),
    raw: bool = typer.Option(False, "--raw", help="Tab-separated output without table formatting."),
    stream: bool = typer.Option(
        False, "--stream", help="Read rows one at a time instead of materializing them."
    ),
    show_queries: bool = typer.Option(False, "--show-queries", help="Print the query log."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit log records as JSON."),
) -> None:
    """
    Execute an arbitrary SQL statement against the AS400.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=json_logs)
    err = Console(stderr=True)

    if not sql.strip():
        err.print("[red]SQL statement cannot be empty.[/red]")
        raise typer.Exit(code=1)

    try:
        with create_connection(settings) as connection:
            if is_read_query(sql) or force_fetch:
                with profile_block("run-sql") as stats:
                    if stream:
                        with connection.fetch_iter(sql) as rows:
                            count = print_rows(rows, raw=raw)
                    else:
                        count = print_rows(connection.fetch_all(sql), raw=raw)
                if count:
                    print_profile(stats, count, err)
                else:
                    err.print("Query returned no results.")
            elif connection.execute(sql):
                err.print("[green]Query executed successfully.[/green]")
            else:
                err.print("[yellow]Query executed but returned false (possibly no rows affected).[/yellow]")

            if show_queries:
                print_query_log(connection.query_logger.queries, err)
    except As400Error as exc:
        err.print(f"[red]SQL execution failed: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
