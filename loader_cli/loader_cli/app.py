"""sqlloader CLI application -- Typer-based interface to the batch loader.

Provides commands to load a SQL dump into a database, count its INSERT
statements, and rewrite it offline with a column removed.  Human-readable
output goes to *stderr* via Rich; rewritten SQL and counts go to *stdout* so
that pipelines can compose cleanly.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, TextIO

import typer
from pydantic import SecretStr, ValidationError
from rich.console import Console
from rich.markup import escape
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from loader_cli.display import (
    LoadProgressDisplay,
    display_load_summary,
    display_statement_count,
)
from loader_engine.config import LoaderSettings, load_settings
from loader_engine.executor import (
    BatchLoader,
    LoadError,
    count_insert_statements,
    create_loader_engine,
)
from loader_engine.io.reader import iter_file_statements
from loader_engine.parser.errors import StructuralError
from loader_engine.parser.insert_rewriter import remove_column
from loader_engine.telemetry.log_setup import configure_logging

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="sqlloader",
    help="Stream very large SQL files into a database in committed batches.",
    no_args_is_help=True,
)
console = Console(stderr=True)

EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_UNREADABLE = 3


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable DEBUG-level logging.",
        envvar="SQLLOADER_DEBUG",
    ),
    structured_logging: bool = typer.Option(
        False,
        "--structured-logging/--text-logging",
        help="Emit one JSON object per log line.",
        envvar="SQLLOADER_STRUCTURED_LOGGING",
    ),
) -> None:
    """Global options applied to every command."""
    configure_logging(debug=debug, structured=structured_logging)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_settings(**options: Any) -> LoaderSettings:
    """Merge explicitly passed CLI options over environment settings."""
    overrides = {key: value for key, value in options.items() if value is not None}
    try:
        return load_settings(**overrides)
    except ValidationError as exc:
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]Invalid {field}: {escape(error['msg'])}[/red]")
        raise typer.Exit(code=EXIT_USAGE) from exc


def _require_readable(path: Path) -> None:
    """Exit with code 3 if *path* is not a readable file."""
    if not path.is_file() or not os.access(path, os.R_OK):
        console.print(f"[red]File not found or not readable: {escape(str(path))}[/red]")
        raise typer.Exit(code=EXIT_UNREADABLE)


def _ensure_password(settings: LoaderSettings) -> LoaderSettings:
    """Prompt for a password when neither the options nor the URL carry one."""
    if settings.database_url is None:
        console.print("[red]No database URL given (use --url or SQLLOADER_DATABASE_URL).[/red]")
        raise typer.Exit(code=EXIT_USAGE)
    try:
        url = make_url(settings.database_url)
    except ArgumentError as exc:
        console.print(f"[red]Invalid database URL: {escape(str(exc))}[/red]")
        raise typer.Exit(code=EXIT_USAGE) from exc

    if settings.password is not None or url.password is not None:
        return settings
    if url.get_backend_name() == "sqlite":
        return settings

    entered = typer.prompt("Database password", hide_input=True)
    return settings.model_copy(update={"password": SecretStr(entered)})


def _rewrite_statements(file: Path, column: str, settings: LoaderSettings, out: TextIO) -> int:
    """Write every statement of *file* to *out* with *column* removed."""
    written = 0
    try:
        for statement, _ in iter_file_statements(file, settings.charset, settings.chunk_size):
            try:
                rewritten = remove_column(statement, column)
            except StructuralError as exc:
                console.print(f"[red]Cannot rewrite statement {written + 1}:[/red] {escape(exc.reason)}")
                console.print(exc.statement, style="dim", markup=False)
                raise typer.Exit(code=EXIT_FAILURE) from exc
            out.write(f"{rewritten};\n")
            written += 1
    except UnicodeDecodeError as exc:
        console.print(f"[red]Cannot decode {escape(str(file))} as {settings.charset}: {escape(str(exc))}[/red]")
        raise typer.Exit(code=EXIT_FAILURE) from exc
    return written


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def load(
    file: Path = typer.Argument(..., help="SQL file to load."),
    url: str | None = typer.Option(
        None,
        "--url",
        help="SQLAlchemy database URL, e.g. oracle+oracledb://host:1521/?service_name=XEPDB1.",
    ),
    user: str | None = typer.Option(None, "--user", "-u", help="Database account."),
    password: str | None = typer.Option(
        None,
        "--password",
        "-p",
        help="Database password.  Prompted for when omitted.",
    ),
    batch_size: int | None = typer.Option(
        None,
        "--batch-size",
        help="Statements per committed batch (default 500).",
    ),
    ignore_pk: bool | None = typer.Option(
        None,
        "--ignore-pk/--no-ignore-pk",
        help="Remove the primary-key column and its value from every INSERT.",
    ),
    pk_name: str | None = typer.Option(
        None,
        "--pk-name",
        help="Column removed by --ignore-pk (default WCSID, case-insensitive).",
    ),
    charset: str | None = typer.Option(None, "--charset", help="File encoding (default utf-8)."),
    continue_on_error: bool | None = typer.Option(
        None,
        "--continue-on-error/--stop-on-error",
        help="Record failing statements and keep going instead of aborting.",
    ),
) -> None:
    """Load the INSERT statements of FILE into the target database.

    The file is scanned twice: once to count statements for progress
    reporting, then again to execute them in batches.

    Examples::

        sqlloader load dump.sql --url "oracle+oracledb://db:1521/?service_name=XEPDB1" -u AP_TAX
        sqlloader load dump.sql --url sqlite:///local.db --ignore-pk --batch-size 1000
    """
    settings = _build_settings(
        database_url=url,
        user=user,
        password=password,
        batch_size=batch_size,
        ignore_pk=ignore_pk,
        pk_name=pk_name,
        charset=charset,
        continue_on_error=continue_on_error,
    )
    _require_readable(file)
    settings = _ensure_password(settings)

    engine = create_loader_engine(settings)
    loader = BatchLoader(engine, settings)
    try:
        with LoadProgressDisplay(console, file.stat().st_size) as progress:
            total = loader.count_statements(file, on_progress=progress.scan_callback())
            result = loader.load(file, total, on_progress=progress.load_callback(total))
    except LoadError as exc:
        console.print(f"[red]Load aborted:[/red] {escape(str(exc))}")
        if exc.statement:
            console.print(exc.statement, style="dim", markup=False)
        raise typer.Exit(code=EXIT_FAILURE) from exc
    except (SQLAlchemyError, UnicodeDecodeError) as exc:
        console.print(f"[red]Load failed:[/red] {escape(str(exc))}")
        raise typer.Exit(code=EXIT_FAILURE) from exc
    finally:
        engine.dispose()

    display_load_summary(console, result)


@app.command()
def count(
    file: Path = typer.Argument(..., help="SQL file to scan."),
    charset: str | None = typer.Option(None, "--charset", help="File encoding (default utf-8)."),
) -> None:
    """Count the INSERT statements in FILE without connecting to a database."""
    settings = _build_settings(charset=charset)
    _require_readable(file)

    try:
        with LoadProgressDisplay(console, file.stat().st_size) as progress:
            total = count_insert_statements(file, settings, on_progress=progress.scan_callback())
    except UnicodeDecodeError as exc:
        console.print(f"[red]Cannot decode {escape(str(file))} as {settings.charset}: {escape(str(exc))}[/red]")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    display_statement_count(console, file, total)
    typer.echo(total)


@app.command()
def rewrite(
    file: Path = typer.Argument(..., help="SQL file to rewrite."),
    column: str = typer.Option(..., "--column", "-c", help="Column to remove from every INSERT."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the rewritten statements here instead of stdout.",
    ),
    charset: str | None = typer.Option(None, "--charset", help="File encoding (default utf-8)."),
) -> None:
    """Rewrite FILE with COLUMN removed from every INSERT statement.

    Comments are stripped and each statement is written on its own line,
    terminated by ``;``.  Non-INSERT statements are copied through.

    With ``--output`` the statements go to a ``.partial`` file beside the
    target, renamed into place only once every statement was rewritten; a
    failed run leaves any existing target untouched.
    """
    settings = _build_settings(charset=charset)
    _require_readable(file)

    if output is None:
        written = _rewrite_statements(file, column, settings, sys.stdout)
    else:
        partial = output.with_name(f"{output.name}.partial")
        try:
            with partial.open("w", encoding=settings.charset) as out:
                written = _rewrite_statements(file, column, settings, out)
            partial.replace(output)
        finally:
            partial.unlink(missing_ok=True)

    console.print(f"Rewrote {written:,} statement(s)")
