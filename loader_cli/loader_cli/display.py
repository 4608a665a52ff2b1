"""Rich output formatting for the sqlloader CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that rewritten SQL written to *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from loader_engine.executor.batch_loader import LoadProgress, LoadResult


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class LoadProgressDisplay:
    """Progress bars for the pre-scan, read and write phases of a load.

    Use as a context manager; the ``*_callback`` methods return functions
    suitable for the loader's ``on_progress`` hooks.
    """

    def __init__(self, console: Console, total_bytes: int) -> None:
        self._total_bytes = max(total_bytes, 1)
        self._progress = Progress(
            TextColumn("[bold]{task.description:<8}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("{task.fields[detail]}"),
            TimeElapsedColumn(),
            console=console,
        )

    def __enter__(self) -> LoadProgressDisplay:
        self._progress.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self._progress.stop()

    def scan_callback(self) -> Callable[[LoadProgress], None]:
        """Return a callback advancing the pre-scan bar."""
        task = self._progress.add_task("Pre-scan", total=self._total_bytes, detail="")

        def _update(progress: LoadProgress) -> None:
            self._progress.update(
                task,
                completed=progress.bytes_read,
                detail=f"{progress.bytes_read:,}/{progress.total_bytes:,} bytes",
            )

        return _update

    def load_callback(self, total_statements: int) -> Callable[[LoadProgress], None]:
        """Return a callback advancing the read and write bars."""
        read_task = self._progress.add_task("Read", total=self._total_bytes, detail="")
        write_task = self._progress.add_task("Write", total=max(total_statements, 1), detail="")

        def _update(progress: LoadProgress) -> None:
            self._progress.update(
                read_task,
                completed=progress.bytes_read,
                detail=f"{progress.bytes_read:,}/{progress.total_bytes:,} bytes",
            )
            detail = f"{progress.executed:,}/{progress.total_statements:,}"
            if progress.failed:
                detail += f" [red]({progress.failed:,} failed)[/red]"
            self._progress.update(write_task, completed=progress.executed, detail=detail)

        return _update


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def display_load_summary(console: Console, result: LoadResult) -> None:
    """Render the outcome of a load run.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    result:
        The completed load result.
    """
    minutes, seconds = divmod(int(result.elapsed_seconds), 60)
    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Executed", f"[green]{result.executed:,}[/green]")
    failed_colour = "red" if result.failed else "dim"
    table.add_row("Failed", f"[{failed_colour}]{result.failed:,}[/{failed_colour}]")
    table.add_row("Skipped (non-INSERT)", f"{result.skipped:,}")
    table.add_row("Total INSERT statements", f"{result.total_statements:,}")
    table.add_row("Elapsed", f"{minutes}m {seconds}s")

    border = "green" if result.failed == 0 else "yellow"
    console.print(Panel(table, title="Load complete", border_style=border))


def display_statement_count(console: Console, path: Path, count: int) -> None:
    """Report the result of a pre-scan."""
    console.print(f"[bold]{path.name}[/bold]: {count:,} INSERT statement(s)")
