"""Batched execution of the INSERT statements in a SQL file.

The loader makes two independent passes over the file:

1. :meth:`BatchLoader.count_statements` -- a read-only pre-scan that counts
   INSERT statements so progress can be reported as a percentage.
2. :meth:`BatchLoader.load` -- streams statements again, optionally removes
   the primary-key column, and executes them.  Ordinary statements are
   grouped into batches committed every ``batch_size`` statements; a
   statement carrying an oversized string literal flushes the pending batch
   and runs on its own with bound parameters.

Only INSERT statements are executed; everything else is skipped.  Memory use
is bounded by the longest statement plus one batch.

With ``continue_on_error`` a failing statement counts one failure and a
failing batch is rolled back and counted as failed in full.  Without it the
first failure aborts the run with :class:`LoadError`; batches committed
before the failure stay committed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field
from sqlalchemy import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from loader_engine.config import LoaderSettings
from loader_engine.executor.binder import bind_insert
from loader_engine.io.reader import iter_file_statements
from loader_engine.literals.classifier import LargeLiteralPolicy, find_oversized_literal
from loader_engine.parser.errors import StatementRewriteError
from loader_engine.parser.insert_rewriter import is_insert, remove_column

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 200

# No parameter collection reaches the cursor, so ``%`` in a literal stays
# literal under pyformat drivers.
_RAW_SQL = {"no_parameters": True}


def default_ping_sql(dialect_name: str) -> str:
    """Return the connectivity check statement for a SQLAlchemy dialect."""
    if dialect_name == "oracle":
        return "SELECT 1 FROM DUAL"
    return "SELECT 1"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class LoadProgress(BaseModel):
    """Snapshot of a running pass, reported through the progress callback."""

    bytes_read: int = 0
    total_bytes: int = 0
    executed: int = 0
    failed: int = 0
    total_statements: int = 0

    @property
    def read_percent(self) -> int:
        if self.total_bytes <= 0:
            return 0
        return min(100, self.bytes_read * 100 // self.total_bytes)

    @property
    def write_percent(self) -> int:
        if self.total_statements <= 0:
            return 0
        return min(100, self.executed * 100 // self.total_statements)


class LoadResult(BaseModel):
    """Outcome of a completed :meth:`BatchLoader.load` run."""

    executed: int = Field(default=0, description="Statements committed successfully.")
    failed: int = Field(default=0, description="Statements that failed or were skipped on error.")
    skipped: int = Field(default=0, description="Non-INSERT statements ignored.")
    total_statements: int = Field(default=0, description="INSERT statements expected or seen.")
    elapsed_seconds: float = Field(default=0.0, description="Wall-clock duration of the load.")


ProgressCallback = Callable[[LoadProgress], None]


# ---------------------------------------------------------------------------
# Exception
# ---------------------------------------------------------------------------


class LoadError(Exception):
    """Raised when a statement or batch fails and errors are not tolerated."""

    def __init__(self, message: str, statement: str | None = None) -> None:
        self.statement = statement[:_PREVIEW_CHARS] if statement else None
        super().__init__(message)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


@dataclass
class _RunState:
    executed: int = 0
    failed: int = 0
    skipped: int = 0
    inserts: int = 0
    batch: list[str] = field(default_factory=list)


class _Throttle:
    """Invoke a progress callback at most once per interval."""

    def __init__(self, callback: ProgressCallback | None, interval: float) -> None:
        self._callback = callback
        self._interval = interval
        self._last = 0.0

    def __call__(self, progress: Callable[[], LoadProgress], force: bool = False) -> None:
        if self._callback is None:
            return
        now = time.monotonic()
        if force or now - self._last >= self._interval:
            self._last = now
            self._callback(progress())


def count_insert_statements(
    path: Path,
    settings: LoaderSettings,
    on_progress: ProgressCallback | None = None,
) -> int:
    """Count the INSERT statements in *path* using a pass of its own."""
    total_bytes = path.stat().st_size
    logger.info("Pre-scanning %s (%d bytes)", path, total_bytes)
    throttle = _Throttle(on_progress, settings.progress_interval)

    count = 0
    bytes_read = 0
    for statement, bytes_read in iter_file_statements(path, settings.charset, settings.chunk_size):
        if is_insert(statement):
            count += 1
        throttle(lambda: LoadProgress(bytes_read=bytes_read, total_bytes=total_bytes))

    throttle(lambda: LoadProgress(bytes_read=total_bytes, total_bytes=total_bytes), force=True)
    logger.info("Pre-scan complete: %d INSERT statement(s)", count)
    return count


class BatchLoader:
    """Execute the INSERT statements of a SQL file through SQLAlchemy.

    Parameters
    ----------
    engine:
        Engine connected to the target database.  The loader opens one
        connection per :meth:`load` call and closes it afterwards.
    settings:
        Batch size, primary-key removal, charset, error policy and
        literal-size thresholds.
    """

    def __init__(self, engine: Engine, settings: LoaderSettings) -> None:
        self._engine = engine
        self._settings = settings
        self._policy: LargeLiteralPolicy = settings.literal_policy()

    # -- Pre-scan --------------------------------------------------------------

    def count_statements(self, path: Path, on_progress: ProgressCallback | None = None) -> int:
        """Count the INSERT statements in *path* without touching the database."""
        return count_insert_statements(path, self._settings, on_progress)

    # -- Load ------------------------------------------------------------------

    def load(
        self,
        path: Path,
        total_statements: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> LoadResult:
        """Stream *path* and execute its INSERT statements.

        Raises
        ------
        LoadError
            On the first failure when ``continue_on_error`` is False.
        sqlalchemy.exc.SQLAlchemyError
            If the connectivity check fails.
        """
        started = time.perf_counter()
        total_bytes = path.stat().st_size
        throttle = _Throttle(on_progress, self._settings.progress_interval)
        run = _RunState()
        bytes_read = 0

        def snapshot() -> LoadProgress:
            return LoadProgress(
                bytes_read=bytes_read,
                total_bytes=total_bytes,
                executed=run.executed,
                failed=run.failed,
                total_statements=total_statements if total_statements is not None else run.inserts,
            )

        with self._engine.connect() as conn:
            ping_sql = self._settings.ping_sql or default_ping_sql(conn.dialect.name)
            conn.exec_driver_sql(ping_sql, execution_options=_RAW_SQL)
            conn.commit()
            logger.info("Connectivity check succeeded, loading %s", path)

            for statement, bytes_read in iter_file_statements(
                path, self._settings.charset, self._settings.chunk_size
            ):
                self._handle_statement(conn, statement, run)
                throttle(snapshot)

            self._flush(conn, run)

        throttle(snapshot, force=True)
        result = LoadResult(
            executed=run.executed,
            failed=run.failed,
            skipped=run.skipped,
            total_statements=total_statements if total_statements is not None else run.inserts,
            elapsed_seconds=time.perf_counter() - started,
        )
        logger.info(
            "Load complete: %d executed, %d failed, %d skipped in %.1fs",
            result.executed,
            result.failed,
            result.skipped,
            result.elapsed_seconds,
        )
        return result

    # -- Internals -------------------------------------------------------------

    def _handle_statement(self, conn: Connection, statement: str, run: _RunState) -> None:
        if not is_insert(statement):
            run.skipped += 1
            return
        run.inserts += 1

        sql = statement
        if self._settings.ignore_pk:
            try:
                sql = remove_column(statement, self._settings.pk_name)
            except StatementRewriteError as exc:
                self._record_failure(
                    run, f"Cannot remove column {self._settings.pk_name}: {exc}", statement, exc
                )
                return

        oversized = find_oversized_literal(sql, self._policy)
        if oversized is None:
            run.batch.append(sql)
            if len(run.batch) >= self._settings.batch_size:
                self._flush(conn, run)
            return

        logger.debug(
            "Statement carries a %d-character literal, executing it on its own",
            len(oversized),
            extra={"statement": sql[:_PREVIEW_CHARS]},
        )
        self._flush(conn, run)
        self._execute_bound(conn, sql, run)

    def _flush(self, conn: Connection, run: _RunState) -> None:
        """Execute and commit the pending batch."""
        if not run.batch:
            return
        size = len(run.batch)
        try:
            for sql in run.batch:
                conn.exec_driver_sql(sql, execution_options=_RAW_SQL)
            conn.commit()
        except SQLAlchemyError as exc:
            conn.rollback()
            run.batch.clear()
            if not self._settings.continue_on_error:
                raise LoadError(f"Batch execution failed: {exc}") from exc
            logger.warning("Batch of %d statement(s) failed and was rolled back: %s", size, exc)
            run.failed += size
            return

        run.batch.clear()
        run.executed += size
        logger.debug("Committed batch of %d statement(s)", size)

    def _execute_bound(self, conn: Connection, sql: str, run: _RunState) -> None:
        """Execute one statement with its values as bind parameters."""
        try:
            bound = bind_insert(sql, self._policy)
        except StatementRewriteError as exc:
            self._record_failure(run, f"Cannot bind statement values: {exc}", sql, exc)
            return

        try:
            conn.execute(bound.to_clause())
            conn.commit()
        except SQLAlchemyError as exc:
            conn.rollback()
            self._record_failure(run, f"Bound statement failed: {exc}", sql, exc)
            return
        run.executed += 1

    def _record_failure(
        self,
        run: _RunState,
        message: str,
        statement: str,
        exc: Exception,
    ) -> None:
        if not self._settings.continue_on_error:
            raise LoadError(message, statement) from exc
        logger.warning("%s", message, extra={"statement": statement[:_PREVIEW_CHARS]})
        run.failed += 1
