"""Structural rewriting of single-row INSERT statements.

Only the shape ``INSERT INTO <table> (col, ...) VALUES (val, ...) [tail]`` is
understood.  The table reference may be a double-quoted identifier; values
may be any expression, including nested calls and string literals containing
commas, parentheses, or semicolons.

The main entry point is :func:`remove_column`, which drops one column and its
positionally matching value.  Statements that are not ``INSERT INTO`` and
statements that do not mention the column pass through untouched, so the
function can run unconditionally across mixed DML.

Every ``INSERT INTO`` statement that comes out of :func:`remove_column` also
has ``DATE '<date> <time>'`` literals promoted to ``TIMESTAMP '...'``, so
that date values carrying a time of day are not truncated downstream.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from loader_engine.parser.errors import StructuralError
from loader_engine.parser.list_splitter import (
    find_keyword,
    find_matching_paren,
    split_top_level,
    unquote_identifier,
)

logger = logging.getLogger(__name__)

_INSERT_INTO = re.compile(r"\AINSERT\s+INTO\b", re.IGNORECASE)

_DATE_WITH_TIME = re.compile(
    r"\bDATE '(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}(?:\.\d+)?)'",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InsertParts:
    """An INSERT statement taken apart at its column and value lists.

    ``prefix`` is everything before the column list's ``(`` (or before
    ``VALUES`` when there is no column list), trimmed.  ``columns`` is
    empty when the statement has no column list.  ``trailing`` holds any
    clause after the value list's closing ``)``.
    """

    prefix: str
    columns: tuple[str, ...]
    values: tuple[str, ...]
    trailing: str = ""

    def render(self) -> str:
        """Reassemble the statement text."""
        head = self.prefix
        if self.columns:
            head = f"{head} ({', '.join(self.columns)})"
        sql = f"{head} VALUES ({', '.join(self.values)})"
        if self.trailing:
            sql = f"{sql} {self.trailing}"
        return sql


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_insert(statement: str) -> bool:
    """Return True if *statement* starts with the INSERT keyword."""
    return statement.lstrip()[:6].upper() == "INSERT"


def locate_insert(statement: str, *, require_columns: bool = True) -> InsertParts:
    """Take an ``INSERT INTO`` statement apart.

    Parameters
    ----------
    statement:
        One SQL statement, without its terminating semicolon.
    require_columns:
        When True the statement must carry an explicit column list and the
        column and value counts must agree.  When False a statement of the
        form ``INSERT INTO t VALUES (...)`` is accepted with no columns.

    Raises
    ------
    StructuralError
        If the statement is not ``INSERT INTO``, a required landmark is
        missing, a parenthesis is unbalanced, or the list lengths differ.
    """
    sql = statement.strip()
    head = _INSERT_INTO.match(sql)
    if head is None:
        raise StructuralError(sql, "Statement is not an INSERT INTO statement")

    open_cols = _column_list_start(sql, head.end())
    columns: list[str] = []
    values_search_from = head.end()

    if open_cols >= 0:
        close_cols = find_matching_paren(sql, open_cols)
        columns = split_top_level(sql[open_cols + 1 : close_cols])
        prefix = sql[:open_cols].strip()
        values_search_from = close_cols + 1
    elif require_columns:
        raise StructuralError(sql, "No column list, cannot determine positional removal")

    idx_values = find_keyword(sql, "VALUES", values_search_from)
    if idx_values < 0:
        raise StructuralError(sql, "VALUES clause not found")
    if open_cols < 0:
        prefix = sql[:idx_values].strip()

    open_vals = sql.find("(", idx_values)
    if open_vals < 0:
        raise StructuralError(sql, "No '(' after VALUES")
    close_vals = find_matching_paren(sql, open_vals)
    values = split_top_level(sql[open_vals + 1 : close_vals])

    if columns and len(columns) != len(values):
        raise StructuralError(
            sql,
            f"Column count and value count differ ({len(columns)} vs {len(values)})",
        )

    return InsertParts(
        prefix=prefix,
        columns=tuple(columns),
        values=tuple(values),
        trailing=sql[close_vals + 1 :].strip(),
    )


def remove_column(statement: str, column_name: str) -> str:
    """Remove *column_name* and its value from an INSERT statement.

    The column name is matched case-insensitively against bare or
    double-quoted column names.

    Returns
    -------
    str
        The rewritten statement; the trimmed input when the statement is not
        ``INSERT INTO``; the input with only DATE promotion applied when the
        column is absent.

    Raises
    ------
    StructuralError
        If the column list, the VALUES clause or a matching parenthesis
        cannot be found, or the column and value counts differ.
    """
    sql = statement.strip()
    head = _INSERT_INTO.match(sql)
    if head is None:
        return sql

    open_cols = _column_list_start(sql, head.end())
    if open_cols < 0:
        raise StructuralError(
            sql,
            f"No column list, cannot determine positional removal of {column_name}",
        )
    close_cols = find_matching_paren(sql, open_cols)
    columns = split_top_level(sql[open_cols + 1 : close_cols])

    target = column_name.upper()
    remove_at = next(
        (i for i, col in enumerate(columns) if unquote_identifier(col).upper() == target),
        -1,
    )
    if remove_at < 0:
        return normalize_date_literals(sql)

    parts = locate_insert(sql)
    logger.debug("Removing column %s at position %d of %d", column_name, remove_at + 1, len(columns))
    kept_columns = parts.columns[:remove_at] + parts.columns[remove_at + 1 :]
    kept_values = parts.values[:remove_at] + parts.values[remove_at + 1 :]
    rewritten = InsertParts(
        prefix=parts.prefix,
        columns=kept_columns,
        values=kept_values,
        trailing=parts.trailing,
    ).render()
    return normalize_date_literals(rewritten)


def normalize_date_literals(sql: str) -> str:
    """Rewrite ``DATE '<yyyy-mm-dd hh:mm:ss[.f]>'`` as ``TIMESTAMP '...'``.

    Date-only literals (no time of day) are left alone.
    """
    return _DATE_WITH_TIME.sub(r"TIMESTAMP '\1'", sql)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _column_list_start(sql: str, start: int) -> int:
    """Return the index of the column list's ``(``, or -1 if there is none.

    A ``(`` that comes after the VALUES keyword opens the value list, not a
    column list.
    """
    open_paren = _first_open_paren(sql, start)
    if open_paren < 0:
        return -1
    idx_values = find_keyword(sql, "VALUES", start)
    if 0 <= idx_values < open_paren:
        return -1
    return open_paren


def _first_open_paren(sql: str, start: int) -> int:
    """Return the index of the first ``(`` after *start*, or -1.

    Double-quoted identifiers in the table reference (``""`` escapes
    included) are skipped, so a ``(`` inside one is never mistaken for the
    column list.
    """
    in_identifier = False
    i = start
    length = len(sql)
    while i < length:
        char = sql[i]
        if char == '"':
            if in_identifier and i + 1 < length and sql[i + 1] == '"':
                i += 2
                continue
            in_identifier = not in_identifier
        elif char == "(" and not in_identifier:
            return i
        i += 1
    return -1
