"""Exceptions raised while segmenting, rewriting, or classifying statements.

Two families are distinguished:

* :class:`StructuralError` -- a syntactic landmark (column list, VALUES
  clause, matching parenthesis) could not be located, or the column and
  value lists are out of lockstep.  The statement cannot be rewritten.
* :class:`LiteralValueError` -- a single value expression (a timestamp
  literal, a ``TO_TIMESTAMP`` call) could not be interpreted.

Neither is retried internally; callers decide whether to skip the
statement or abort the run.
"""

from __future__ import annotations

_FRAGMENT_LIMIT = 200


class StatementRewriteError(Exception):
    """Base class for failures tied to a single SQL statement."""

    def __init__(self, statement: str, reason: str) -> None:
        self.statement = statement[:_FRAGMENT_LIMIT]
        self.reason = reason
        super().__init__(reason)


class StructuralError(StatementRewriteError):
    """Raised when an INSERT statement cannot be taken apart safely."""


class LiteralValueError(StatementRewriteError):
    """Raised when a value literal cannot be parsed into a typed value."""

    def __init__(self, literal: str, reason: str) -> None:
        self.literal = literal
        super().__init__(literal, f"{reason}: {literal!r}")
