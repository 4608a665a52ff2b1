"""Turn a literal-valued INSERT into a parameterised statement.

Statements whose string literals exceed the database's inline limit cannot be
sent as plain text.  :func:`bind_insert` replaces every value in the VALUES
list with a named bind parameter and converts the literal to the matching
Python value, so the driver transmits the data out of band.  Strings flagged
as oversized are bound as :class:`sqlalchemy.types.Text` (CLOB on Oracle).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Text, bindparam, text
from sqlalchemy.sql.elements import TextClause

from loader_engine.literals.classifier import LargeLiteralPolicy, classify_value
from loader_engine.literals.types import (
    CanonicalTimestamp,
    DateLiteral,
    NullLiteral,
    NumberLiteral,
    OtherLiteral,
    QuotedString,
    SqlLiteral,
    TimestampLiteral,
    ToTimestampCall,
)
from loader_engine.parser.insert_rewriter import InsertParts, locate_insert

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BoundStatement:
    """A parameterised statement ready for execution.

    ``streamed`` names the parameters that must be bound as large-object
    text rather than inline strings.
    """

    sql: str
    parameters: dict[str, Any] = field(default_factory=dict)
    streamed: frozenset[str] = frozenset()

    def to_clause(self) -> TextClause:
        """Build a SQLAlchemy :class:`TextClause` with typed bind parameters."""
        binds = [
            bindparam(name, value, type_=Text()) if name in self.streamed else bindparam(name, value)
            for name, value in self.parameters.items()
        ]
        return text(self.sql).bindparams(*binds)


def bind_insert(statement: str, policy: LargeLiteralPolicy | None = None) -> BoundStatement:
    """Rewrite *statement*'s VALUES list as bind parameters ``:p1 .. :pN``.

    The column list is optional; the prefix and any trailing clause are kept
    verbatim.

    Raises
    ------
    StructuralError
        If the VALUES list cannot be located.
    LiteralValueError
        If a temporal literal cannot be parsed.
    """
    parts = locate_insert(statement, require_columns=False)

    parameters: dict[str, Any] = {}
    streamed: set[str] = set()
    placeholders: list[str] = []
    for index, token in enumerate(parts.values, start=1):
        name = f"p{index}"
        literal = classify_value(token, policy)
        parameters[name] = bind_value(literal)
        if isinstance(literal, QuotedString) and literal.streamed:
            streamed.add(name)
        placeholders.append(f":{name}")

    sql = InsertParts(
        prefix=parts.prefix,
        columns=parts.columns,
        values=tuple(placeholders),
        trailing=parts.trailing,
    ).render()

    if streamed:
        logger.debug("Binding %d value(s) as large-object text: %s", len(streamed), sorted(streamed))
    return BoundStatement(sql=sql, parameters=parameters, streamed=frozenset(streamed))


def bind_value(literal: SqlLiteral) -> Any:
    """Return the Python value a driver should receive for *literal*."""
    if isinstance(literal, NullLiteral):
        return None
    if isinstance(literal, DateLiteral):
        if isinstance(literal.value, CanonicalTimestamp):
            return literal.value.to_datetime()
        return literal.value
    if isinstance(literal, (TimestampLiteral, ToTimestampCall)):
        return literal.value.to_datetime()
    if isinstance(literal, QuotedString):
        return literal.text
    if isinstance(literal, NumberLiteral):
        return literal.value
    if isinstance(literal, OtherLiteral):
        return literal.text
    raise TypeError(f"Unsupported literal type: {type(literal).__name__}")
