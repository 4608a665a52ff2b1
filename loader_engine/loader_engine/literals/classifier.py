"""Surface-syntax classification of VALUES-list expressions.

:func:`classify_value` looks at a single value token, already split out of its
VALUES list, and returns one :data:`~loader_engine.literals.types.SqlLiteral`
variant.  Matching is by prefix shape, first match wins:

=====================  =========================================
Token shape            Variant
=====================  =========================================
``NULL``               :class:`NullLiteral`
``DATE '...'``         :class:`DateLiteral`
``TIMESTAMP '...'``    :class:`TimestampLiteral`
``TO_TIMESTAMP(...)``  :class:`ToTimestampCall`
``'...'``              :class:`QuotedString`
``12.5`` / ``42``      :class:`NumberLiteral`
anything else          :class:`OtherLiteral`
=====================  =========================================

Keywords are case-insensitive.  Temporal literals are parsed eagerly, so an
unparseable one surfaces as :class:`LiteralValueError` naming the text.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, Field

from loader_engine.literals.timestamps import (
    MONTH_MARKER,
    parse_iso_date,
    parse_iso_timestamp,
    parse_locale_neutral,
    parse_localized_month_timestamp,
)
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
from loader_engine.parser.errors import LiteralValueError
from loader_engine.parser.list_splitter import is_quoted_string, split_top_level, unquote_string

logger = logging.getLogger(__name__)

_DATE_PREFIX = re.compile(r"\ADATE\s*'", re.IGNORECASE)
_TIMESTAMP_PREFIX = re.compile(r"\ATIMESTAMP\s*'", re.IGNORECASE)
_TO_TIMESTAMP_PREFIX = re.compile(r"\ATO_TIMESTAMP\s*\(", re.IGNORECASE)
_INTEGER = re.compile(r"[+-]?\d+")
_DECIMAL = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?")

_CHINESE_NLS = "CHINESE"


# ---------------------------------------------------------------------------
# Large literal policy
# ---------------------------------------------------------------------------


class LargeLiteralPolicy(BaseModel):
    """Thresholds beyond which a string cannot be bound inline.

    The defaults mirror Oracle's 4000-byte limit on string literals and the
    2000-character limit on inline VARCHAR binds.
    """

    max_bytes: int = Field(
        default=4000,
        ge=1,
        description="UTF-8 byte length above which a string is oversized.",
    )
    max_chars: int = Field(
        default=2000,
        ge=1,
        description="Character length above which a string is oversized.",
    )

    def is_oversized(self, text: str) -> bool:
        """Return True if *text* exceeds either threshold."""
        if len(text) > self.max_chars:
            return True
        # A character is at most four UTF-8 bytes; skip encoding when safe.
        if len(text) * 4 <= self.max_bytes:
            return False
        return len(text.encode("utf-8")) > self.max_bytes


DEFAULT_POLICY = LargeLiteralPolicy()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_value(token: str, policy: LargeLiteralPolicy | None = None) -> SqlLiteral:
    """Classify one VALUES-list token.

    Parameters
    ----------
    token:
        The raw value text, e.g. ``"DATE '2025-08-29'"`` or ``"'it''s'"``.
    policy:
        Oversized-string thresholds; :data:`DEFAULT_POLICY` when omitted.

    Raises
    ------
    LiteralValueError
        If a DATE, TIMESTAMP or TO_TIMESTAMP literal cannot be parsed.
    """
    value = token.strip()
    policy = policy or DEFAULT_POLICY

    if value.upper() == "NULL":
        return NullLiteral(text=value)

    if _DATE_PREFIX.match(value):
        return _classify_date(value)

    if _TIMESTAMP_PREFIX.match(value):
        return _classify_timestamp(value)

    if _TO_TIMESTAMP_PREFIX.match(value):
        return _classify_to_timestamp(value)

    if is_quoted_string(value):
        text = unquote_string(value)
        return QuotedString(text=text, streamed=policy.is_oversized(text))

    if "." in value and _DECIMAL.fullmatch(value):
        return NumberLiteral(text=value, value=float(value))
    if _INTEGER.fullmatch(value):
        return NumberLiteral(text=value, value=int(value))

    return OtherLiteral(text=value)


def find_oversized_literal(sql: str, policy: LargeLiteralPolicy | None = None) -> str | None:
    """Return the first single-quoted literal in *sql* that is oversized.

    The returned text is unescaped.  Returns None when every string literal
    fits inline.
    """
    policy = policy or DEFAULT_POLICY
    pos = sql.find("'")
    while pos >= 0:
        end = _closing_quote(sql, pos)
        if end < 0:
            return None
        text = sql[pos + 1 : end].replace("''", "'")
        if policy.is_oversized(text):
            return text
        pos = sql.find("'", end + 1)
    return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _quoted_body(value: str, keyword_len: int) -> str:
    """Return the unescaped text of ``KEYWORD '<body>'``."""
    return unquote_string(value[keyword_len:])


def _classify_date(value: str) -> DateLiteral:
    body = _quoted_body(value, len("DATE"))
    try:
        return DateLiteral(text=body, value=parse_iso_timestamp(body))
    except ValueError:
        pass
    try:
        return DateLiteral(text=body, value=parse_iso_date(body))
    except ValueError as exc:
        raise LiteralValueError(value, "Unparseable DATE literal") from exc


def _classify_timestamp(value: str) -> TimestampLiteral:
    body = _quoted_body(value, len("TIMESTAMP"))
    try:
        return TimestampLiteral(text=body, value=parse_iso_timestamp(body))
    except ValueError:
        pass
    try:
        day = parse_iso_date(body)
        return TimestampLiteral(
            text=body,
            value=CanonicalTimestamp.from_parts(day.year, day.month, day.day),
        )
    except ValueError:
        pass
    # Real-world dumps carry locale-rendered text inside TIMESTAMP literals.
    return TimestampLiteral(text=body, value=parse_localized_month_timestamp(body))


def _classify_to_timestamp(value: str) -> ToTimestampCall:
    open_paren = value.find("(")
    close_paren = value.rfind(")")
    if close_paren <= open_paren:
        raise LiteralValueError(value, "Malformed TO_TIMESTAMP call")

    args = split_top_level(value[open_paren + 1 : close_paren])
    if len(args) < 2 or not all(is_quoted_string(arg) for arg in args):
        raise LiteralValueError(value, "TO_TIMESTAMP expects two or three quoted arguments")

    value_text = unquote_string(args[0])
    format_text = unquote_string(args[1])
    nls_text = unquote_string(args[2]) if len(args) > 2 else None

    localized = "MON" in format_text.upper() and (
        MONTH_MARKER in value_text or (nls_text is not None and _CHINESE_NLS in nls_text.upper())
    )
    if localized:
        try:
            parsed = parse_localized_month_timestamp(value_text)
        except LiteralValueError as exc:
            raise LiteralValueError(value, f"Unparseable TO_TIMESTAMP value ({exc.reason})") from exc
    else:
        try:
            parsed = parse_locale_neutral(value_text)
        except ValueError as exc:
            raise LiteralValueError(value, "Unparseable TO_TIMESTAMP value") from exc

    logger.debug("Parsed TO_TIMESTAMP %r as %s", value_text, parsed.isoformat())
    return ToTimestampCall(
        value_text=value_text,
        format_text=format_text,
        nls_text=nls_text,
        value=parsed,
    )


def _closing_quote(sql: str, open_pos: int) -> int:
    """Return the index of the quote closing the literal at *open_pos*, or -1."""
    pos = open_pos + 1
    while True:
        close = sql.find("'", pos)
        if close < 0:
            return -1
        if close + 1 < len(sql) and sql[close + 1] == "'":
            pos = close + 2
            continue
        return close
