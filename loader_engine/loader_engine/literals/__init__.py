"""Typed classification of VALUES-list literals."""

from loader_engine.literals.classifier import (
    DEFAULT_POLICY,
    LargeLiteralPolicy,
    classify_value,
    find_oversized_literal,
)
from loader_engine.literals.timestamps import (
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

__all__ = [
    "DEFAULT_POLICY",
    "CanonicalTimestamp",
    "DateLiteral",
    "LargeLiteralPolicy",
    "NullLiteral",
    "NumberLiteral",
    "OtherLiteral",
    "QuotedString",
    "SqlLiteral",
    "TimestampLiteral",
    "ToTimestampCall",
    "classify_value",
    "find_oversized_literal",
    "parse_iso_date",
    "parse_iso_timestamp",
    "parse_locale_neutral",
    "parse_localized_month_timestamp",
]
