"""Typed value literals produced by the classifier.

Every value expression of an INSERT's VALUES list maps to exactly one of the
variants below.  Consumers dispatch on the concrete type; the
:data:`SqlLiteral` union is the complete set.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

# ---------------------------------------------------------------------------
# Canonical timestamp
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CanonicalTimestamp:
    """A locale-independent calendar date and time with nanosecond fraction.

    ``moment`` is a naive :class:`datetime` truncated to microseconds;
    ``nanosecond`` keeps the full sub-second fraction (0..999_999_999) that
    the source text carried.
    """

    moment: datetime
    nanosecond: int = 0

    @classmethod
    def from_parts(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        fraction: str = "",
    ) -> CanonicalTimestamp:
        """Build from numeric fields and a fraction's digits (up to nine).

        Raises
        ------
        ValueError
            If any field is out of range.
        """
        if len(fraction) > 9:
            raise ValueError(f"Fraction has more than nine digits: {fraction}")
        nanosecond = int(fraction.ljust(9, "0")) if fraction else 0
        moment = datetime(year, month, day, hour, minute, second, nanosecond // 1000)
        return cls(moment=moment, nanosecond=nanosecond)

    def shift_hours(self, hours: int) -> CanonicalTimestamp:
        """Return a copy moved by *hours*, keeping the fraction."""
        return CanonicalTimestamp(moment=self.moment + timedelta(hours=hours), nanosecond=self.nanosecond)

    def to_datetime(self) -> datetime:
        return self.moment

    def isoformat(self) -> str:
        """Render as ``YYYY-MM-DDTHH:MM:SS.fffffffff``."""
        return f"{self.moment.strftime('%Y-%m-%dT%H:%M:%S')}.{self.nanosecond:09d}"


# ---------------------------------------------------------------------------
# Literal variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NullLiteral:
    """The bare keyword ``NULL``."""

    text: str = "NULL"


@dataclass(frozen=True, slots=True)
class DateLiteral:
    """``DATE '<text>'``.  ``value`` is a timestamp when the text has a time."""

    text: str
    value: CanonicalTimestamp | date


@dataclass(frozen=True, slots=True)
class TimestampLiteral:
    """``TIMESTAMP '<text>'``."""

    text: str
    value: CanonicalTimestamp


@dataclass(frozen=True, slots=True)
class ToTimestampCall:
    """``TO_TIMESTAMP('<value>', '<format>'[, '<nls>'])``."""

    value_text: str
    format_text: str
    nls_text: str | None
    value: CanonicalTimestamp


@dataclass(frozen=True, slots=True)
class QuotedString:
    """A single-quoted string with ``''`` already unescaped.

    ``streamed`` is a binding hint: the text is too large to bind inline and
    should go to the driver as large-object text.
    """

    text: str
    streamed: bool = False


@dataclass(frozen=True, slots=True)
class NumberLiteral:
    """A bare numeric literal; ``value`` is ``float`` when the text has a dot."""

    text: str
    value: int | float


@dataclass(frozen=True, slots=True)
class OtherLiteral:
    """Anything else: identifiers, expressions, function calls."""

    text: str


SqlLiteral = (
    NullLiteral
    | DateLiteral
    | TimestampLiteral
    | ToTimestampCall
    | QuotedString
    | NumberLiteral
    | OtherLiteral
)
