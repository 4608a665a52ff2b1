"""Calendar text parsing for DATE, TIMESTAMP and TO_TIMESTAMP literals.

Three surface forms are understood:

* ISO-like ``yyyy-MM-dd HH:mm:ss[.fraction]`` (a ``T`` separator is accepted
  in place of the space) -- :func:`parse_iso_timestamp`.
* Date only, ``yyyy-MM-dd`` -- :func:`parse_iso_date`.
* The Chinese-locale rendering of ``DD-MON-RR HH.MI.SSXFF AM``, e.g.
  ``19-8月 -25 10.30.00.000000000 上午`` -- :func:`parse_localized_month_timestamp`.
  The month is an Arabic numeral followed by the month unit ``月``, the
  year has two digits, and an optional ``上午``/``下午`` marker selects
  morning or afternoon.

The ISO helpers raise :class:`ValueError` so callers can chain fallbacks; the
localized parser is the last resort and raises :class:`LiteralValueError`.
"""

from __future__ import annotations

import re
from datetime import date

from loader_engine.literals.types import CanonicalTimestamp
from loader_engine.parser.errors import LiteralValueError

MONTH_MARKER = "月"
MORNING_MARKER = "上午"
AFTERNOON_MARKER = "下午"

# Two-digit years below this pivot belong to the 2000s (Oracle's RR rule).
_RR_PIVOT = 50

_ISO_TIMESTAMP = re.compile(
    r"(\d{4})-(\d{1,2})-(\d{1,2})[ T](\d{1,2}):(\d{1,2}):(\d{1,2})(?:\.(\d{1,9}))?"
)
_ISO_DATE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")

# Day-month-year skeleton left once the month unit and meridiem are removed.
_LOCALIZED_SKELETON = re.compile(
    r"(\d{1,2})-(\d{1,2}) ?-(\d{2}|\d{4}) (\d{1,2})\.(\d{1,2})\.(\d{1,2})(?:\.(\d{1,9}))?"
)
_SPACES_AROUND_DASH = re.compile(r"\s*-\s*")


def parse_iso_timestamp(text: str) -> CanonicalTimestamp:
    """Parse ``yyyy-MM-dd HH:mm:ss[.fraction]``.

    Raises
    ------
    ValueError
        If *text* does not have this shape or a field is out of range.
    """
    match = _ISO_TIMESTAMP.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"Not a date-time literal: {text!r}")
    year, month, day, hour, minute, second, fraction = match.groups()
    return CanonicalTimestamp.from_parts(
        int(year),
        int(month),
        int(day),
        int(hour),
        int(minute),
        int(second),
        fraction or "",
    )


def parse_iso_date(text: str) -> date:
    """Parse ``yyyy-MM-dd``.

    Raises
    ------
    ValueError
        If *text* does not have this shape or a field is out of range.
    """
    match = _ISO_DATE.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"Not a date literal: {text!r}")
    year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)


def parse_locale_neutral(text: str) -> CanonicalTimestamp:
    """Parse a TO_TIMESTAMP value that carries no localized month name.

    A trailing ``T`` separator is dropped; date-only text becomes midnight.

    Raises
    ------
    ValueError
        If neither the date-time nor the date-only form matches.
    """
    cleaned = text.strip()
    if cleaned.endswith("T"):
        cleaned = cleaned[:-1]
    try:
        return parse_iso_timestamp(cleaned)
    except ValueError:
        day = parse_iso_date(cleaned)
        return CanonicalTimestamp.from_parts(day.year, day.month, day.day)


def parse_localized_month_timestamp(text: str) -> CanonicalTimestamp:
    """Parse ``DD-<M>月 -RR HH.MI.SS.FF [上午|下午]``.

    The month unit and meridiem markers are stripped and the remaining
    numeric skeleton parsed as a 24-hour time.  An afternoon marker adds 12
    hours to hours below 12; a morning marker maps hour 12 to 0.

    Raises
    ------
    LiteralValueError
        If the text still does not parse after whitespace normalisation.
    """
    is_afternoon = AFTERNOON_MARKER in text
    is_morning = MORNING_MARKER in text
    skeleton = (
        text.replace(MONTH_MARKER, "")
        .replace(MORNING_MARKER, "")
        .replace(AFTERNOON_MARKER, "")
        .strip()
    )

    match = _LOCALIZED_SKELETON.fullmatch(skeleton)
    if match is None:
        normalized = _SPACES_AROUND_DASH.sub("-", " ".join(skeleton.split()))
        match = _LOCALIZED_SKELETON.fullmatch(normalized)
    if match is None:
        raise LiteralValueError(text, "Unrecognised localized timestamp")

    day, month, year, hour, minute, second, fraction = match.groups()
    try:
        parsed = CanonicalTimestamp.from_parts(
            _expand_year(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            fraction or "",
        )
    except ValueError as exc:
        raise LiteralValueError(text, f"Invalid localized timestamp ({exc})") from exc

    if is_afternoon and parsed.moment.hour < 12:
        parsed = parsed.shift_hours(12)
    if is_morning and parsed.moment.hour == 12:
        parsed = parsed.shift_hours(-12)
    return parsed


def _expand_year(text: str) -> int:
    year = int(text)
    if len(text) > 2:
        return year
    return 2000 + year if year < _RR_PIVOT else 1900 + year
