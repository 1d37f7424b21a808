"""Flexible date parsing against an ordered list of candidate patterns.

Patterns use the tokens ``yyyy``, ``yy``, ``MM`` and ``dd`` separated by ``/``
or ``-``. A token is accepted by the first pattern whose fragments build a
real calendar date, so ``13/05/2024`` skips ``MM/dd/yyyy`` (month 13) and
resolves as ``dd/MM/yyyy``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date

from .errors import ParseError

DATE_PATTERNS: tuple[str, ...] = (
    "yyyy-MM-dd",
    "MM/dd/yyyy",
    "dd/MM/yyyy",
    "MM-dd-yyyy",
    "dd-MM-yyyy",
    "yyyy/MM/dd",
    "MM/dd/yy",
    "dd/MM/yy",
)

_SEPARATORS_RE = re.compile(r"[/\-]")
_DIGITS_RE = re.compile(r"^\d+$")

# Accepted fragment widths per pattern token.
_TOKEN_WIDTHS: dict[str, tuple[int, ...]] = {
    "yyyy": (4,),
    "yy": (2,),
    "MM": (1, 2),
    "dd": (1, 2),
}


def _date_part(token: str) -> str:
    # Drop a trailing time component: "2024-08-01 10:30" or "2024-08-01T10:30:00".
    s = token.strip()
    if not s:
        return s
    first = s.split()[0]
    if re.match(r"^\d{4}-\d{1,2}-\d{1,2}T", first):
        first = first.split("T", 1)[0]
    return first


def parse_date_with_pattern(token: str, pattern: str) -> date | None:
    """Parse ``token`` against a single pattern; ``None`` when it does not fit."""

    parts = _SEPARATORS_RE.split(_date_part(token))
    pattern_parts = _SEPARATORS_RE.split(pattern)
    if len(parts) != len(pattern_parts):
        return None

    year = month = day = None
    for part, fmt in zip(parts, pattern_parts, strict=True):
        widths = _TOKEN_WIDTHS.get(fmt)
        if widths is None or not _DIGITS_RE.match(part) or len(part) not in widths:
            return None
        value = int(part)
        if fmt == "yyyy":
            year = value
        elif fmt == "yy":
            year = value + 2000
        elif fmt == "MM":
            month = value
        else:
            day = value

    if year is None or month is None or day is None:
        return None
    # Round-trip guard: date() rejects any y/m/d that does not read back as-is.
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(token: str, patterns: Sequence[str] = DATE_PATTERNS) -> date:
    """Return the date for the first pattern in ``patterns`` that round-trips.

    Raises
    ------
    ParseError
        When no pattern produces a valid calendar date.
    """

    for pattern in patterns:
        parsed = parse_date_with_pattern(token, pattern)
        if parsed is not None:
            return parsed
    raise ParseError(f"Unable to parse date: {token!r}", token=token)


def format_date(value: date, pattern: str) -> str:
    """Render ``value`` using the same token vocabulary as the parser."""

    out = pattern
    out = out.replace("yyyy", f"{value.year:04d}")
    out = out.replace("yy", f"{value.year % 100:02d}")
    out = out.replace("MM", f"{value.month:02d}")
    out = out.replace("dd", f"{value.day:02d}")
    return out


def describe_patterns(patterns: Sequence[str] = DATE_PATTERNS) -> str:
    return ", ".join(p.upper() for p in patterns)


__all__ = [
    "DATE_PATTERNS",
    "parse_date_with_pattern",
    "parse_date",
    "format_date",
    "describe_patterns",
]
