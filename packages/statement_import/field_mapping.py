"""Header → canonical field detection for arbitrary CSV exports.

Each canonical field has an ordered list of lowercase synonym substrings. A
header maps to the first field (in ``FIELD_SYNONYMS`` order) that has a
synonym contained in the header's lowercased, trimmed text. Substring
matching is deliberately loose: "Posted Date" and "Transaction Date" both
land on ``date`` without listing every bank's spelling.
"""

from __future__ import annotations

from collections.abc import Iterable

from .logging_setup import get_logger

_logger = get_logger("statement_import.field_mapping")

# Evaluation order matters: a header is claimed by the first field that matches.
FIELD_SYNONYMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "date",
        ("date", "transaction_date", "post_date", "posted_date", "date_posted", "transaction date"),
    ),
    (
        "description",
        (
            "description",
            "memo",
            "note",
            "details",
            "transaction_description",
            "payee",
            "merchant_name",
        ),
    ),
    ("merchant", ("merchant", "payee", "vendor", "store", "business", "merchant_name")),
    ("amount", ("amount", "debit", "credit", "transaction_amount", "sum", "value")),
    ("currency", ("currency", "curr", "ccy")),
    (
        "account",
        ("account", "account_name", "account_number", "from_account", "to_account"),
    ),
    ("category", ("category", "category_name", "type", "transaction_type", "classification")),
    ("tags", ("tags", "tag", "labels", "keywords")),
    ("external_id", ("external_id", "id", "transaction_id", "reference", "ref")),
)

CANONICAL_FIELDS: tuple[str, ...] = tuple(name for name, _ in FIELD_SYNONYMS)

# A file is recognizable only if at least one of these is mapped.
CORE_FIELDS: tuple[str, ...] = ("date", "description", "amount")


def match_field(header: str) -> str | None:
    """Return the canonical field a single header maps to, if any."""

    normalized = header.strip().lower()
    if not normalized:
        return None
    for field_name, synonyms in FIELD_SYNONYMS:
        if any(syn in normalized for syn in synonyms):
            return field_name
    return None


def detect_field_candidates(headers: Iterable[str]) -> dict[str, tuple[str, ...]]:
    """Map each canonical field to every header that matches it, in header order."""

    candidates: dict[str, list[str]] = {}
    for header in headers:
        field_name = match_field(header)
        if field_name is not None:
            candidates.setdefault(field_name, []).append(header)
    return {f: tuple(hs) for f, hs in candidates.items()}


def detect_field_mapping(headers: Iterable[str]) -> dict[str, str]:
    """Map canonical field names to the original header text.

    Pure function. The result may be empty or partial; deciding whether the
    coverage is sufficient is the caller's job. When several headers map to
    the same field the first one wins; the row transformer falls back to the
    others when that cell is empty.
    """

    mapping = {f: hs[0] for f, hs in detect_field_candidates(headers).items()}
    _logger.debug("field mapping detected: %s", mapping)
    return mapping


def has_core_fields(mapping: dict[str, str]) -> bool:
    return any(f in mapping for f in CORE_FIELDS)


__all__ = [
    "FIELD_SYNONYMS",
    "CANONICAL_FIELDS",
    "CORE_FIELDS",
    "match_field",
    "detect_field_candidates",
    "detect_field_mapping",
    "has_core_fields",
]
