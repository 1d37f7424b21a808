"""Turn one raw CSV row into a :class:`ParsedTransaction`.

A :class:`RecordTransformer` is built once per file from the header row and
the detected field mapping, then applied to every row. Failures are raised as
:class:`RowTransformError` so the parser can skip the row and keep going.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .amounts import normalize_amount
from .config import ImportSettings
from .dates import describe_patterns, parse_date
from .errors import ParseError, RowTransformError
from .field_mapping import detect_field_candidates, detect_field_mapping, match_field
from .models import ParsedTransaction

_TAG_SPLIT_RE = re.compile(r"[,;]")

# Header words that identify split debit/credit columns on bank statements.
_DEBIT_WORDS: tuple[str, ...] = ("debit", "withdrawal")
_CREDIT_WORDS: tuple[str, ...] = ("credit", "deposit")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    s = value.strip()
    return s or None


def split_tags(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(t.strip() for t in _TAG_SPLIT_RE.split(raw) if t.strip())


@dataclass(frozen=True, slots=True)
class BankColumns:
    """Split debit/credit columns detected in a header row."""

    debit: tuple[str, ...] = ()
    credit: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.debit or self.credit)


def detect_bank_columns(headers: Sequence[str], mapping: Mapping[str, str]) -> BankColumns:
    """Find debit/withdrawal and credit/deposit columns.

    Headers already claimed by a non-amount field (e.g. "Deposit Date" as the
    date column) are not treated as money columns.
    """

    claimed = {h for f, h in mapping.items() if f != "amount"}
    claimed.update(h for h in headers if match_field(h) not in (None, "amount"))
    debit: list[str] = []
    credit: list[str] = []
    for header in headers:
        if header in claimed:
            continue
        h = header.strip().lower()
        if any(w in h for w in _DEBIT_WORDS):
            debit.append(header)
        elif any(w in h for w in _CREDIT_WORDS):
            credit.append(header)
    return BankColumns(debit=tuple(debit), credit=tuple(credit))


def _first_populated(record: Mapping[str, str | None], headers: Sequence[str]) -> str | None:
    for h in headers:
        v = _clean(record.get(h))
        if v is not None:
            return v
    return None


def _candidate_headers(
    mapping: Mapping[str, str], headers: Sequence[str]
) -> dict[str, tuple[str, ...]]:
    """The mapped header first, then any other header matching the same field."""

    others = detect_field_candidates(headers)
    return {
        f: (h, *(c for c in others.get(f, ()) if c != h)) for f, h in mapping.items()
    }


class RecordTransformer:
    """Apply a field mapping (and optional debit/credit columns) to raw rows."""

    def __init__(
        self,
        mapping: Mapping[str, str],
        *,
        headers: Sequence[str] = (),
        settings: ImportSettings | None = None,
    ) -> None:
        self.mapping = dict(mapping)
        self.headers = tuple(headers)
        self.candidates = _candidate_headers(self.mapping, self.headers)
        self.bank_columns = detect_bank_columns(self.headers, self.mapping)
        self.settings = settings or ImportSettings()

    @classmethod
    def from_headers(
        cls, headers: Sequence[str], *, settings: ImportSettings | None = None
    ) -> RecordTransformer:
        return cls(detect_field_mapping(headers), headers=headers, settings=settings)

    def _raw_amount(self, record: Mapping[str, str | None], fields: Mapping[str, str]) -> str | None:
        # Split debit/credit columns take precedence over a single amount column.
        if self.bank_columns:
            debit = _first_populated(record, self.bank_columns.debit)
            if debit is not None:
                return "-" + debit.lstrip("-").strip()
            credit = _first_populated(record, self.bank_columns.credit)
            if credit is not None:
                return credit
        return fields.get("amount")

    def transform(self, record: Mapping[str, str | None]) -> ParsedTransaction:
        available = ", ".join(k for k in record.keys() if k)

        fields: dict[str, str] = {}
        for field_name, headers in self.candidates.items():
            value = _first_populated(record, headers)
            if value is not None:
                fields[field_name] = value

        date_raw = fields.get("date")
        if date_raw is None:
            raise RowTransformError(
                f"Date field is required but not found in CSV. Available fields: {available}",
                available_headers=list(record.keys()),
            )

        description = fields.get("description") or fields.get("merchant")
        merchant = fields.get("merchant") or fields.get("description")
        if description is None:
            raise RowTransformError(
                "Description or merchant field is required but not found in CSV. "
                f"Available fields: {available}",
                available_headers=list(record.keys()),
            )

        amount_raw = self._raw_amount(record, fields)
        if amount_raw is None:
            raise RowTransformError(
                f"Amount field is required but not found in CSV. Available fields: {available}",
                available_headers=list(record.keys()),
            )

        try:
            parsed_date = parse_date(date_raw)
        except ParseError as exc:
            raise RowTransformError(
                f"Failed to parse date: {date_raw}. Supported formats: {describe_patterns()}",
                available_headers=list(record.keys()),
            ) from exc

        try:
            amount = normalize_amount(amount_raw, description)
        except ParseError as exc:
            raise RowTransformError(
                f"Failed to parse amount: {amount_raw}. "
                "Expected format: number with optional currency symbol",
                available_headers=list(record.keys()),
            ) from exc

        return ParsedTransaction(
            date=parsed_date,
            description=description,
            merchant=merchant,
            amount=amount,
            currency=(fields.get("currency") or self.settings.default_currency).upper(),
            account=fields.get("account") or self.settings.default_account,
            category=fields.get("category"),
            tags=split_tags(fields.get("tags")),
            external_id=fields.get("external_id"),
        )


def transform_record(
    record: Mapping[str, str | None],
    mapping: Mapping[str, str],
    *,
    settings: ImportSettings | None = None,
) -> ParsedTransaction:
    """Single-row convenience wrapper around :class:`RecordTransformer`."""

    transformer = RecordTransformer(mapping, headers=list(record.keys()), settings=settings)
    return transformer.transform(record)


__all__ = [
    "BankColumns",
    "RecordTransformer",
    "detect_bank_columns",
    "split_tags",
    "transform_record",
]
