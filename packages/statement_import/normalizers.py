"""CSV → ParsedTransaction normalization for arbitrary bank exports.

Parsing follows RFC 4180 via the stdlib :mod:`csv` module (quoted fields with
embedded commas and newlines, doubled quotes). Column layout is not fixed:
headers are mapped onto canonical fields by substring synonyms (see
:mod:`statement_import.field_mapping`), so exports from different banks go
through the same path.

Failure policy:
- a file with no recognizable date/description/amount header raises
  :class:`StructuralParseError` and yields nothing;
- a bad row is logged with its raw content, reported in
  :attr:`ParseResult.errors`, and skipped.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from io import StringIO

from .config import ImportSettings
from .errors import RowTransformError, StructuralParseError
from .field_mapping import detect_field_mapping, has_core_fields
from .logging_setup import get_logger
from .models import ParsedTransaction
from .records import RecordTransformer

_logger = get_logger("statement_import.normalizers")


@dataclass(slots=True)
class ParseResult:
    """Transactions in source row order plus one message per skipped row."""

    transactions: list[ParsedTransaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    mapping: dict[str, str] = field(default_factory=dict)


def _read_csv_rows(csv_text: str) -> tuple[list[str], list[dict[str, str]]]:
    """Return ``(headers, rows)`` with trimmed names/values and blank rows dropped."""

    text = csv_text.lstrip("\ufeff")
    try:
        with StringIO(text) as f:
            reader = csv.DictReader(f)
            raw_headers = reader.fieldnames or []
            headers = [h.strip() for h in raw_headers if h is not None]
            rows: list[dict[str, str]] = []
            for row in reader:
                # DictReader puts overflow cells under a None key; drop them.
                normalized = {
                    (k.strip() if k else k): (v.strip() if isinstance(v, str) else "")
                    for k, v in row.items()
                    if k is not None
                }
                if all(v == "" for v in normalized.values()):
                    continue
                rows.append(normalized)
    except csv.Error as exc:
        raise StructuralParseError(f"Malformed CSV: {exc}") from exc
    return headers, rows


class CSVNormalizer:
    """Normalize CSV text into :class:`ParsedTransaction` rows.

    Usage
    -----
    result = CSVNormalizer().parse(csv_text)  # -> ParseResult
    """

    def __init__(self, settings: ImportSettings | None = None) -> None:
        self.settings = settings or ImportSettings()

    def parse(self, csv_text: str) -> ParseResult:
        headers, rows = _read_csv_rows(csv_text)
        if not rows:
            _logger.info("no data rows found; nothing to parse")
            return ParseResult(headers=headers)

        # Headers come from the first data row (DictReader keys).
        first_headers = [h for h in rows[0].keys() if h]
        mapping = detect_field_mapping(first_headers)
        if not has_core_fields(mapping):
            raise StructuralParseError(
                "No required fields found. Available headers: "
                f"{', '.join(first_headers)}. Expected at least: date, description, amount",
                headers=first_headers,
            )

        transformer = RecordTransformer(mapping, headers=first_headers, settings=self.settings)
        result = ParseResult(headers=first_headers, mapping=mapping)
        for row_no, row in enumerate(rows, start=1):
            try:
                parsed = transformer.transform(row)
            except RowTransformError as exc:
                _logger.warning("skipping row %d: %s; raw=%r", row_no, exc, row)
                result.errors.append(f"Row {row_no}: {exc}")
                continue
            _logger.debug("parsed row %d: %r", row_no, parsed)
            result.transactions.append(parsed)

        _logger.info(
            "parsed %d of %d rows (%d skipped)",
            len(result.transactions),
            len(rows),
            len(result.errors),
        )
        return result


def parse_csv(csv_text: str, *, settings: ImportSettings | None = None) -> list[ParsedTransaction]:
    """Parse ``csv_text`` and return only the successfully transformed rows."""

    return CSVNormalizer(settings).parse(csv_text).transactions


__all__ = ["CSVNormalizer", "ParseResult", "parse_csv"]
