"""Duplicate detection of parsed rows against stored transaction history.

Matching rule, per parsed transaction:

1. ``external_id`` present and equal to a stored transaction's
   ``external_id`` → duplicate (other fields are not compared);
2. otherwise, a stored transaction with the same calendar date, an amount
   strictly less than 0.01 apart and the exact same merchant text → duplicate;
3. otherwise not a duplicate.

The reference formulation is an O(n·m) scan over the history. Lookups keyed
by external id and by ``(date, merchant)`` give the same answers (first
match in history order) without rescanning.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from .logging_setup import get_logger
from .models import DuplicateVerdict, ExistingTransaction, ParsedTransaction

_logger = get_logger("statement_import.duplicates")

DUPLICATE_CONFIDENCE: float = 0.9
_AMOUNT_TOLERANCE = Decimal("0.01")


def _calendar_date(value: date | datetime) -> date:
    # datetime is a subclass of date; compare on the calendar day only.
    if isinstance(value, datetime):
        return value.date()
    return value


def _to_decimal(value: Decimal | float | int) -> Decimal | None:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


class _HistoryIndex:
    """Read-only lookups over the existing history, built once per batch."""

    def __init__(self, existing: Sequence[ExistingTransaction]) -> None:
        self.by_external_id: dict[str, str] = {}
        self.by_date_merchant: dict[tuple[date, str | None], list[tuple[Decimal, str]]] = (
            defaultdict(list)
        )
        for tx in existing:
            if tx.external_id and tx.external_id not in self.by_external_id:
                self.by_external_id[tx.external_id] = tx.id
            amount = _to_decimal(tx.amount)
            if amount is None or not amount.is_finite():
                continue
            self.by_date_merchant[(_calendar_date(tx.date), tx.merchant)].append((amount, tx.id))

    def match(self, tx: ParsedTransaction) -> str | None:
        if tx.external_id:
            hit = self.by_external_id.get(tx.external_id)
            if hit is not None:
                return hit
        for amount, existing_id in self.by_date_merchant.get((tx.date, tx.merchant), ()):
            if abs(amount - tx.amount) < _AMOUNT_TOLERANCE:
                return existing_id
        return None


def detect_duplicates(
    transactions: Sequence[ParsedTransaction],
    existing: Sequence[ExistingTransaction],
) -> list[DuplicateVerdict]:
    """Return one verdict per input transaction, positionally aligned."""

    index = _HistoryIndex(existing)
    verdicts: list[DuplicateVerdict] = []
    for tx in transactions:
        existing_id = index.match(tx)
        if existing_id is not None:
            verdicts.append(
                DuplicateVerdict(
                    is_duplicate=True, confidence=DUPLICATE_CONFIDENCE, existing_id=existing_id
                )
            )
        else:
            verdicts.append(DuplicateVerdict(is_duplicate=False, confidence=0.0))

    _logger.info(
        "duplicate check: %d of %d rows already in history (%d stored)",
        sum(1 for v in verdicts if v.is_duplicate),
        len(verdicts),
        len(existing),
    )
    return verdicts


__all__ = ["DUPLICATE_CONFIDENCE", "detect_duplicates"]
