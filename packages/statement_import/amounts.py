"""Amount normalization and description-based sign reconciliation.

Parsing (:func:`parse_amount`) turns decorated bank text such as ``"($1,234.56)"``
or ``"-€12.00"`` into a signed ``Decimal``. Reconciliation
(:func:`reconcile_sign`) then nudges the sign using description keywords, to
correct exports that write debits as positive magnitudes.

The keyword lists are a best-effort heuristic, not an authority. They overlap
in spirit ("credit" shows up in both transfer and income wording) and are kept
as plain module-level tuples so callers can pass their own.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .errors import ParseError

INCOME_KEYWORDS: tuple[str, ...] = (
    "deposit",
    "salary",
    "payroll",
    "income",
    "refund",
    "credit",
    "transfer in",
    "ach credit",
    "merchant offers credit",
    "cashback",
    "cash back",
    "reward",
    "bonus",
    "interest earned",
)

EXPENSE_KEYWORDS: tuple[str, ...] = (
    "purchase",
    "withdrawal",
    "debit",
    "charge",
    "fee",
    "atm",
    "amazon",
    "chipotle",
    "staterbros",
    "gas",
    "fuel",
    "restaurant",
    "grocery",
    "shopping",
    "payment",
)

_CURRENCY_SYMBOLS = ("$", "€", "£", "¥")


def parse_amount(raw: str | None) -> Decimal:
    """Parse a raw amount token into a signed ``Decimal``.

    Currency symbols and thousands separators are dropped. Enclosing
    parentheses or a leading minus make the value negative; the markers may
    appear in any order (``"-($1,234.56)"``, ``"$(12.00)"``).

    Raises
    ------
    ParseError
        When the remaining text is empty, not numeric, or not finite.
    """

    if raw is None:
        raise ParseError("amount is required", token=raw)
    s = raw.strip()
    for sym in _CURRENCY_SYMBOLS:
        s = s.replace(sym, "")
    s = s.replace(",", "").strip()
    if not s:
        raise ParseError(f"Unable to parse amount: {raw!r}", token=raw)

    negative = False
    # Strip sign and parentheses until stable so any ordering is handled.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ParseError(f"Unable to parse amount: {raw!r}", token=raw) from exc
    if not d.is_finite():
        raise ParseError(f"Unable to parse amount: {raw!r}", token=raw)

    magnitude = abs(d)
    if negative and magnitude != 0:
        return -magnitude
    return magnitude


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(k in text for k in keywords)


def reconcile_sign(
    amount: Decimal,
    description: str | None,
    *,
    income_keywords: Sequence[str] = INCOME_KEYWORDS,
    expense_keywords: Sequence[str] = EXPENSE_KEYWORDS,
) -> Decimal:
    """Correct the sign of ``amount`` from description keywords.

    Income keywords are checked first and win: a description that matches
    both lists comes out non-negative. An expense match alone forces the value
    non-positive. No match leaves the amount unchanged.
    """

    if not description:
        return amount
    text = description.lower()
    if _contains_any(text, income_keywords):
        return abs(amount)
    if _contains_any(text, expense_keywords):
        return -abs(amount) if amount != 0 else amount
    return amount


def normalize_amount(
    raw: str | None,
    description: str | None = None,
    *,
    income_keywords: Sequence[str] = INCOME_KEYWORDS,
    expense_keywords: Sequence[str] = EXPENSE_KEYWORDS,
) -> Decimal:
    """Parse ``raw`` and reconcile its sign against ``description``."""

    return reconcile_sign(
        parse_amount(raw),
        description,
        income_keywords=income_keywords,
        expense_keywords=expense_keywords,
    )


def format_amount(d: Decimal) -> str:
    """Two decimals, ASCII dot, leading minus for negatives."""

    q = d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{q:.2f}"


__all__ = [
    "INCOME_KEYWORDS",
    "EXPENSE_KEYWORDS",
    "parse_amount",
    "reconcile_sign",
    "normalize_amount",
    "format_amount",
]
