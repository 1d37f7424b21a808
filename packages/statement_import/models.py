"""Data models for ``statement_import``.

Internal records produced and consumed inside one import run are frozen
dataclasses. The shapes that cross into persistence (``TransactionDraft``)
or get reported back to callers (``ImportSummary``) are Pydantic models so
they validate on construction and serialize cleanly to JSON.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from .categorization import Categorizer

# ---------------------------------------------------------------------------
# Parsing output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedTransaction:
    """One CSV row after normalization.

    ``amount`` follows the sign convention enforced by the amount normalizer:
    negative for expenses, positive for income. ``merchant`` falls back to
    ``description`` when the file has no merchant column.
    """

    date: date
    description: str
    amount: Decimal
    merchant: str | None = None
    currency: str = "USD"
    account: str = "Default Account"
    category: str | None = None
    tags: tuple[str, ...] = ()
    external_id: str | None = None


# ---------------------------------------------------------------------------
# Storage-facing records (read side)
# ---------------------------------------------------------------------------


class MatchType(StrEnum):
    KEYWORD = "KEYWORD"
    MERCHANT = "MERCHANT"
    AMOUNT_RANGE = "AMOUNT_RANGE"
    ACCOUNT = "ACCOUNT"


@dataclass(frozen=True, slots=True)
class Rule:
    """A user-owned pattern → category rule.

    ``match_type`` is kept as stored: a value outside :class:`MatchType`
    is carried through and simply never matches.
    """

    match_type: MatchType | str
    pattern: str
    category_id: str
    priority: int = 0
    is_active: bool = True
    id: str | None = None


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class Account:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class ExistingTransaction:
    """The subset of a stored transaction needed for duplicate comparison."""

    id: str
    date: date | datetime
    amount: Decimal | float | int
    merchant: str | None = None
    external_id: str | None = None


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------

type CategorySource = Literal["rule", "merchant", "keyword"]


@dataclass(frozen=True, slots=True)
class CategorizationResult:
    """A category guess with a heuristic confidence in ``[0, 1]``.

    ``matched_rule`` holds the rule pattern that fired (rule tier only);
    ``source`` names the tier that produced the result.
    """

    category_id: str
    confidence: float
    matched_rule: str | None = None
    source: CategorySource = "rule"


@dataclass(frozen=True, slots=True)
class DuplicateVerdict:
    is_duplicate: bool
    confidence: float
    existing_id: str | None = None


# ---------------------------------------------------------------------------
# Import DTOs
# ---------------------------------------------------------------------------


class TransactionDraft(BaseModel):
    """A normalized transaction ready for insertion by the storage collaborator."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    account_id: str
    date: dt.date
    description: str
    merchant: str | None = None
    amount: Decimal
    currency: str = "USD"
    category_id: str | None = None
    tags: list[str] = []
    external_id: str | None = None
    is_transfer: bool = False

    @field_validator("description")
    @classmethod
    def _description_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("description must be non-empty")
        return v

    @field_validator("currency")
    @classmethod
    def _currency_upper(cls, v: str) -> str:
        return v.upper() or "USD"


class ImportSummary(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    total: int
    duplicates: int
    new: int
    categorized: int


@dataclass(frozen=True, slots=True)
class ImportCandidate:
    """A parsed row annotated for review before it is committed.

    ``evaluated`` is set once the categorizer has run on the row, so a row with
    no hit is not categorized a second time at commit.
    """

    transaction: ParsedTransaction
    duplicate: DuplicateVerdict
    account_id: str | None = None
    categorization: CategorizationResult | None = None
    evaluated: bool = False

    @property
    def category_id(self) -> str | None:
        return self.categorization.category_id if self.categorization else None


@dataclass(frozen=True, slots=True)
class ImportPreview:
    """Preview output; ``categorizer`` is the one built for the batch, reused at commit."""

    candidates: list[ImportCandidate]
    summary: ImportSummary
    errors: list[str] = field(default_factory=list)
    categorizer: Categorizer | None = None


@dataclass(slots=True)
class ImportReport:
    """Outcome of committing a batch: partial success is the normal case."""

    imported: int = 0
    errors: list[str] = field(default_factory=list)
    summary: ImportSummary | None = None


__all__ = [
    "ParsedTransaction",
    "MatchType",
    "Rule",
    "Category",
    "Account",
    "ExistingTransaction",
    "CategorySource",
    "CategorizationResult",
    "DuplicateVerdict",
    "TransactionDraft",
    "ImportSummary",
    "ImportCandidate",
    "ImportPreview",
    "ImportReport",
]
