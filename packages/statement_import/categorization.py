"""Tiered transaction categorization.

Evaluation order, first hit wins:

1. the user's rules, highest ``priority`` first (confidence 0.9);
2. the static merchant dictionary against the merchant (0.7);
3. the static keyword dictionary against the description (0.5).

No hit returns ``None``; the caller decides on a fallback such as
"Uncategorized". Nothing here raises for bad data: a malformed rule is
skipped and a dictionary hit whose category is not stored falls through to
the next tier.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal, InvalidOperation
from types import MappingProxyType

from .dictionaries import (
    KEYWORD_DICTIONARY,
    MERCHANT_DICTIONARY,
    Dictionary,
    category_names,
    lookup,
)
from .logging_setup import get_logger
from .models import CategorizationResult, MatchType, ParsedTransaction, Rule
from .pmap import p_map
from .storage import TransactionStore

_logger = get_logger("statement_import.categorization")

RULE_CONFIDENCE: float = 0.9
MERCHANT_CONFIDENCE: float = 0.7
KEYWORD_CONFIDENCE: float = 0.5

# One bound: optional minus, digits with an optional fraction (".5" and "5."
# included) and an optional exponent ("1e2", "1e-2").
_BOUND = r"-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
# "min-max"; bounds may carry a leading minus ("-100--20").
_RANGE_RE = re.compile(rf"^\s*({_BOUND})\s*-\s*({_BOUND})\s*$")

type Amount = Decimal | float | int
type CategoryResolver = Callable[[str], str | None]


# ---------------------------------------------------------------------------
# Rule matching
# ---------------------------------------------------------------------------


def parse_amount_range(pattern: str | None) -> tuple[Decimal, Decimal] | None:
    """Return ``(min, max)`` for an AMOUNT_RANGE pattern, or ``None`` if malformed."""

    if not pattern:
        return None
    m = _RANGE_RE.match(pattern)
    if m is None:
        return None
    return Decimal(m.group(1)), Decimal(m.group(2))


def _as_decimal(amount: Amount) -> Decimal | None:
    if isinstance(amount, Decimal):
        return amount if amount.is_finite() else None
    try:
        d = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def matches_rule(
    rule: Rule,
    *,
    description: str,
    merchant: str | None,
    amount: Amount,
    account_id: str | None,
) -> bool:
    """Return whether ``rule`` applies; malformed rules never match."""

    pattern = rule.pattern
    if not isinstance(pattern, str) or not pattern:
        return False

    match rule.match_type:
        case MatchType.KEYWORD:
            return pattern.lower() in (description or "").lower()
        case MatchType.MERCHANT:
            if not merchant:
                return False
            return pattern.lower() in merchant.lower()
        case MatchType.ACCOUNT:
            return account_id is not None and account_id == pattern
        case MatchType.AMOUNT_RANGE:
            bounds = parse_amount_range(pattern)
            value = _as_decimal(amount)
            if bounds is None or value is None:
                _logger.debug("skipping malformed amount range rule %r", pattern)
                return False
            low, high = bounds
            return low <= value <= high
        case _:
            _logger.debug("skipping rule with unknown match type %r", rule.match_type)
            return False


def order_rules(rules: Iterable[Rule]) -> list[Rule]:
    """Active rules by priority descending; ties keep their input order."""

    return sorted((r for r in rules if r.is_active), key=lambda r: r.priority, reverse=True)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class Categorizer:
    """Categorize transactions for one user against a fixed rule set.

    Instances hold only read-only state (ordered rules, dictionaries and a
    category resolver), so one instance can be shared across threads for a
    whole import batch.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        *,
        resolve_category: CategoryResolver,
        merchant_dictionary: Dictionary = MERCHANT_DICTIONARY,
        keyword_dictionary: Dictionary = KEYWORD_DICTIONARY,
    ) -> None:
        self.rules: tuple[Rule, ...] = tuple(order_rules(rules))
        self.merchant_dictionary = merchant_dictionary
        self.keyword_dictionary = keyword_dictionary
        self._resolve = resolve_category

    @classmethod
    def for_user(
        cls,
        store: TransactionStore,
        user_id: str,
        *,
        merchant_dictionary: Dictionary = MERCHANT_DICTIONARY,
        keyword_dictionary: Dictionary = KEYWORD_DICTIONARY,
    ) -> Categorizer:
        """Fetch the user's rules and resolve every dictionary category once.

        Storage cost is one rules query plus one lookup per distinct category
        name, independent of how many transactions are categorized afterwards.
        """

        rules = store.get_active_rules(user_id)
        resolved: dict[str, str | None] = {}
        for name in category_names(merchant_dictionary, keyword_dictionary):
            category = store.find_category_by_name(name)
            resolved[name] = category.id if category is not None else None
        ids = MappingProxyType(resolved)
        _logger.info(
            "categorizer ready for user %s: %d rules, %d/%d dictionary categories stored",
            user_id,
            len(rules),
            sum(1 for v in ids.values() if v is not None),
            len(ids),
        )
        return cls(
            rules,
            resolve_category=ids.get,
            merchant_dictionary=merchant_dictionary,
            keyword_dictionary=keyword_dictionary,
        )

    def _match_rules(
        self,
        *,
        description: str,
        merchant: str | None,
        amount: Amount,
        account_id: str | None,
    ) -> CategorizationResult | None:
        for rule in self.rules:
            if matches_rule(
                rule,
                description=description,
                merchant=merchant,
                amount=amount,
                account_id=account_id,
            ):
                return CategorizationResult(
                    category_id=rule.category_id,
                    confidence=RULE_CONFIDENCE,
                    matched_rule=rule.pattern,
                    source="rule",
                )
        return None

    def _match_dictionary(
        self, text: str | None, dictionary: Dictionary
    ) -> str | None:
        name = lookup(text, dictionary)
        if name is None:
            return None
        category_id = self._resolve(name)
        if category_id is None:
            _logger.debug("dictionary category %r has no stored category", name)
        return category_id

    def categorize(
        self,
        *,
        description: str,
        merchant: str | None,
        amount: Amount,
        account_id: str | None,
    ) -> CategorizationResult | None:
        hit = self._match_rules(
            description=description, merchant=merchant, amount=amount, account_id=account_id
        )
        if hit is not None:
            return hit

        category_id = self._match_dictionary(merchant, self.merchant_dictionary)
        if category_id is not None:
            return CategorizationResult(
                category_id=category_id, confidence=MERCHANT_CONFIDENCE, source="merchant"
            )

        category_id = self._match_dictionary(description, self.keyword_dictionary)
        if category_id is not None:
            return CategorizationResult(
                category_id=category_id, confidence=KEYWORD_CONFIDENCE, source="keyword"
            )
        return None

    def categorize_parsed(
        self, tx: ParsedTransaction, *, account_id: str | None
    ) -> CategorizationResult | None:
        return self.categorize(
            description=tx.description,
            merchant=tx.merchant,
            amount=tx.amount,
            account_id=account_id,
        )


def categorize_transaction(
    store: TransactionStore,
    user_id: str,
    description: str,
    merchant: str | None,
    amount: Amount,
    account_id: str | None,
    *,
    merchant_dictionary: Dictionary = MERCHANT_DICTIONARY,
    keyword_dictionary: Dictionary = KEYWORD_DICTIONARY,
) -> CategorizationResult | None:
    """Categorize a single transaction.

    Fetches the user's rules on every call and resolves dictionary categories
    only when a dictionary entry is hit. For batches, build one
    :meth:`Categorizer.for_user` and reuse it.
    """

    def _resolve(name: str) -> str | None:
        category = store.find_category_by_name(name)
        return category.id if category is not None else None

    categorizer = Categorizer(
        store.get_active_rules(user_id),
        resolve_category=_resolve,
        merchant_dictionary=merchant_dictionary,
        keyword_dictionary=keyword_dictionary,
    )
    return categorizer.categorize(
        description=description, merchant=merchant, amount=amount, account_id=account_id
    )


def categorize_many(
    categorizer: Categorizer,
    items: Sequence[tuple[ParsedTransaction, str | None]],
    *,
    concurrency: int = 4,
) -> list[CategorizationResult | None]:
    """Categorize ``(transaction, account_id)`` pairs concurrently, order preserved."""

    if not items:
        return []
    return p_map(
        items,
        lambda item: categorizer.categorize_parsed(item[0], account_id=item[1]),
        concurrency=max(1, min(concurrency, len(items))),
    )


__all__ = [
    "RULE_CONFIDENCE",
    "MERCHANT_CONFIDENCE",
    "KEYWORD_CONFIDENCE",
    "parse_amount_range",
    "matches_rule",
    "order_rules",
    "Categorizer",
    "categorize_transaction",
    "categorize_many",
]
