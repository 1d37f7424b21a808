from decimal import Decimal

import pytest

from statement_import.categorization import (
    KEYWORD_CONFIDENCE,
    MERCHANT_CONFIDENCE,
    RULE_CONFIDENCE,
    Categorizer,
    categorize_many,
    categorize_transaction,
    matches_rule,
    parse_amount_range,
)
from statement_import.dictionaries import KEYWORD_DICTIONARY, MERCHANT_DICTIONARY, lookup
from statement_import.models import MatchType, ParsedTransaction, Rule

from tests.helpers.store import FakeStore, categories_named


def _match(rule: Rule, *, description="", merchant=None, amount=Decimal("0"), account_id=None):
    return matches_rule(
        rule, description=description, merchant=merchant, amount=amount, account_id=account_id
    )


# ---- Rule matching -------------------------------------------------------------


def test_keyword_rule_is_case_insensitive_substring_on_description():
    rule = Rule(MatchType.KEYWORD, "coffee", "c1")
    assert _match(rule, description="Morning COFFEE run")
    assert not _match(rule, description="Tea", merchant="Coffee Bar")


def test_merchant_rule_requires_merchant():
    rule = Rule(MatchType.MERCHANT, "Starbucks", "c1")
    assert _match(rule, merchant="STARBUCKS #123")
    assert not _match(rule, description="starbucks", merchant=None)


def test_account_rule_is_exact_id_equality():
    rule = Rule(MatchType.ACCOUNT, "acct-1", "c1")
    assert _match(rule, account_id="acct-1")
    assert not _match(rule, account_id="acct-10")
    assert not _match(rule, account_id=None)


@pytest.mark.parametrize(
    ("pattern", "amount", "expected"),
    [
        ("10-50", Decimal("10"), True),
        ("10-50", Decimal("50"), True),
        ("10-50", Decimal("50.01"), False),
        ("10.5 - 20.25", 15, True),
        ("-100--20", Decimal("-45.00"), True),
        ("-100--20", Decimal("-10"), False),
        ("-100-0", -0.5, True),
        (".5-10", Decimal("0.5"), True),
        ("5.-10", 5, True),
        ("1e2-2e2", 150, True),
        ("1e2-2e2", 99, False),
        ("1e-2-1", Decimal("0.5"), True),
    ],
)
def test_amount_range_is_inclusive(pattern, amount, expected):
    assert _match(Rule(MatchType.AMOUNT_RANGE, pattern, "c1"), amount=amount) is expected


@pytest.mark.parametrize(
    "pattern", ["abc", "10-", "-", "10-20-30", "ten-twenty", "", "10 to 20", ".-5", "1e-5e"]
)
def test_malformed_amount_range_never_matches(pattern):
    assert parse_amount_range(pattern) is None
    assert not _match(Rule(MatchType.AMOUNT_RANGE, pattern, "c1"), amount=Decimal("15"))


def test_amount_range_with_non_finite_amount_never_matches():
    assert not _match(Rule(MatchType.AMOUNT_RANGE, "0-100", "c1"), amount=float("nan"))


def test_unknown_match_type_and_empty_pattern_never_match():
    assert not _match(Rule("REGEX", "coffee", "c1"), description="coffee")
    assert not _match(Rule(MatchType.KEYWORD, "", "c1"), description="anything")


def test_match_type_accepts_plain_strings():
    assert _match(Rule("KEYWORD", "coffee", "c1"), description="coffee")


# ---- Engine --------------------------------------------------------------------


def _categorizer(rules=(), names=()):
    resolved = {n: f"cat-{n}" for n in names}
    return Categorizer(rules, resolve_category=resolved.get)


def test_higher_priority_rule_wins():
    rules = [
        Rule(MatchType.KEYWORD, "coffee", "dining", priority=5),
        Rule(MatchType.MERCHANT, "starbucks", "coffee", priority=10),
    ]
    result = _categorizer(rules).categorize(
        description="Coffee purchase", merchant="Starbucks", amount=Decimal("-4.5"), account_id=None
    )
    assert result is not None
    assert result.category_id == "coffee"
    assert result.confidence == RULE_CONFIDENCE
    assert result.matched_rule == "starbucks"
    assert result.source == "rule"


def test_equal_priority_keeps_input_order_and_inactive_rules_are_skipped():
    rules = [
        Rule(MatchType.KEYWORD, "coffee", "first", priority=1, is_active=False),
        Rule(MatchType.KEYWORD, "coffee", "second", priority=1),
        Rule(MatchType.KEYWORD, "coffee", "third", priority=1),
    ]
    result = _categorizer(rules).categorize(
        description="coffee", merchant=None, amount=Decimal("1"), account_id=None
    )
    assert result.category_id == "second"


def test_malformed_rule_is_skipped_not_fatal():
    rules = [
        Rule(MatchType.AMOUNT_RANGE, "garbage", "bad", priority=100),
        Rule("BOGUS", "x", "bad", priority=50),
        Rule(MatchType.KEYWORD, "rent", "housing", priority=1),
    ]
    result = _categorizer(rules).categorize(
        description="October rent", merchant=None, amount=Decimal("-1500"), account_id=None
    )
    assert result.category_id == "housing"


def test_merchant_dictionary_then_keyword_dictionary():
    cat = _categorizer(names=("coffee", "dining", "utilities"))
    by_merchant = cat.categorize(
        description="Morning", merchant="Starbucks #12", amount=Decimal("-4"), account_id=None
    )
    assert by_merchant.category_id == "cat-coffee"
    assert by_merchant.confidence == MERCHANT_CONFIDENCE
    assert by_merchant.source == "merchant"
    assert by_merchant.matched_rule is None

    by_keyword = cat.categorize(
        description="Electric bill", merchant="City Power", amount=Decimal("-80"), account_id=None
    )
    assert by_keyword.category_id == "cat-utilities"
    assert by_keyword.confidence == KEYWORD_CONFIDENCE
    assert by_keyword.source == "keyword"


def test_unresolved_dictionary_category_falls_through_to_next_tier():
    # "uber" hits the merchant dictionary ("transportation") but that category
    # is not stored; the description hits the keyword dictionary instead.
    cat = _categorizer(names=("groceries",))
    result = cat.categorize(
        description="Food order", merchant="Uber Eats", amount=Decimal("-20"), account_id=None
    )
    assert result.category_id == "cat-groceries"
    assert result.source == "keyword"


def test_no_match_returns_none():
    cat = _categorizer(names=("coffee",))
    assert (
        cat.categorize(description="Misc", merchant="Acme", amount=Decimal("-1"), account_id=None)
        is None
    )


def test_for_user_fetches_rules_once_and_resolves_each_name_once():
    store = FakeStore(
        rules=[Rule(MatchType.KEYWORD, "payroll", "cat-income", priority=1)],
        categories=categories_named(["Coffee", "Dining"]),
    )
    cat = Categorizer.for_user(store, "u1")
    for _ in range(5):
        cat.categorize(description="latte", merchant="Starbucks", amount=Decimal("-5"), account_id=None)
    assert store.rule_calls == 1
    assert len(store.category_calls) == len(set(store.category_calls))
    hit = cat.categorize(
        description="latte", merchant="Starbucks", amount=Decimal("-5"), account_id=None
    )
    # Category names resolve case-insensitively against stored categories.
    assert hit.category_id == "cat-Coffee"


def test_categorize_transaction_one_shot():
    store = FakeStore(
        rules=[Rule(MatchType.ACCOUNT, "acct-1", "cat-bills", priority=3)],
        categories=categories_named(["shopping"]),
    )
    by_rule = categorize_transaction(store, "u1", "Anything", None, Decimal("-1"), "acct-1")
    assert by_rule.category_id == "cat-bills"
    by_dictionary = categorize_transaction(store, "u1", "Amazon order", "Amazon", -10, "acct-2")
    assert by_dictionary.category_id == "cat-shopping"
    assert by_dictionary.source == "merchant"
    assert categorize_transaction(store, "u1", "Misc", None, 1, None) is None


def test_categorize_many_preserves_order():
    cat = _categorizer(
        rules=[Rule(MatchType.AMOUNT_RANGE, "100-200", "big")], names=("coffee", "dining")
    )
    items = [
        (ParsedTransaction(date=None, description=f"row {i}", amount=Decimal(amt)), None)
        for i, amt in enumerate(["150", "1", "2", "175"])
    ]
    results = categorize_many(cat, items, concurrency=3)
    assert [r.category_id if r else None for r in results] == ["big", None, None, "big"]
    assert categorize_many(cat, [], concurrency=3) == []


# ---- Dictionaries ----------------------------------------------------------------


def test_dictionary_order_decides_first_hit():
    assert lookup("HOME DEPOT #44", MERCHANT_DICTIONARY) == "home-improvement"
    assert lookup("Shell Gas Station", MERCHANT_DICTIONARY) == "transportation"
    assert lookup("Coffee Bean", MERCHANT_DICTIONARY) == "dining"
    assert lookup(None, KEYWORD_DICTIONARY) is None
    assert lookup("", KEYWORD_DICTIONARY) is None


def test_dictionaries_are_extensible():
    extended = MERCHANT_DICTIONARY + (("trader joe", "groceries"),)
    cat = Categorizer([], resolve_category={"groceries": "g"}.get, merchant_dictionary=extended)
    result = cat.categorize(
        description="x", merchant="Trader Joe's", amount=Decimal("-1"), account_id=None
    )
    assert result.category_id == "g"
