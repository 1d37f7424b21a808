# ruff: noqa: E501
import textwrap
from datetime import date
from decimal import Decimal

import pytest

from statement_import import (
    Account,
    ImportSettings,
    MatchType,
    Rule,
    StructuralParseError,
    commit_import,
    import_csv,
    preview_import,
)

from tests.helpers.store import FakeStore, categories_named, existing


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n").rstrip()


CSV = _dedent(
    """
    Date,Description,Merchant,Amount,Account,Transaction ID
    2024-08-01,Latte,Starbucks,-4.50,Checking,A1
    2024-08-02,Weekly groceries,Walmart,-82.10,checking,A2
    2024-08-03,Paycheck,ACME Corp,2500.00,Checking,A3
    2024-08-04,Mystery,Nowhere,-1.00,Savings,A4
    2024-08-05,Broken row,Nowhere,oops,Checking,A5
    """
)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(
        rules=[Rule(MatchType.KEYWORD, "paycheck", "cat-income", priority=5)],
        categories=categories_named(["coffee", "groceries"]),
        existing=[existing("old-1", date(2020, 1, 1), "0", external_id="A2")],
        accounts=[Account(id="acct-chk", name="Checking")],
    )


def test_preview_annotates_every_parsed_row(store: FakeStore):
    preview = preview_import(store, user_id="u1", csv_text=CSV)

    assert [c.transaction.description for c in preview.candidates] == [
        "Latte",
        "Weekly groceries",
        "Paycheck",
        "Mystery",
    ]
    assert [c.duplicate.is_duplicate for c in preview.candidates] == [False, True, False, False]
    # Account names resolve case-insensitively; unknown names stay unresolved.
    assert [c.account_id for c in preview.candidates] == ["acct-chk", "acct-chk", "acct-chk", None]
    # Duplicates are not categorized.
    assert [c.category_id for c in preview.candidates] == ["cat-coffee", None, "cat-income", None]
    assert preview.errors == [
        "Row 5: Failed to parse amount: oops. Expected format: number with optional currency symbol"
    ]
    s = preview.summary
    assert (s.total, s.duplicates, s.new, s.categorized) == (4, 1, 3, 2)


def test_commit_inserts_non_duplicates_and_reports_per_row_errors(store: FakeStore):
    preview = preview_import(store, user_id="u1", csv_text=CSV)
    seen: list[tuple[str, str]] = []
    report = commit_import(
        store,
        user_id="u1",
        candidates=preview.candidates,
        on_imported=lambda c, tx_id: seen.append((c.transaction.description, tx_id)),
    )

    assert report.imported == 2
    assert report.errors == ["Account not found for transaction: Mystery"]
    assert seen == [("Latte", "tx-1"), ("Paycheck", "tx-2")]

    (_, latte), (_, pay) = store.inserted
    assert latte.account_id == "acct-chk"
    assert latte.amount == Decimal("-4.50")
    assert latte.category_id == "cat-coffee"
    assert latte.external_id == "A1"
    assert latte.currency == "USD"
    assert pay.amount == Decimal("2500.00")
    assert pay.category_id == "cat-income"


def test_failed_insert_does_not_stop_the_batch(store: FakeStore):
    store.fail_on = {"Latte"}
    report = import_csv(store, user_id="u1", csv_text=CSV)

    assert report.imported == 1
    assert [d.description for _, d in store.inserted] == ["Paycheck"]
    assert report.errors == [
        "Row 5: Failed to parse amount: oops. Expected format: number with optional currency symbol",
        "Failed to import: Latte",
        "Account not found for transaction: Mystery",
    ]
    assert report.summary is not None
    assert report.summary.total == 4


def test_commit_categorizes_candidates_missing_a_category(store: FakeStore):
    preview = preview_import(store, user_id="u1", csv_text=CSV)
    # Candidates built without running the categorizer, e.g. by a review step.
    from dataclasses import replace

    stripped = [replace(c, categorization=None, evaluated=False) for c in preview.candidates]
    rule_calls_before = store.rule_calls
    commit_import(store, user_id="u1", candidates=stripped)

    assert [d.category_id for _, d in store.inserted] == ["cat-coffee", "cat-income"]
    assert store.rule_calls == rule_calls_before + 1


def test_preview_uses_settings_for_defaults(store: FakeStore):
    csv_text = "Date,Description,Amount\n2024-08-01,Latte,-4.50\n"
    preview = preview_import(
        store, user_id="u1", csv_text=csv_text, settings=ImportSettings(default_account="checking", workers=1)
    )
    (candidate,) = preview.candidates
    assert candidate.transaction.account == "checking"
    assert candidate.account_id == "acct-chk"


def test_structural_error_propagates(store: FakeStore):
    with pytest.raises(StructuralParseError):
        import_csv(store, user_id="u1", csv_text="Foo,Bar\n1,2\n")
    assert store.inserted == []


def test_all_duplicates_skip_categorization(store: FakeStore):
    csv_text = "Date,Description,Amount,Transaction ID\n2024-08-01,Again,-1.00,A2\n"
    report = import_csv(store, user_id="u1", csv_text=csv_text)
    assert report.imported == 0
    assert report.errors == []
    assert store.rule_calls == 0


def test_import_fetches_rules_and_categories_once_for_unmatched_rows(store: FakeStore):
    csv_text = _dedent(
        """
        Date,Description,Amount,Account
        2024-08-01,Misc thing,-3.00,Checking
        2024-08-02,Other,-7.00,Checking
        """
    )
    report = import_csv(store, user_id="u1", csv_text=csv_text)

    assert report.imported == 2
    assert [d.category_id for _, d in store.inserted] == [None, None]
    assert store.rule_calls == 1
    assert len(store.category_calls) == len(set(store.category_calls))


def test_preview_exposes_its_categorizer_and_marks_evaluated_rows(store: FakeStore):
    preview = preview_import(store, user_id="u1", csv_text=CSV)

    assert preview.categorizer is not None
    # Only non-duplicate rows went through the categorizer.
    assert [c.evaluated for c in preview.candidates] == [True, False, True, True]

    commit_import(store, user_id="u1", candidates=preview.candidates, categorizer=preview.categorizer)
    assert store.rule_calls == 1


def test_preview_without_fresh_rows_has_no_categorizer(store: FakeStore):
    csv_text = "Date,Description,Amount,Transaction ID\n2024-08-01,Again,-1.00,A2\n"
    preview = preview_import(store, user_id="u1", csv_text=csv_text)
    assert preview.categorizer is None
    assert [c.evaluated for c in preview.candidates] == [False]
