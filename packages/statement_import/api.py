"""Import orchestration: parse → dedupe → resolve accounts → categorize → insert.

Two phases so callers can show a review step in between:

- :func:`preview_import` does all read-side work and returns one
  :class:`ImportCandidate` per parsed row;
- :func:`commit_import` inserts the non-duplicate candidates one by one.

:func:`import_csv` chains both. Storage is always an explicit
:class:`~statement_import.storage.TransactionStore` argument.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from .categorization import Categorizer, categorize_many
from .config import ImportSettings
from .duplicates import detect_duplicates
from .logging_setup import get_logger
from .models import (
    Account,
    CategorizationResult,
    ImportCandidate,
    ImportPreview,
    ImportReport,
    ImportSummary,
    TransactionDraft,
)
from .normalizers import CSVNormalizer
from .storage import TransactionStore

_logger = get_logger("statement_import.api")

type ImportedCallback = Callable[[ImportCandidate, str], None]


def _account_index(accounts: Sequence[Account]) -> dict[str, str]:
    # First account wins when two names differ only by case.
    index: dict[str, str] = {}
    for acct in accounts:
        index.setdefault(acct.name.strip().lower(), acct.id)
    return index


def summarize(candidates: Sequence[ImportCandidate]) -> ImportSummary:
    duplicates = sum(1 for c in candidates if c.duplicate.is_duplicate)
    categorized = sum(
        1 for c in candidates if not c.duplicate.is_duplicate and c.categorization is not None
    )
    return ImportSummary(
        total=len(candidates),
        duplicates=duplicates,
        new=len(candidates) - duplicates,
        categorized=categorized,
    )


def preview_import(
    store: TransactionStore,
    *,
    user_id: str,
    csv_text: str,
    settings: ImportSettings | None = None,
) -> ImportPreview:
    """Parse ``csv_text`` and annotate every row for review.

    Raises :class:`~statement_import.errors.StructuralParseError` when the file
    has no usable header; row-level problems land in ``ImportPreview.errors``.
    """

    settings = settings or ImportSettings()
    parsed = CSVNormalizer(settings).parse(csv_text)
    transactions = parsed.transactions

    verdicts = detect_duplicates(transactions, store.get_existing_transactions(user_id))
    accounts = _account_index(store.get_accounts(user_id))
    account_ids = [accounts.get(tx.account.strip().lower()) for tx in transactions]

    fresh = [i for i, v in enumerate(verdicts) if not v.is_duplicate]
    categories: dict[int, CategorizationResult | None] = {}
    categorizer: Categorizer | None = None
    if fresh:
        categorizer = Categorizer.for_user(store, user_id)
        results = categorize_many(
            categorizer,
            [(transactions[i], account_ids[i]) for i in fresh],
            concurrency=settings.workers,
        )
        categories = dict(zip(fresh, results, strict=True))

    candidates = [
        ImportCandidate(
            transaction=tx,
            duplicate=verdicts[i],
            account_id=account_ids[i],
            categorization=categories.get(i),
            evaluated=i in categories,
        )
        for i, tx in enumerate(transactions)
    ]
    summary = summarize(candidates)
    _logger.info(
        "import preview for user %s: %d rows, %d duplicates, %d categorized, %d row errors",
        user_id,
        summary.total,
        summary.duplicates,
        summary.categorized,
        len(parsed.errors),
    )
    return ImportPreview(
        candidates=candidates,
        summary=summary,
        errors=list(parsed.errors),
        categorizer=categorizer,
    )


def commit_import(
    store: TransactionStore,
    *,
    user_id: str,
    candidates: Sequence[ImportCandidate],
    categorizer: Categorizer | None = None,
    on_imported: ImportedCallback | None = None,
) -> ImportReport:
    """Insert every non-duplicate candidate; each row succeeds or fails on its own.

    Candidates the preview never categorized are categorized here, with
    ``categorizer`` when given (``ImportPreview.categorizer``) or one built
    lazily for the whole batch.
    """

    report = ImportReport()
    for candidate in candidates:
        if candidate.duplicate.is_duplicate:
            continue
        tx = candidate.transaction
        if candidate.account_id is None:
            report.errors.append(f"Account not found for transaction: {tx.description}")
            continue

        category_id = candidate.category_id
        if category_id is None and not candidate.evaluated:
            if categorizer is None:
                categorizer = Categorizer.for_user(store, user_id)
            hit = categorizer.categorize_parsed(tx, account_id=candidate.account_id)
            category_id = hit.category_id if hit is not None else None

        try:
            draft = TransactionDraft(
                account_id=candidate.account_id,
                date=tx.date,
                description=tx.description,
                merchant=tx.merchant,
                amount=tx.amount,
                currency=tx.currency,
                category_id=category_id,
                tags=list(tx.tags),
                external_id=tx.external_id,
            )
            new_id = store.insert_transaction(user_id, draft)
        except Exception:
            _logger.exception("failed to import transaction %r", tx.description)
            report.errors.append(f"Failed to import: {tx.description}")
            continue

        report.imported += 1
        if on_imported is not None:
            on_imported(candidate, new_id)

    _logger.info(
        "import commit for user %s: %d imported, %d errors", user_id, report.imported, len(report.errors)
    )
    return report


def import_csv(
    store: TransactionStore,
    *,
    user_id: str,
    csv_text: str,
    settings: ImportSettings | None = None,
    on_imported: ImportedCallback | None = None,
) -> ImportReport:
    """Preview and commit in one call; errors are parse errors then commit errors."""

    preview = preview_import(store, user_id=user_id, csv_text=csv_text, settings=settings)
    report = commit_import(
        store,
        user_id=user_id,
        candidates=preview.candidates,
        categorizer=preview.categorizer,
        on_imported=on_imported,
    )
    report.errors = [*preview.errors, *report.errors]
    report.summary = preview.summary
    return report


__all__ = ["preview_import", "commit_import", "import_csv", "summarize"]
