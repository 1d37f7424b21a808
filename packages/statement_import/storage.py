"""The storage collaborator consumed by imports and categorization.

Implementations are passed in explicitly; nothing in this package holds a
module-level client. ``statement_import.persistence.SqlTransactionStore`` is
the SQLAlchemy-backed implementation; tests use an in-memory one.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .models import Account, Category, ExistingTransaction, Rule, TransactionDraft


@runtime_checkable
class TransactionStore(Protocol):
    def get_active_rules(self, user_id: str) -> Sequence[Rule]:
        """Active rules for ``user_id``, ordered by priority descending."""
        ...

    def find_category_by_name(self, name: str) -> Category | None:
        """Case-insensitive lookup of a category by display name."""
        ...

    def get_existing_transactions(self, user_id: str) -> Sequence[ExistingTransaction]: ...

    def get_accounts(self, user_id: str) -> Sequence[Account]: ...

    def insert_transaction(self, user_id: str, draft: TransactionDraft) -> str:
        """Persist ``draft`` and return the new transaction id."""
        ...


__all__ = ["TransactionStore"]
