# ruff: noqa: I001
"""SQLAlchemy-backed :class:`~statement_import.storage.TransactionStore`.

Reads and writes the ``si_*`` tables owned by ``libs/db``. The store works on
a caller-provided :class:`~sqlalchemy.orm.Session`; committing is the
caller's job (``db.client.session_scope`` does it on exit).

Each insert runs inside its own SAVEPOINT so a row that fails (constraint
violation, bad foreign key) is rolled back alone and earlier rows survive.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models.finance import SiAccount, SiCategory, SiRule, SiTransaction
from .logging_setup import get_logger
from .models import Account, Category, ExistingTransaction, Rule, TransactionDraft

_logger = get_logger("statement_import.persistence")


def _new_id() -> str:
    return uuid.uuid4().hex


class SqlTransactionStore:
    """Implements the ``TransactionStore`` protocol over one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_active_rules(self, user_id: str) -> list[Rule]:
        stmt = (
            select(SiRule)
            .where(SiRule.user_id == user_id, SiRule.is_active.is_(True))
            .order_by(SiRule.priority.desc(), SiRule.created_at, SiRule.id)
        )
        return [
            Rule(
                match_type=row.match_type,
                pattern=row.pattern,
                category_id=row.category_id,
                priority=row.priority,
                is_active=row.is_active,
                id=row.id,
            )
            for row in self.session.scalars(stmt)
        ]

    def find_category_by_name(self, name: str) -> Category | None:
        stmt = select(SiCategory).where(func.lower(SiCategory.name) == name.strip().lower())
        row = self.session.scalars(stmt).first()
        return Category(id=row.id, name=row.name) if row is not None else None

    def get_existing_transactions(self, user_id: str) -> list[ExistingTransaction]:
        stmt = select(
            SiTransaction.id,
            SiTransaction.date,
            SiTransaction.amount,
            SiTransaction.merchant,
            SiTransaction.external_id,
        ).where(SiTransaction.user_id == user_id)
        return [
            ExistingTransaction(
                id=r.id, date=r.date, amount=r.amount, merchant=r.merchant, external_id=r.external_id
            )
            for r in self.session.execute(stmt)
        ]

    def get_accounts(self, user_id: str) -> list[Account]:
        stmt = select(SiAccount).where(SiAccount.user_id == user_id).order_by(SiAccount.name)
        return [Account(id=row.id, name=row.name) for row in self.session.scalars(stmt)]

    def insert_transaction(self, user_id: str, draft: TransactionDraft) -> str:
        tx_id = _new_id()
        with self.session.begin_nested():
            self.session.add(
                SiTransaction(
                    id=tx_id,
                    user_id=user_id,
                    account_id=draft.account_id,
                    date=draft.date,
                    description=draft.description,
                    merchant=draft.merchant,
                    amount=draft.amount,
                    currency_code=draft.currency,
                    category_id=draft.category_id,
                    tags=list(draft.tags),
                    external_id=draft.external_id,
                    is_transfer=draft.is_transfer,
                )
            )
        _logger.debug("inserted transaction %s for user %s", tx_id, user_id)
        return tx_id


# ---------------------------------------------------------------------------
# Reference data helpers (used by ``statement-import init-db`` and tests)
# ---------------------------------------------------------------------------


def seed_categories(session: Session, names: Iterable[str]) -> list[str]:
    """Insert categories whose lowercased name is not stored yet; return the new names."""

    existing = {n.lower() for n in session.scalars(select(SiCategory.name))}
    added: list[str] = []
    for name in names:
        key = name.strip().lower()
        if not key or key in existing:
            continue
        session.add(SiCategory(id=_new_id(), name=name.strip()))
        existing.add(key)
        added.append(name.strip())
    session.flush()
    _logger.info("seeded %d categories", len(added))
    return added


def ensure_accounts(session: Session, user_id: str, names: Sequence[str]) -> dict[str, str]:
    """Return ``{name: account_id}`` for ``names``, creating missing accounts."""

    rows = session.scalars(select(SiAccount).where(SiAccount.user_id == user_id)).all()
    by_name = {r.name.lower(): r.id for r in rows}
    out: dict[str, str] = {}
    for name in names:
        key = name.strip().lower()
        acct_id = by_name.get(key)
        if acct_id is None:
            acct_id = _new_id()
            session.add(SiAccount(id=acct_id, user_id=user_id, name=name.strip()))
            by_name[key] = acct_id
        out[name] = acct_id
    session.flush()
    return out


__all__ = ["SqlTransactionStore", "seed_categories", "ensure_accounts"]
