"""Pytest configuration shared by the suite.

Puts the workspace source roots on ``sys.path`` (``packages/`` for
``statement_import``, ``libs/db/src`` for ``db`` and the repo root for
``tests.helpers``) so the suite runs from a plain checkout, and keeps the
``STATEMENT_IMPORT_*`` environment from leaking into tests.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in (str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT))
    if p not in sys.path
]

_ENV_VARS = (
    "STATEMENT_IMPORT_DEFAULT_CURRENCY",
    "STATEMENT_IMPORT_DEFAULT_ACCOUNT",
    "STATEMENT_IMPORT_WORKERS",
    "DATABASE_URL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without import settings inherited from the shell."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _propagate_package_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ``statement_import`` records visible to ``caplog``.

    ``configure_logging()`` (run by the CLI callback) turns propagation off on
    the package logger; undo that for each test.
    """

    monkeypatch.setattr(logging.getLogger("statement_import"), "propagate", True)
