"""Environment-backed settings for imports.

Values are read from the process environment when :meth:`ImportSettings.from_env`
is called (the CLI loads ``.env`` first). Nothing is read at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_DEFAULT_CURRENCY = "USD"
_DEFAULT_ACCOUNT = "Default Account"
_DEFAULT_WORKERS = 4
_MAX_WORKERS = 32


def _resolve_workers(raw: str | None) -> int:
    """Parse a worker count, capped to ``[1, 32]``; invalid values use the default."""

    if not raw:
        return _DEFAULT_WORKERS
    try:
        n = int(raw.strip())
    except ValueError:
        return _DEFAULT_WORKERS
    if n < 1:
        return _DEFAULT_WORKERS
    return min(n, _MAX_WORKERS)


@dataclass(frozen=True, slots=True)
class ImportSettings:
    """Defaults applied while parsing and the categorization fan-out width."""

    default_currency: str = _DEFAULT_CURRENCY
    default_account: str = _DEFAULT_ACCOUNT
    workers: int = _DEFAULT_WORKERS

    @classmethod
    def from_env(cls) -> ImportSettings:
        currency = (os.getenv("STATEMENT_IMPORT_DEFAULT_CURRENCY") or "").strip()
        account = (os.getenv("STATEMENT_IMPORT_DEFAULT_ACCOUNT") or "").strip()
        return cls(
            default_currency=currency.upper() or _DEFAULT_CURRENCY,
            default_account=account or _DEFAULT_ACCOUNT,
            workers=_resolve_workers(os.getenv("STATEMENT_IMPORT_WORKERS")),
        )


__all__ = ["ImportSettings"]
