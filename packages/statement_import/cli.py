# ruff: noqa: I001
"""CLI for the ``statement_import`` package.

Command handlers (``cmd_parse``, ``cmd_import``, ``cmd_init_db``) are plain
functions returning an exit status; the Typer commands below wrap them.
Environment variables (``DATABASE_URL`` and the ``STATEMENT_IMPORT_*``
settings) are loaded from a local ``.env`` with ``python-dotenv`` in the root
callback. Business logic lives in ``statement_import.api``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .amounts import format_amount
from .config import ImportSettings
from .errors import StructuralParseError
from .logging_setup import configure_logging, get_logger
from .models import ParsedTransaction

_logger = get_logger("statement_import.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _read_csv_text(csv_path: str | Path) -> str | None:
    """Return the file contents, or ``None`` after printing an error to stderr."""

    try:
        with open(csv_path, encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Unable to read '{csv_path}': {e}", file=sys.stderr)
    return None


def _as_json_row(tx: ParsedTransaction) -> dict[str, object]:
    return {
        "date": tx.date.isoformat(),
        "description": tx.description,
        "amount": format_amount(tx.amount),
        "merchant": tx.merchant,
        "currency": tx.currency,
        "account": tx.account,
        "category": tx.category,
        "tags": list(tx.tags),
        "external_id": tx.external_id,
    }


# ---- Command handlers ---------------------------------------------------------


def cmd_parse(csv_path: str | Path, *, as_json: bool = False) -> int:
    """Parse a CSV export and print the normalized transactions to stdout.

    Default output is one line per transaction:
    ``"<date>\\t<amount>\\t<description>\\t<merchant>\\t<account>"``.
    Row errors go to stderr and do not change the exit status; an unreadable
    file or a file without recognizable headers returns ``1``.
    """

    from .normalizers import CSVNormalizer

    text = _read_csv_text(csv_path)
    if text is None:
        return 1

    try:
        result = CSVNormalizer(ImportSettings.from_env()).parse(text)
    except StructuralParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps([_as_json_row(tx) for tx in result.transactions], indent=2))
    else:
        for tx in result.transactions:
            print(
                f"{tx.date.isoformat()}\t{format_amount(tx.amount)}\t{tx.description}"
                f"\t{tx.merchant or ''}\t{tx.account}"
            )
    for err in result.errors:
        print(err, file=sys.stderr)
    return 0


def cmd_import(
    csv_path: str | Path,
    *,
    user_id: str,
    database_url: str | None = None,
    dry_run: bool = False,
) -> int:
    """Import a CSV export for ``user_id`` into the database.

    Prints the preview summary and, unless ``dry_run``, the number of inserted
    rows. Parse and insert errors go to stderr; a structural parse failure or a
    database failure returns ``1``.
    """

    # Deferred imports keep ``parse`` usable without a database driver.
    from db.client import get_engine, session_scope
    from sqlalchemy.exc import SQLAlchemyError

    from .api import commit_import, preview_import
    from .persistence import SqlTransactionStore

    text = _read_csv_text(csv_path)
    if text is None:
        return 1

    try:
        engine = get_engine(database_url=database_url)
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    settings = ImportSettings.from_env()
    try:
        with session_scope(engine) as session:
            store = SqlTransactionStore(session)
            preview = preview_import(store, user_id=user_id, csv_text=text, settings=settings)
            s = preview.summary
            print(
                f"rows={s.total}\tduplicates={s.duplicates}\tnew={s.new}\tcategorized={s.categorized}"
            )
            errors = list(preview.errors)
            if not dry_run:
                report = commit_import(
                    store,
                    user_id=user_id,
                    candidates=preview.candidates,
                    categorizer=preview.categorizer,
                )
                print(f"imported={report.imported}")
                errors.extend(report.errors)
    except StructuralParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        _logger.exception("import failed")
        print(f"Error: database failure: {e}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    for err in errors:
        print(err, file=sys.stderr)
    return 0


def cmd_init_db(
    *,
    database_url: str | None = None,
    user_id: str | None = None,
    accounts: list[str] | None = None,
) -> int:
    """Create the ``si_*`` tables and seed the dictionary categories.

    With ``user_id`` and ``accounts``, also creates those accounts so imports
    can resolve them by name.
    """

    from db import metadata
    from db.client import get_engine, session_scope
    from sqlalchemy.exc import SQLAlchemyError

    from .dictionaries import KEYWORD_DICTIONARY, MERCHANT_DICTIONARY, category_names
    from .persistence import ensure_accounts, seed_categories

    try:
        engine = get_engine(database_url=database_url)
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        metadata.create_all(engine)
        with session_scope(engine) as session:
            added = seed_categories(
                session, category_names(MERCHANT_DICTIONARY, KEYWORD_DICTIONARY)
            )
            print(f"categories_added={len(added)}")
            if user_id and accounts:
                created = ensure_accounts(session, user_id, accounts)
                print(f"accounts={len(created)}")
    except SQLAlchemyError as e:
        print(f"Error: database failure: {e}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank/credit-card CSV exports: normalize rows, skip duplicates, "
        "categorize and store. Loads DATABASE_URL from a local .env."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--csv-path",
    help="Path to a CSV export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


@app.command("parse")
def parse_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    as_json: bool = typer.Option(False, "--json", help="Print a JSON array instead of TSV."),
) -> None:
    """Parse a CSV export and print the normalized transactions."""

    raise typer.Exit(cmd_parse(csv_path, as_json=as_json))


@app.command("import")
def import_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    user_id: str = typer.Option(..., "--user-id", help="Owner of the imported transactions."),
    database_url: str | None = DATABASE_URL_OPTION,
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Preview duplicates and categories without inserting."
    ),
) -> None:
    """Import a CSV export into the database."""

    raise typer.Exit(
        cmd_import(csv_path, user_id=user_id, database_url=database_url, dry_run=dry_run)
    )


@app.command("init-db")
def init_db_cmd(
    *,
    database_url: str | None = DATABASE_URL_OPTION,
    user_id: str | None = typer.Option(None, "--user-id", help="Create accounts for this user."),
    account: list[str] | None = typer.Option(
        None, "--account", help="Account name to create (repeatable)."
    ),
) -> None:
    """Create tables, seed categories and optionally create accounts."""

    raise typer.Exit(cmd_init_db(database_url=database_url, user_id=user_id, accounts=account))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
