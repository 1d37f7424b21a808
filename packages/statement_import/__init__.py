"""Public interface for the ``statement_import`` package.

Re-exports the import API, the parsing/categorization building blocks and the
public models. There is no runtime logic here, only symbol re-exports.
"""

from .api import commit_import, import_csv, preview_import
from .categorization import Categorizer, categorize_transaction, matches_rule
from .config import ImportSettings
from .duplicates import detect_duplicates
from .errors import ParseError, RowTransformError, StatementImportError, StructuralParseError
from .field_mapping import detect_field_mapping
from .models import (
    Account,
    CategorizationResult,
    Category,
    DuplicateVerdict,
    ExistingTransaction,
    ImportCandidate,
    ImportPreview,
    ImportReport,
    ImportSummary,
    MatchType,
    ParsedTransaction,
    Rule,
    TransactionDraft,
)
from .normalizers import CSVNormalizer, ParseResult, parse_csv
from .storage import TransactionStore

__all__ = [
    # API
    "preview_import",
    "commit_import",
    "import_csv",
    "parse_csv",
    "detect_field_mapping",
    "detect_duplicates",
    "categorize_transaction",
    "matches_rule",
    "CSVNormalizer",
    "ParseResult",
    "Categorizer",
    "ImportSettings",
    "TransactionStore",
    # Errors
    "StatementImportError",
    "ParseError",
    "RowTransformError",
    "StructuralParseError",
    # Models / types
    "ParsedTransaction",
    "MatchType",
    "Rule",
    "Category",
    "Account",
    "ExistingTransaction",
    "CategorizationResult",
    "DuplicateVerdict",
    "TransactionDraft",
    "ImportSummary",
    "ImportCandidate",
    "ImportPreview",
    "ImportReport",
]
