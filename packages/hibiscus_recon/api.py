"""Public API for the ``hibiscus_recon`` package.

This module is the stable import surface. Implementations live in the
topical modules (``loader``, ``matchers``, ``matching``, ``validation``,
``importer``, ``payments``, ``workflows``) and are re-exported here.
"""

from __future__ import annotations

from .importer import delete_old_imports, import_staged_lines
from .loader import HibiscusLoader, load_file
from .matchers import (
    BankStatementMatcher,
    InvoiceInMemoMatcher,
    MatcherKind,
    VendorPaymentMatcher,
    new_matcher,
    register_matcher,
)
from .matching import apply_match_result, match_statement
from .payments import create_payments
from .validation import find_unreconciled_lines, prepare_statement, validate_statement
from .workflows.import_flow import ImportFlowResult, run_import_pipeline

__all__ = [
    "BankStatementMatcher",
    "HibiscusLoader",
    "ImportFlowResult",
    "InvoiceInMemoMatcher",
    "MatcherKind",
    "VendorPaymentMatcher",
    "apply_match_result",
    "create_payments",
    "delete_old_imports",
    "find_unreconciled_lines",
    "import_staged_lines",
    "load_file",
    "match_statement",
    "new_matcher",
    "prepare_statement",
    "register_matcher",
    "run_import_pipeline",
    "validate_statement",
]
