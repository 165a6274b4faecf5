"""Public interface for the ``hibiscus_recon`` package.

Loads Hibiscus bank-statement CSV exports into the statement staging table,
imports them as draft bank statements and reconciles their lines against open
sales invoices and pending vendor payments. Only symbol re-exports live here.
"""

from .api import (
    BankStatementMatcher,
    HibiscusLoader,
    ImportFlowResult,
    InvoiceInMemoMatcher,
    MatcherKind,
    VendorPaymentMatcher,
    apply_match_result,
    create_payments,
    delete_old_imports,
    find_unreconciled_lines,
    import_staged_lines,
    load_file,
    match_statement,
    new_matcher,
    prepare_statement,
    register_matcher,
    run_import_pipeline,
    validate_statement,
)
from .errors import (
    LoadError,
    MatcherConfigurationError,
    PipelineStepError,
    StatementValidationError,
)
from .models import LoadResult, MatchResult, MatchSummary
from .settings import HibiscusSettings
from .statement_line import CanonicalTransactionLine

__all__ = [
    # API
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
    # Classes
    "BankStatementMatcher",
    "HibiscusLoader",
    "InvoiceInMemoMatcher",
    "MatcherKind",
    "VendorPaymentMatcher",
    # Models
    "CanonicalTransactionLine",
    "HibiscusSettings",
    "ImportFlowResult",
    "LoadResult",
    "MatchResult",
    "MatchSummary",
    # Errors
    "LoadError",
    "MatcherConfigurationError",
    "PipelineStepError",
    "StatementValidationError",
]
