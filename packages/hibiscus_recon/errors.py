"""Exception types raised by ``hibiscus_recon``.

Matching ambiguity is never an error (see ``MatchResult``); everything here
stops the current file, statement, or pipeline step.
"""

from __future__ import annotations

from collections.abc import Sequence

# Error codes reported alongside a load failure description.
LOAD_ERROR = "LoadError"
INIT_ERROR = "ErrorInitializingParser"


class LoadError(Exception):
    """Fatal statement-file error: the rest of the file is not processed.

    ``row`` is the 1-based data row (the first row after the header is 1) or
    ``None`` when the failure happened before any row was read.
    """

    def __init__(self, error_code: str, error_description: str, *, row: int | None = None):
        super().__init__(f"{error_code}: {error_description}")
        self.error_code = error_code
        self.error_description = error_description
        self.row = row


class MatcherConfigurationError(RuntimeError):
    """A matcher cannot run with the provided settings (e.g. no regex patterns)."""


class StatementValidationError(Exception):
    """A statement still has non-zero lines without a payment.

    ``to_match`` holds line numbers without payment and invoice; ``to_pay``
    holds line numbers that have an invoice but still need a payment.
    """

    def __init__(self, message: str, *, to_match: Sequence[int], to_pay: Sequence[int]):
        super().__init__(message)
        self.to_match = tuple(to_match)
        self.to_pay = tuple(to_pay)


class PipelineStepError(RuntimeError):
    """A named import-pipeline step failed; ``__cause__`` carries the original error."""

    def __init__(self, step: str, cause: BaseException):
        super().__init__(f"step {step!r} failed: {cause}")
        self.step = step


__all__ = [
    "INIT_ERROR",
    "LOAD_ERROR",
    "LoadError",
    "MatcherConfigurationError",
    "PipelineStepError",
    "StatementValidationError",
]
