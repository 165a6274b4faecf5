# ruff: noqa: I001
"""Workflow orchestrator for the end-to-end statement import.

Steps, in order:

1. ``delete_old_import``: clear the staging table, including rows left pending
   by an earlier load that failed part-way;
2. ``load``: stage the CSV rows (:class:`~hibiscus_recon.loader.HibiscusLoader`);
3. ``import``: build one draft statement per bank account from the staged rows;
4. ``match``: run the chosen matcher over the new statements (optional);
5. ``create_payments``: create payments for lines matched to an invoice
   (optional, only after ``match``).

Each step logs ``import_flow:step_start`` / ``import_flow:step_done`` and is
committed on its own, so a failure in a later step keeps the work of the
earlier ones. A failing step raises
:class:`~hibiscus_recon.errors.PipelineStepError` naming the step.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from os import PathLike

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.client import session_scope
from db.models.erp import ErpBankStatement, ErpStatementImport
from ..errors import PipelineStepError
from ..importer import delete_old_imports, import_staged_lines
from ..loader import HibiscusLoader
from ..logging_setup import get_logger
from ..matchers.factory import new_matcher
from ..matching import match_statement
from ..models import LoadResult, MatchSummary
from ..payments import create_payments as create_statement_payments
from ..settings import HibiscusSettings

_logger = get_logger("hibiscus_recon.workflows.import_flow")

STEP_DELETE_OLD_IMPORT = "delete_old_import"
STEP_LOAD = "load"
STEP_IMPORT = "import"
STEP_MATCH = "match"
STEP_CREATE_PAYMENTS = "create_payments"

STEPS: tuple[str, ...] = (
    STEP_DELETE_OLD_IMPORT,
    STEP_LOAD,
    STEP_IMPORT,
    STEP_MATCH,
    STEP_CREATE_PAYMENTS,
)


@dataclass(slots=True)
class ImportFlowResult:
    """What one pipeline run produced."""

    load: LoadResult | None = None
    deleted_imports: int = 0
    statement_ids: list[int] = field(default_factory=list)
    match_summaries: list[MatchSummary] = field(default_factory=list)
    payment_ids: list[int] = field(default_factory=list)
    steps_run: list[str] = field(default_factory=list)


@contextmanager
def _step(name: str, result: ImportFlowResult) -> Iterator[None]:
    t0 = time.perf_counter()
    _logger.info("import_flow:step_start step=%s", name)
    try:
        yield
    except Exception as e:
        dt_ms = (time.perf_counter() - t0) * 1000.0
        _logger.error(
            "import_flow:step_failed step=%s latency_ms=%.2f error=%s",
            name,
            dt_ms,
            e.__class__.__name__,
        )
        raise PipelineStepError(name, e) from e
    result.steps_run.append(name)
    _logger.info(
        "import_flow:step_done step=%s latency_ms=%.2f",
        name,
        (time.perf_counter() - t0) * 1000.0,
    )


def _bank_accounts_of(session: Session, staged_ids: list[int]) -> list[int]:
    if not staged_ids:
        return []
    ids = (
        session.execute(
            select(ErpStatementImport.bank_account_id)
            .where(ErpStatementImport.id.in_(staged_ids))
            .distinct()
        )
        .scalars()
        .all()
    )
    return sorted(i for i in ids if i is not None)


def run_import_pipeline(
    csv_path: str | PathLike[str],
    settings: HibiscusSettings,
    matcher_id: str | None = None,
    *,
    database_url: str | None = None,
    load_ts: datetime | None = None,
    create_payments: bool = False,
    on_progress: Callable[[str], None] | None = None,
) -> ImportFlowResult:
    """End-to-end: delete old import → load CSV → import statement → match → pay.

    Parameters
    ----------
    csv_path:
        Path to a Hibiscus CSV export.
    settings:
        Loader and matcher configuration.
    matcher_id:
        Matcher identifier (see :mod:`hibiscus_recon.matchers.factory`).
        ``None`` skips the match step; an unknown identifier fails it.
    database_url:
        Optional DB URL override. Falls back to ``DATABASE_URL`` when ``None``.
    create_payments:
        Create payments for lines the matcher tied to an invoice. Ignored when
        no matcher runs.
    on_progress:
        Optional callable to receive short status lines (e.g., ``print``).
    """

    result = ImportFlowResult()

    with _step(STEP_DELETE_OLD_IMPORT, result):
        with session_scope(database_url=database_url) as session:
            result.deleted_imports = delete_old_imports(session, include_pending=True)

    with _step(STEP_LOAD, result):
        with session_scope(database_url=database_url) as session:
            loader = HibiscusLoader(session, settings, file_path=csv_path, load_ts=load_ts)
            result.load = loader.load_lines()
    if on_progress:
        on_progress(f"Staged {result.load.staged} line(s) from {result.load.statement_reference}.")
        for warning in result.load.warnings:
            on_progress(f"Warning: {warning}")

    with _step(STEP_IMPORT, result):
        with session_scope(database_url=database_url) as session:
            for bank_account_id in _bank_accounts_of(session, result.load.staged_ids):
                statement = import_staged_lines(session, bank_account_id)
                if statement is not None:
                    result.statement_ids.append(statement.id)
    if on_progress:
        on_progress(f"Created {len(result.statement_ids)} draft statement(s).")

    if matcher_id is None:
        _logger.info("import_flow:step_skipped step=%s", STEP_MATCH)
        if create_payments:
            _logger.info("import_flow:step_skipped step=%s", STEP_CREATE_PAYMENTS)
        return result

    with _step(STEP_MATCH, result):
        matcher = new_matcher(matcher_id, settings)
        if matcher is None:
            raise ValueError(f"unknown matcher {matcher_id!r}")
        with session_scope(database_url=database_url) as session:
            for statement_id in result.statement_ids:
                statement = session.get(ErpBankStatement, statement_id)
                if statement is None:
                    raise LookupError(f"statement {statement_id} disappeared before matching")
                summary = match_statement(session, statement, matcher)
                result.match_summaries.append(summary)
                session.commit()
    if on_progress:
        matched = sum(s.matched for s in result.match_summaries)
        noted = sum(s.noted for s in result.match_summaries)
        on_progress(f"Matched {matched} line(s), {noted} with notes only.")

    if not create_payments:
        return result

    with _step(STEP_CREATE_PAYMENTS, result):
        with session_scope(database_url=database_url) as session:
            for statement_id in result.statement_ids:
                statement = session.get(ErpBankStatement, statement_id)
                if statement is None:
                    raise LookupError(f"statement {statement_id} disappeared before payment")
                result.payment_ids.extend(create_statement_payments(session, statement))
                session.commit()
    if on_progress:
        on_progress(f"Created {len(result.payment_ids)} payment(s).")

    return result


__all__ = [
    "ImportFlowResult",
    "STEPS",
    "STEP_CREATE_PAYMENTS",
    "STEP_DELETE_OLD_IMPORT",
    "STEP_IMPORT",
    "STEP_LOAD",
    "STEP_MATCH",
    "run_import_pipeline",
]
