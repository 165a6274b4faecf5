"""Gate for moving a bank statement from draft to prepared.

A statement may only be prepared when every line with a non-zero amount
already has a payment. Lines that block it fall into two groups:

- *to match*: neither payment nor invoice (match it, or book a charge);
- *to pay*: an invoice was found but no payment created for it yet.

Callers run :func:`validate_statement` right before the transition;
:func:`prepare_statement` does both steps in order.
"""

from __future__ import annotations

from collections.abc import Iterable

from db.models.erp import (
    DOC_STATUS_DRAFTED,
    DOC_STATUS_IN_PROGRESS,
    ErpBankStatement,
    ErpBankStatementLine,
)
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import messages
from .errors import StatementValidationError
from .logging_setup import get_logger

_logger = get_logger("hibiscus_recon.validation")


def find_unreconciled_lines(
    lines: Iterable[ErpBankStatementLine],
) -> tuple[list[int], list[int]]:
    """Split blocking lines into ``(to_match, to_pay)`` line numbers, in input order."""

    to_match: list[int] = []
    to_pay: list[int] = []
    for line in lines:
        if line.trx_amt == 0 or line.payment_id is not None:
            continue
        if line.invoice_id is None:
            to_match.append(line.line)
        else:
            to_pay.append(line.line)
    return to_match, to_pay


def _statement_lines(session: Session, statement: ErpBankStatement) -> list[ErpBankStatementLine]:
    return list(
        session.execute(
            select(ErpBankStatementLine)
            .where(ErpBankStatementLine.bank_statement_id == statement.id)
            .order_by(ErpBankStatementLine.line, ErpBankStatementLine.id)
        )
        .scalars()
        .all()
    )


def validation_message(to_match: list[int], to_pay: list[int]) -> str | None:
    parts: list[str] = []
    if to_match:
        parts.append(messages.lines_must_be_matched(to_match))
    if to_pay:
        parts.append(messages.lines_must_match_payment(to_pay))
    return " + ".join(parts) or None


def validate_statement(session: Session, statement: ErpBankStatement) -> None:
    """Raise :class:`StatementValidationError` when any line still blocks preparing."""

    to_match, to_pay = find_unreconciled_lines(_statement_lines(session, statement))
    message = validation_message(to_match, to_pay)
    if message is None:
        return
    _logger.info(
        "validate:blocked statement_id=%d to_match=%d to_pay=%d",
        statement.id,
        len(to_match),
        len(to_pay),
    )
    raise StatementValidationError(message, to_match=to_match, to_pay=to_pay)


def prepare_statement(session: Session, statement: ErpBankStatement) -> ErpBankStatement:
    """Validate ``statement`` and move it from draft to in-progress.

    Raises ``ValueError`` when the statement is not a draft. The status change
    is flushed, not committed.
    """

    if statement.doc_status != DOC_STATUS_DRAFTED:
        raise ValueError(
            f"statement {statement.id} has status {statement.doc_status!r}; "
            f"only {DOC_STATUS_DRAFTED!r} statements can be prepared"
        )
    validate_statement(session, statement)
    statement.doc_status = DOC_STATUS_IN_PROGRESS
    session.flush()
    _logger.info("validate:prepared statement_id=%d", statement.id)
    return statement


__all__ = [
    "find_unreconciled_lines",
    "prepare_statement",
    "validate_statement",
    "validation_message",
]
