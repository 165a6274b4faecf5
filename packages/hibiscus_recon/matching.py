"""Run a matcher over the open lines of a posted bank statement.

A line is open when it has a non-zero amount and no payment yet. For each
open line the matcher's result is written back onto the line: ids only when
the matcher found them, and the outcome note in front of the description.

Each line runs inside its own savepoint. Any error raised while matching one
line is logged, the line is rolled back and counted in ``failed_lines``, and
the pass moves on. A :class:`~hibiscus_recon.errors.MatcherConfigurationError`
stops the pass: it would fail identically for every remaining line.
"""

from __future__ import annotations

from db.models.erp import ErpBankStatement, ErpBankStatementLine
from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import MatcherConfigurationError
from .logging_setup import get_logger
from .matchers.base import BankStatementMatcher, with_outcome_note
from .models import MatchResult, MatchSummary

_logger = get_logger("hibiscus_recon.matching")


def open_lines(session: Session, statement: ErpBankStatement) -> list[ErpBankStatementLine]:
    """Lines of ``statement`` with a non-zero amount and no payment, by line number."""

    return list(
        session.execute(
            select(ErpBankStatementLine)
            .where(
                (ErpBankStatementLine.bank_statement_id == statement.id)
                & ErpBankStatementLine.payment_id.is_(None)
                & (ErpBankStatementLine.trx_amt != 0)
            )
            .order_by(ErpBankStatementLine.line, ErpBankStatementLine.id)
        )
        .scalars()
        .all()
    )


def apply_match_result(line: ErpBankStatementLine, result: MatchResult) -> bool:
    """Write ``result`` onto ``line``; return True when anything changed."""

    if result.is_empty:
        return False
    if result.invoice_id is not None:
        line.invoice_id = result.invoice_id
    if result.payment_id is not None:
        line.payment_id = result.payment_id
    if result.bpartner_id is not None:
        line.bpartner_id = result.bpartner_id
    if result.note is not None:
        line.description = with_outcome_note(line.description, result.note)
    return True


def match_statement(
    session: Session,
    statement: ErpBankStatement,
    matcher: BankStatementMatcher,
) -> MatchSummary:
    """Apply ``matcher`` to every open line of ``statement``.

    Changes are flushed per line; committing is left to the caller.
    """

    summary = MatchSummary(statement_id=statement.id)
    lines = open_lines(session, statement)
    _logger.info(
        "match:start statement_id=%d matcher=%s open_lines=%d",
        statement.id,
        type(matcher).__name__,
        len(lines),
    )
    for line in lines:
        summary.examined += 1
        line_no = line.line
        try:
            with session.begin_nested():
                result = matcher.find_match(session, line)
                changed = apply_match_result(line, result)
        except MatcherConfigurationError:
            raise
        except Exception as e:
            summary.failed_lines.append(line_no)
            _logger.error(
                "match:line_failed statement_id=%d line=%d error=%s",
                statement.id,
                line_no,
                e.__class__.__name__,
            )
            continue
        if not changed:
            continue
        if result.invoice_id is not None or result.payment_id is not None:
            summary.matched += 1
        else:
            summary.noted += 1

    _logger.info(
        "match:done statement_id=%d examined=%d matched=%d noted=%d failed=%d",
        statement.id,
        summary.examined,
        summary.matched,
        summary.noted,
        len(summary.failed_lines),
    )
    return summary


__all__ = ["apply_match_result", "match_statement", "open_lines"]
