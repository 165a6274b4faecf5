# ruff: noqa: I001
"""Turn staged statement rows into a draft bank statement.

Scope:
- ``delete_old_imports``: drop staging rows that were already imported, or
  every staging row when ``include_pending`` is set, which also clears rows
  left by a load that failed part-way.
- ``import_staged_lines``: collect the pending staging rows of one bank
  account into a new draft statement with one line per row.

Posted line numbers are the exporter's transaction ids, which is what the
duplicate check compares against on later loads. Neither function commits.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models.erp import (
    DOC_STATUS_DRAFTED,
    ErpBankStatement,
    ErpBankStatementLine,
    ErpStatementImport,
)
from .logging_setup import get_logger

_logger = get_logger("hibiscus_recon.importer")


def delete_old_imports(
    session: Session,
    bank_account_id: int | None = None,
    *,
    include_pending: bool = False,
) -> int:
    """Delete staging rows (optionally for one bank account); return the count.

    Only imported rows go unless ``include_pending`` is set. Posted statement
    lines are never touched, so the duplicate check still sees them.
    """

    stmt = delete(ErpStatementImport)
    if not include_pending:
        stmt = stmt.where(ErpStatementImport.is_imported.is_(True))
    if bank_account_id is not None:
        stmt = stmt.where(ErpStatementImport.bank_account_id == bank_account_id)
    deleted = session.execute(stmt).rowcount or 0
    _logger.info(
        "importer:deleted_old bank_account_id=%s include_pending=%s rows=%d",
        bank_account_id,
        include_pending,
        deleted,
    )
    return deleted


def _is_complete(row: ErpStatementImport) -> bool:
    return (
        row.line is not None
        and row.trx_amt is not None
        and row.statement_line_date is not None
        and row.valuta_date is not None
    )


def import_staged_lines(session: Session, bank_account_id: int) -> ErpBankStatement | None:
    """Create a draft statement from the pending staging rows of ``bank_account_id``.

    The statement header (name, description, date) comes from the first
    staged row. Rows missing a line number, amount, or dates are left
    pending and logged. Returns ``None`` when nothing could be imported.
    """

    pending = (
        session.execute(
            select(ErpStatementImport)
            .where(
                (ErpStatementImport.bank_account_id == bank_account_id)
                & ErpStatementImport.is_imported.is_(False)
            )
            .order_by(ErpStatementImport.id)
        )
        .scalars()
        .all()
    )
    rows = []
    for row in pending:
        if _is_complete(row):
            rows.append(row)
        else:
            _logger.warning("importer:row_incomplete import_id=%d line=%s", row.id, row.line)
    if not rows:
        _logger.info("importer:nothing_pending bank_account_id=%d", bank_account_id)
        return None

    head = rows[0]
    statement = ErpBankStatement(
        bank_account_id=bank_account_id,
        name=head.name or head.eft_statement_reference or "",
        description=head.description,
        statement_date=head.statement_date,
        doc_status=DOC_STATUS_DRAFTED,
    )
    session.add(statement)
    session.flush()

    for row in rows:
        line = ErpBankStatementLine(
            bank_statement_id=statement.id,
            line=row.line,
            trx_amt=row.trx_amt,
            stmt_amt=row.stmt_amt if row.stmt_amt is not None else row.trx_amt,
            statement_line_date=row.statement_line_date,
            valuta_date=row.valuta_date,
            description=row.line_description,
            memo=row.memo,
            eft_memo=row.eft_memo,
            eft_trx_id=row.eft_trx_id,
            eft_payee=row.eft_payee,
            eft_payee_account=row.eft_payee_account,
            eft_reference=row.eft_reference,
            reference_no=row.reference_no,
        )
        session.add(line)
        session.flush()
        row.bank_statement_line_id = line.id
        row.is_imported = True
    session.flush()

    _logger.info(
        "importer:statement_created statement_id=%d bank_account_id=%d lines=%d",
        statement.id,
        bank_account_id,
        len(rows),
    )
    return statement


__all__ = ["delete_old_imports", "import_staged_lines"]
