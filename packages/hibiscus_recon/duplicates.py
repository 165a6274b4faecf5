"""Bank-account resolution and duplicate lookup for staged statement rows.

Public surface:
- ``resolve_bank_account``: map a file's account number/routing number to the
  one active bank account it belongs to.
- ``find_duplicate``: return a human-readable reason when the exporter's
  transaction id was already loaded for that bank account, either in staging
  or on a posted statement.

Both functions only read; the loader decides what a hit means.
"""

from __future__ import annotations

from db.models.erp import (
    ErpBankAccount,
    ErpBankStatement,
    ErpBankStatementLine,
    ErpStatementImport,
)
from sqlalchemy import func, select
from sqlalchemy.orm import Session


def resolve_bank_account(session: Session, *, account_no: str, routing_no: str) -> int | None:
    """Return the id of the single active bank account, or ``None``.

    ``None`` is returned both when nothing matches and when the pair is
    ambiguous (more than one active account).
    """

    ids = (
        session.execute(
            select(ErpBankAccount.id)
            .where(
                (ErpBankAccount.account_no == account_no)
                & (ErpBankAccount.routing_no == routing_no)
                & ErpBankAccount.is_active.is_(True)
            )
            .limit(2)
        )
        .scalars()
        .all()
    )
    return ids[0] if len(ids) == 1 else None


def find_duplicate(
    session: Session,
    *,
    line_no: int,
    bank_account_id: int,
    exclude_import_id: int | None = None,
) -> str | None:
    """Return why ``line_no`` counts as already loaded, or ``None``.

    Staging is checked first (ignoring ``exclude_import_id``, the row being
    checked), then posted statement lines of the same bank account.
    """

    staged_stmt = select(func.count(ErpStatementImport.id)).where(
        (ErpStatementImport.line == line_no)
        & (ErpStatementImport.bank_account_id == bank_account_id)
    )
    if exclude_import_id is not None:
        staged_stmt = staged_stmt.where(ErpStatementImport.id != exclude_import_id)
    if session.execute(staged_stmt).scalar_one() > 0:
        return f"The line {line_no} was already loaded in the statement import"

    statement_name = session.execute(
        select(ErpBankStatement.name)
        .join(ErpBankStatementLine, ErpBankStatementLine.bank_statement_id == ErpBankStatement.id)
        .where(
            (ErpBankStatementLine.line == line_no)
            & (ErpBankStatement.bank_account_id == bank_account_id)
        )
        .order_by(ErpBankStatement.id)
        .limit(1)
    ).scalar_one_or_none()
    if statement_name is not None:
        return f"The line {line_no} was already loaded in Bank Statement {statement_name}"
    return None


__all__ = ["find_duplicate", "resolve_bank_account"]
