# ruff: noqa: I001
"""Persistence integration for hibiscus_recon.

Functions here write staged statement rows to the shared database owned by
``libs/db``. They rely on the SQLAlchemy ORM models in ``db.models.erp`` and a
session provided by the caller (usually ``db.client.session_scope``).

Column mapping (canonical line -> ``erp_statement_imports``):

- ``external_trx_id`` -> ``line`` (as integer) and ``eft_trx_id``
- ``payee_account_no``/``check_no``/``payee_name`` -> ``eft_payee_account``/
  ``eft_check_no``/``eft_payee``
- ``amount`` -> ``stmt_amt`` and ``trx_amt``
- ``memo`` -> ``eft_memo``; ``secondary_memo`` -> ``memo``
- ``trx_type``/``reference``/``statement_reference`` -> ``trx_type``/
  ``eft_reference``/``eft_statement_reference``
- ``line_description``/``eft_trx_type``/``reference_no`` unchanged

Flushing is done here so the new id is available to the duplicate check;
committing is the caller's decision.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from db.models.erp import ErpStatementImport
from .statement_line import CanonicalTransactionLine


def stage_line(
    session: Session,
    line: CanonicalTransactionLine,
    *,
    bank_account_id: int | None,
    statement_name: str,
    statement_description: str,
    load_ts: datetime,
) -> ErpStatementImport:
    """Add one staging row for ``line`` and flush it.

    ``statement_name`` and ``load_ts`` are shared by every row of one load so
    the import step can group them into a single statement.
    """

    row = ErpStatementImport(
        bank_account_id=bank_account_id,
        bank_account_no=line.bank_account_no,
        routing_no=line.routing_no,
        line=int(line.external_trx_id),
        eft_trx_id=line.external_trx_id,
        eft_payee_account=line.payee_account_no,
        eft_check_no=line.check_no,
        eft_payee=line.payee_name,
        stmt_amt=line.amount,
        trx_amt=line.amount,
        statement_line_date=line.statement_line_date,
        valuta_date=line.valuta_date,
        eft_memo=line.memo,
        memo=line.secondary_memo,
        trx_type=line.trx_type,
        eft_trx_type=line.eft_trx_type,
        eft_reference=line.reference,
        reference_no=line.reference_no,
        eft_statement_reference=line.statement_reference,
        line_description=line.line_description,
        checksum=line.checksum,
        name=statement_name,
        description=statement_description,
        statement_date=load_ts,
        is_imported=False,
    )
    session.add(row)
    session.flush()
    return row


__all__ = ["stage_line"]
