"""Create payments for statement lines that were matched to an invoice.

After the invoice matcher sets ``invoice_id`` on a line, the statement still
cannot be prepared until that line carries a payment (the validator's
"need a payment created" group). :func:`create_payments` closes that gap:
each such line gets a completed :class:`~db.models.erp.ErpPayment` for the
line amount, linked to the line and the invoice, and the invoice's open
amount is reduced by it. Inbound amounts become receipts.

Only draft statements are processed. Nothing is committed here.
"""

from __future__ import annotations

from db.models.erp import (
    DOC_STATUS_COMPLETED,
    DOC_STATUS_DRAFTED,
    ErpBankStatement,
    ErpBankStatementLine,
    ErpInvoice,
    ErpPayment,
)
from sqlalchemy import select
from sqlalchemy.orm import Session

from .logging_setup import get_logger

_logger = get_logger("hibiscus_recon.payments")


def lines_needing_payment(
    session: Session, statement: ErpBankStatement
) -> list[ErpBankStatementLine]:
    """Non-zero lines with an invoice and no payment, by line number."""

    return list(
        session.execute(
            select(ErpBankStatementLine)
            .where(
                (ErpBankStatementLine.bank_statement_id == statement.id)
                & ErpBankStatementLine.invoice_id.is_not(None)
                & ErpBankStatementLine.payment_id.is_(None)
                & (ErpBankStatementLine.trx_amt != 0)
            )
            .order_by(ErpBankStatementLine.line, ErpBankStatementLine.id)
        )
        .scalars()
        .all()
    )


def create_payment_for_line(session: Session, line: ErpBankStatementLine) -> ErpPayment:
    invoice = session.get(ErpInvoice, line.invoice_id)
    if invoice is None:
        raise LookupError(f"invoice {line.invoice_id} of line {line.line} not found")

    amount = abs(line.trx_amt)
    payment = ErpPayment(
        bpartner_id=line.bpartner_id or invoice.bpartner_id,
        invoice_id=invoice.id,
        is_receipt=line.trx_amt > 0,
        is_reconciled=False,
        doc_status=DOC_STATUS_COMPLETED,
        pay_amt=amount,
        date_trx=line.valuta_date,
    )
    session.add(payment)
    session.flush()

    line.payment_id = payment.id
    line.bpartner_id = payment.bpartner_id
    invoice.open_amt = invoice.open_amt - amount
    session.flush()
    return payment


def create_payments(session: Session, statement: ErpBankStatement) -> list[int]:
    """Create and link a payment for every line of ``statement`` that needs one.

    Returns the new payment ids in line order. Raises ``ValueError`` for a
    statement that is not a draft.
    """

    if statement.doc_status != DOC_STATUS_DRAFTED:
        raise ValueError(
            f"only {DOC_STATUS_DRAFTED!r} statements get payments created, "
            f"statement {statement.id} is {statement.doc_status!r}"
        )

    created: list[int] = []
    for line in lines_needing_payment(session, statement):
        payment = create_payment_for_line(session, line)
        created.append(payment.id)
        _logger.debug(
            "payments:created statement_id=%d line=%d payment_id=%d invoice_id=%d",
            statement.id,
            line.line,
            payment.id,
            payment.invoice_id,
        )

    _logger.info(
        "payments:done statement_id=%d created=%d",
        statement.id,
        len(created),
    )
    return created


__all__ = ["create_payment_for_line", "create_payments", "lines_needing_payment"]
