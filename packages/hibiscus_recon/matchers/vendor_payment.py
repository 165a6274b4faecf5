"""Match outbound statement lines to pending vendor payments.

Vendor payments are expected to come from a SEPA credit-transfer run, so the
bank line echoes the payment closely:

- line amount (negative) == -payment amount;
- payee name == business partner name;
- payee account == business partner bank account IBAN;
- book date or value date within ``date_range_matcher`` days of the payment
  date.

Only completed or closed payments that are neither receipts nor reconciled
qualify. The lowest payment id wins; no ambiguity note is produced.
"""

from __future__ import annotations

from datetime import timedelta

from db.models.erp import (
    DOC_STATUS_CLOSED,
    DOC_STATUS_COMPLETED,
    ErpBankStatementLine,
    ErpBPartner,
    ErpBPBankAccount,
    ErpPayment,
)
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .. import messages
from ..logging_setup import get_logger
from ..models import MatchResult
from ..settings import HibiscusSettings

_logger = get_logger("hibiscus_recon.matchers.vendor_payment")


class VendorPaymentMatcher:
    """Find the vendor payment an outbound bank line settles."""

    def __init__(self, settings: HibiscusSettings):
        self._days = timedelta(days=settings.date_range_matcher)

    def find_match(self, session: Session, line: ErpBankStatementLine) -> MatchResult:
        if line.trx_amt >= 0:
            return MatchResult()
        # Without both identities the partner comparison cannot hold.
        if not line.eft_payee or not line.eft_payee_account:
            return MatchResult()

        book, value = line.statement_line_date, line.valuta_date
        stmt = (
            select(ErpPayment)
            .join(ErpBPartner, ErpPayment.bpartner_id == ErpBPartner.id)
            .join(ErpBPBankAccount, ErpBPBankAccount.bpartner_id == ErpBPartner.id)
            .where(
                ErpPayment.is_receipt.is_(False),
                ErpPayment.is_reconciled.is_(False),
                ErpPayment.doc_status.in_((DOC_STATUS_COMPLETED, DOC_STATUS_CLOSED)),
                ErpPayment.pay_amt == -line.trx_amt,
                ErpBPartner.name == line.eft_payee,
                ErpBPBankAccount.iban == line.eft_payee_account,
                or_(
                    ErpPayment.date_trx.between(book - self._days, book + self._days),
                    ErpPayment.date_trx.between(value - self._days, value + self._days),
                ),
            )
            .order_by(ErpPayment.id)
            .limit(1)
        )
        payment = session.execute(stmt).scalars().first()
        if payment is None:
            return MatchResult()

        _logger.debug("vendor_payment:hit line=%d payment_id=%d", line.line, payment.id)
        return MatchResult(
            invoice_id=payment.invoice_id,
            payment_id=payment.id,
            bpartner_id=payment.bpartner_id,
            note=messages.EXACT_MATCH,
        )


__all__ = ["VendorPaymentMatcher"]
