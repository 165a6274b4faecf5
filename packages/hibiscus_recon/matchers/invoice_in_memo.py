"""Match inbound statement lines to open sales invoices named in the memo.

The memo (purpose lines of the transfer) is scanned with the configured
patterns. Each pattern must have exactly one capture group holding the
invoice number, e.g. ``(4802[0-9]{8})`` for 12-digit numbers starting with
4802. Banks wrap long purpose texts, so a number may be split across two
memo lines (``48020216\\n7177``); every pattern is therefore applied to the
memo as-is and once more with the newlines removed.

Outcomes for a line with a positive amount:

- no qualifying invoice: empty result;
- one invoice whose open amount equals the line amount: invoice id, partner
  id and an exact-match note;
- one invoice with a different open amount: partner id and a note naming
  the invoice and its open amount;
- several invoices: partner id of the first and a note listing all document
  numbers (the payment has to be split by hand).

Outbound and zero-amount lines are not handled here.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from db.models.erp import (
    DOC_STATUS_CLOSED,
    DOC_STATUS_COMPLETED,
    DOC_STATUS_WAITING_PAYMENT,
    ErpBankStatementLine,
    ErpInvoice,
)
from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import messages
from ..errors import MatcherConfigurationError
from ..logging_setup import get_logger
from ..models import MatchResult
from ..settings import HibiscusSettings

_logger = get_logger("hibiscus_recon.matchers.invoice_in_memo")

_OPEN_INVOICE_STATUSES = (DOC_STATUS_COMPLETED, DOC_STATUS_CLOSED, DOC_STATUS_WAITING_PAYMENT)


def compile_invoice_patterns(patterns: Sequence[str] | None) -> list[re.Pattern[str]]:
    """Compile the configured patterns; raise on missing or unusable ones."""

    if not patterns:
        raise MatcherConfigurationError(
            "SALES_INVOICE_MATCH_REGEX is not configured; "
            "set at least one pattern with one capture group"
        )
    compiled: list[re.Pattern[str]] = []
    for raw in patterns:
        try:
            rx = re.compile(raw)
        except re.error as e:
            raise MatcherConfigurationError(f"invalid invoice pattern {raw!r}: {e}") from e
        if rx.groups != 1:
            raise MatcherConfigurationError(
                f"invoice pattern {raw!r} must have exactly one capture group, has {rx.groups}"
            )
        compiled.append(rx)
    return compiled


def extract_invoice_candidates(memo: str | None, patterns: Iterable[re.Pattern[str]]) -> list[str]:
    """Return candidate invoice numbers in first-seen order, without repeats."""

    text = memo or ""
    joined = text.replace("\n", "")
    seen: dict[str, None] = {}
    for rx in patterns:
        for haystack in (text, joined):
            for m in rx.finditer(haystack):
                value = m.group(1)
                if value is not None and value not in seen:
                    seen[value] = None
    return list(seen)


class InvoiceInMemoMatcher:
    """Look up open sales invoices whose number appears in the line memo."""

    def __init__(self, settings: HibiscusSettings):
        self._settings = settings

    def find_match(self, session: Session, line: ErpBankStatementLine) -> MatchResult:
        # Misconfiguration is reported for every line, whatever its amount.
        patterns = compile_invoice_patterns(self._settings.sales_invoice_match_regex)
        if line.trx_amt <= 0:
            return MatchResult()

        invoices: list[ErpInvoice] = []
        for candidate in extract_invoice_candidates(line.eft_memo, patterns):
            invoice = self._open_invoice(session, candidate)
            if invoice is not None:
                invoices.append(invoice)

        if not invoices:
            return MatchResult()

        first = invoices[0]
        if len(invoices) > 1:
            note = messages.multi_invoice_match([inv.document_no for inv in invoices])
            result = MatchResult(bpartner_id=first.bpartner_id, note=note)
        elif line.trx_amt == first.open_amt:
            result = MatchResult(
                invoice_id=first.id, bpartner_id=first.bpartner_id, note=messages.EXACT_MATCH
            )
        else:
            note = messages.invoice_amount_mismatch(first.document_no, first.open_amt)
            result = MatchResult(bpartner_id=first.bpartner_id, note=note)

        _logger.debug(
            "invoice_in_memo:result line=%d invoices=%d invoice_id=%s",
            line.line,
            len(invoices),
            result.invoice_id,
        )
        return result

    @staticmethod
    def _open_invoice(session: Session, document_no: str) -> ErpInvoice | None:
        invoice = session.execute(
            select(ErpInvoice)
            .where(
                (ErpInvoice.document_no == document_no)
                & ErpInvoice.is_sotrx.is_(True)
                & ErpInvoice.doc_status.in_(_OPEN_INVOICE_STATUSES)
                & ErpInvoice.is_active.is_(True)
            )
            .order_by(ErpInvoice.id)
            .limit(1)
        ).scalar_one_or_none()
        if invoice is None or invoice.open_amt <= 0:
            return None
        return invoice


__all__ = ["InvoiceInMemoMatcher", "compile_invoice_patterns", "extract_invoice_candidates"]
