"""User-facing message texts (English).

Kept in one place so a host application can swap in translated texts; the
wording has no effect on matching or validation behavior.
"""

from __future__ import annotations

from decimal import Decimal

EXACT_MATCH = "Exact match"
MATCH_INVOICE_NOT_AMOUNT = "Invoice {document_no} found, open amount {open_amt}"
MULTI_INVOICE_MATCH = "Multiple invoices found, split the payment: {document_nos}"
LINE_MUST_BE_MATCHED = "{count} line(s) must be matched: {lines}"
LINE_MUST_MATCH_PAYMENT = "{count} line(s) need a payment created: {lines}"


def format_amount(amount: Decimal) -> str:
    """Format like the ledger's amount display: ``#,##0.00``."""

    return f"{amount:,.2f}"


def invoice_amount_mismatch(document_no: str, open_amt: Decimal) -> str:
    return MATCH_INVOICE_NOT_AMOUNT.format(
        document_no=document_no, open_amt=format_amount(open_amt)
    )


def multi_invoice_match(document_nos: list[str]) -> str:
    return MULTI_INVOICE_MATCH.format(document_nos=", ".join(document_nos))


def lines_must_be_matched(lines: list[int]) -> str:
    return LINE_MUST_BE_MATCHED.format(count=len(lines), lines=", ".join(map(str, lines)))


def lines_must_match_payment(lines: list[int]) -> str:
    return LINE_MUST_MATCH_PAYMENT.format(count=len(lines), lines=", ".join(map(str, lines)))


__all__ = [
    "EXACT_MATCH",
    "format_amount",
    "invoice_amount_mismatch",
    "lines_must_be_matched",
    "lines_must_match_payment",
    "multi_invoice_match",
]
