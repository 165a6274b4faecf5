"""Bank statement matchers.

Available matchers:
- ``InvoiceInMemoMatcher``: inbound lines -> open sales invoices named in the memo
- ``VendorPaymentMatcher``: outbound lines -> pending vendor payments

Usage:
    >>> from hibiscus_recon.matchers import new_matcher
    >>> matcher = new_matcher("invoice_in_memo", settings)
    >>> result = matcher.find_match(session, line)
"""

from __future__ import annotations

from .base import BankStatementMatcher, strip_outcome_note, with_outcome_note
from .factory import MatcherKind, new_matcher, register_matcher
from .invoice_in_memo import InvoiceInMemoMatcher
from .vendor_payment import VendorPaymentMatcher

__all__ = [
    "BankStatementMatcher",
    "InvoiceInMemoMatcher",
    "MatcherKind",
    "VendorPaymentMatcher",
    "new_matcher",
    "register_matcher",
    "strip_outcome_note",
    "with_outcome_note",
]
