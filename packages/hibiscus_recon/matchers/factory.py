"""Matcher lookup by identifier.

``MatcherKind`` is the closed set of built-in matchers. New matchers are
added by extending the enum and calling :func:`register_matcher`; identifiers
that resolve to nothing yield ``None`` so the caller decides how to report it.

Besides the enum values, a few aliases are accepted: the short names used on
the command line and the class names older loader configurations still
store.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

from ..settings import HibiscusSettings
from .base import BankStatementMatcher
from .invoice_in_memo import InvoiceInMemoMatcher
from .vendor_payment import VendorPaymentMatcher

type MatcherFactory = Callable[[HibiscusSettings], BankStatementMatcher]


class MatcherKind(StrEnum):
    INVOICE_IN_MEMO = "hibiscus_recon.matchers.invoice_in_memo.InvoiceInMemoMatcher"
    VENDOR_PAYMENT = "hibiscus_recon.matchers.vendor_payment.VendorPaymentMatcher"


_ALIASES: dict[str, MatcherKind] = {
    "invoice_in_memo": MatcherKind.INVOICE_IN_MEMO,
    "vendor_payment": MatcherKind.VENDOR_PAYMENT,
    "de.bxservice.hibiscus.HibiscusMatcherCustomerInvoiceInMemo": MatcherKind.INVOICE_IN_MEMO,
    "de.bxservice.hibiscus.HibiscusMatcherInvoiceInMemo": MatcherKind.INVOICE_IN_MEMO,
    "de.bxservice.hibiscus.HibiscusMatcherVendorSEPAPayment": MatcherKind.VENDOR_PAYMENT,
}

_REGISTRY: dict[MatcherKind, MatcherFactory] = {
    MatcherKind.INVOICE_IN_MEMO: InvoiceInMemoMatcher,
    MatcherKind.VENDOR_PAYMENT: VendorPaymentMatcher,
}


def register_matcher(kind: MatcherKind, factory: MatcherFactory) -> None:
    """Bind ``kind`` to ``factory``, replacing any previous binding."""

    _REGISTRY[kind] = factory


def resolve_kind(identifier: str) -> MatcherKind | None:
    identifier = identifier.strip()
    if identifier in _ALIASES:
        return _ALIASES[identifier]
    try:
        return MatcherKind(identifier)
    except ValueError:
        return None


def new_matcher(identifier: str, settings: HibiscusSettings) -> BankStatementMatcher | None:
    """Instantiate the matcher registered for ``identifier``, or return ``None``."""

    kind = resolve_kind(identifier)
    if kind is None:
        return None
    factory = _REGISTRY.get(kind)
    if factory is None:
        return None
    return factory(settings)


def known_identifiers() -> list[str]:
    return [k.value for k in MatcherKind] + list(_ALIASES)


__all__ = [
    "MatcherFactory",
    "MatcherKind",
    "known_identifiers",
    "new_matcher",
    "register_matcher",
    "resolve_kind",
]
