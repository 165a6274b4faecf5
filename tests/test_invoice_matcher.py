from __future__ import annotations

import pytest
from hibiscus_recon.errors import MatcherConfigurationError
from hibiscus_recon.matchers.invoice_in_memo import (
    InvoiceInMemoMatcher,
    compile_invoice_patterns,
    extract_invoice_candidates,
)
from hibiscus_recon.messages import EXACT_MATCH
from hibiscus_recon.models import MatchResult
from hibiscus_recon.settings import HibiscusSettings
from sqlalchemy.orm import Session

from tests.helpers.db import (
    add_statement_line,
    seed_bank_account,
    seed_invoice,
    seed_partner,
    seed_statement,
)


@pytest.fixture
def statement(session: Session):
    return seed_statement(session, seed_bank_account(session))


@pytest.fixture
def partner_id(session: Session) -> int:
    return seed_partner(session, "Kunde AG")


def test_candidates_include_numbers_split_across_memo_lines() -> None:
    patterns = compile_invoice_patterns([r"(4802[0-9]{8})"])

    memo = "RE 480200001111 und 48020216\n7177"

    assert extract_invoice_candidates(memo, patterns) == ["480200001111", "480202167177"]


def test_candidates_are_deduplicated_across_patterns() -> None:
    patterns = compile_invoice_patterns([r"(4802[0-9]{8})", r"RE (\d+)"])

    assert extract_invoice_candidates("RE 480200001111", patterns) == ["480200001111"]
    assert extract_invoice_candidates(None, patterns) == []


@pytest.mark.parametrize(
    ("patterns", "fragment"),
    [
        (None, "not configured"),
        ((), "not configured"),
        (("(unclosed",), "invalid invoice pattern"),
        ((r"\d+",), "exactly one capture group"),
        ((r"(\d)(\d)",), "exactly one capture group"),
    ],
)
def test_bad_pattern_configuration_is_rejected(patterns, fragment: str) -> None:
    with pytest.raises(MatcherConfigurationError, match=fragment):
        compile_invoice_patterns(patterns)


def test_unconfigured_matcher_fails_even_for_outbound_lines(session: Session, statement) -> None:
    line = add_statement_line(session, statement, line=1, trx_amt="-10")

    with pytest.raises(MatcherConfigurationError):
        InvoiceInMemoMatcher(HibiscusSettings()).find_match(session, line)


@pytest.mark.parametrize("amount", ["0", "-119.00"])
def test_non_positive_amounts_are_skipped(
    session: Session, settings: HibiscusSettings, statement, partner_id: int, amount: str
) -> None:
    seed_invoice(session, document_no="480200001234", bpartner_id=partner_id, open_amt="119.00")
    line = add_statement_line(
        session, statement, line=1, trx_amt=amount, eft_memo="RE 480200001234"
    )

    assert InvoiceInMemoMatcher(settings).find_match(session, line) == MatchResult()


def test_exact_match_links_invoice_and_partner(
    session: Session, settings: HibiscusSettings, statement, partner_id: int
) -> None:
    invoice_id = seed_invoice(
        session, document_no="480200001234", bpartner_id=partner_id, open_amt="119.00"
    )
    line = add_statement_line(
        session, statement, line=1, trx_amt="119.00", eft_memo="RE 48020000\n1234 Danke"
    )

    result = InvoiceInMemoMatcher(settings).find_match(session, line)

    assert result == MatchResult(invoice_id=invoice_id, bpartner_id=partner_id, note=EXACT_MATCH)


def test_amount_mismatch_names_invoice_and_open_amount(
    session: Session, settings: HibiscusSettings, statement, partner_id: int
) -> None:
    seed_invoice(
        session,
        document_no="480200001234",
        bpartner_id=partner_id,
        open_amt="1234.5",
        grand_total="2000",
    )
    line = add_statement_line(session, statement, line=1, trx_amt="100", eft_memo="480200001234")

    result = InvoiceInMemoMatcher(settings).find_match(session, line)

    assert result.invoice_id is None
    assert result.bpartner_id == partner_id
    assert result.note == "Invoice 480200001234 found, open amount 1,234.50"


def test_several_invoices_ask_for_a_split(
    session: Session, settings: HibiscusSettings, statement, partner_id: int
) -> None:
    other = seed_partner(session, "Other GmbH")
    seed_invoice(session, document_no="480200000002", bpartner_id=other, open_amt="50")
    seed_invoice(session, document_no="480200000001", bpartner_id=partner_id, open_amt="50")
    line = add_statement_line(
        session, statement, line=1, trx_amt="100", eft_memo="480200000002, 480200000001"
    )

    result = InvoiceInMemoMatcher(settings).find_match(session, line)

    assert result.invoice_id is None
    assert result.bpartner_id == other
    assert result.note == (
        "Multiple invoices found, split the payment: 480200000002, 480200000001"
    )


@pytest.mark.parametrize(
    "overrides",
    [
        {"is_sotrx": False},
        {"doc_status": "DR"},
        {"doc_status": "VO"},
        {"is_active": False},
        {"open_amt": "0"},
    ],
)
def test_non_qualifying_invoices_are_ignored(
    session: Session, settings: HibiscusSettings, statement, partner_id: int, overrides
) -> None:
    kwargs = {"open_amt": "119.00", **overrides}
    seed_invoice(session, document_no="480200001234", bpartner_id=partner_id, **kwargs)
    line = add_statement_line(
        session, statement, line=1, trx_amt="119.00", eft_memo="480200001234"
    )

    assert InvoiceInMemoMatcher(settings).find_match(session, line) == MatchResult()


@pytest.mark.parametrize("status", ["CL", "WP"])
def test_closed_and_waiting_invoices_still_qualify(
    session: Session, settings: HibiscusSettings, statement, partner_id: int, status: str
) -> None:
    invoice_id = seed_invoice(
        session,
        document_no="480200001234",
        bpartner_id=partner_id,
        open_amt="119.00",
        doc_status=status,
    )
    line = add_statement_line(
        session, statement, line=1, trx_amt="119.00", eft_memo="480200001234"
    )

    assert InvoiceInMemoMatcher(settings).find_match(session, line).invoice_id == invoice_id


def test_duplicate_document_numbers_resolve_to_lowest_id(
    session: Session, settings: HibiscusSettings, statement, partner_id: int
) -> None:
    first = seed_invoice(
        session, document_no="480200001234", bpartner_id=partner_id, open_amt="119.00"
    )
    seed_invoice(session, document_no="480200001234", bpartner_id=partner_id, open_amt="119.00")
    line = add_statement_line(
        session, statement, line=1, trx_amt="119.00", eft_memo="480200001234"
    )

    assert InvoiceInMemoMatcher(settings).find_match(session, line).invoice_id == first


def test_memo_without_candidates_is_no_match(
    session: Session, settings: HibiscusSettings, statement
) -> None:
    line = add_statement_line(session, statement, line=1, trx_amt="10", eft_memo="Miete Januar")

    assert InvoiceInMemoMatcher(settings).find_match(session, line) == MatchResult()
