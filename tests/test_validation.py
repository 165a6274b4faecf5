from __future__ import annotations

from datetime import date

import pytest
from db.models.erp import DOC_STATUS_COMPLETED, DOC_STATUS_IN_PROGRESS
from hibiscus_recon.errors import StatementValidationError
from hibiscus_recon.validation import (
    find_unreconciled_lines,
    prepare_statement,
    validate_statement,
    validation_message,
)
from sqlalchemy.orm import Session

from tests.helpers.db import (
    add_statement_line,
    seed_bank_account,
    seed_invoice,
    seed_partner,
    seed_payment,
    seed_statement,
)


@pytest.fixture
def statement(session: Session):
    return seed_statement(session, seed_bank_account(session))


@pytest.fixture
def partner_id(session: Session) -> int:
    return seed_partner(session, "Kunde AG")


def _payment(session: Session, partner_id: int) -> int:
    return seed_payment(session, bpartner_id=partner_id, pay_amt="1", date_trx=date(2025, 1, 2))


def _invoice(session: Session, partner_id: int, document_no: str = "480200000001") -> int:
    return seed_invoice(session, document_no=document_no, bpartner_id=partner_id, open_amt="1")


@pytest.mark.parametrize(
    ("to_match", "to_pay", "expected"),
    [
        ([], [], None),
        ([3, 5], [], "2 line(s) must be matched: 3, 5"),
        ([], [7], "1 line(s) need a payment created: 7"),
        (
            [3],
            [7, 9],
            "1 line(s) must be matched: 3 + 2 line(s) need a payment created: 7, 9",
        ),
    ],
)
def test_validation_message(to_match, to_pay, expected) -> None:
    assert validation_message(to_match, to_pay) == expected


def test_find_unreconciled_lines_splits_by_invoice(
    session: Session, statement, partner_id: int
) -> None:
    invoice_id = _invoice(session, partner_id)
    payment_id = _payment(session, partner_id)
    lines = [
        add_statement_line(session, statement, line=1, trx_amt="10"),
        add_statement_line(session, statement, line=2, trx_amt="0"),
        add_statement_line(session, statement, line=3, trx_amt="-5", payment_id=payment_id),
        add_statement_line(session, statement, line=4, trx_amt="20", invoice_id=invoice_id),
        add_statement_line(session, statement, line=5, trx_amt="-7"),
    ]

    assert find_unreconciled_lines(lines) == ([1, 5], [4])


def test_fully_paid_statement_validates(session: Session, statement, partner_id: int) -> None:
    payment_id = _payment(session, partner_id)
    add_statement_line(session, statement, line=1, trx_amt="10", payment_id=payment_id)
    add_statement_line(session, statement, line=2, trx_amt="0")

    validate_statement(session, statement)


def test_empty_statement_validates(session: Session, statement) -> None:
    validate_statement(session, statement)


def test_blocking_lines_raise_in_line_order(session: Session, statement, partner_id: int) -> None:
    invoice_id = _invoice(session, partner_id)
    add_statement_line(session, statement, line=30, trx_amt="10", invoice_id=invoice_id)
    add_statement_line(session, statement, line=20, trx_amt="10")
    add_statement_line(session, statement, line=10, trx_amt="-10")

    with pytest.raises(StatementValidationError) as exc_info:
        validate_statement(session, statement)

    err = exc_info.value
    assert err.to_match == (10, 20)
    assert err.to_pay == (30,)
    assert str(err) == (
        "2 line(s) must be matched: 10, 20 + 1 line(s) need a payment created: 30"
    )


def test_prepare_moves_draft_to_in_progress(session: Session, statement) -> None:
    add_statement_line(session, statement, line=1, trx_amt="0")

    prepared = prepare_statement(session, statement)

    assert prepared is statement
    assert statement.doc_status == DOC_STATUS_IN_PROGRESS


def test_prepare_keeps_draft_when_blocked(session: Session, statement) -> None:
    add_statement_line(session, statement, line=1, trx_amt="5")

    with pytest.raises(StatementValidationError):
        prepare_statement(session, statement)

    assert statement.doc_status == "DR"


def test_prepare_rejects_non_draft(session: Session) -> None:
    statement = seed_statement(
        session, seed_bank_account(session), doc_status=DOC_STATUS_COMPLETED
    )

    with pytest.raises(ValueError, match="only 'DR' statements can be prepared"):
        prepare_statement(session, statement)
