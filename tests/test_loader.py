from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest
from db.models.erp import ErpStatementImport
from hibiscus_recon.errors import INIT_ERROR, LOAD_ERROR, LoadError
from hibiscus_recon.ingest.hibiscus_csv import COLUMNS
from hibiscus_recon.loader import HibiscusLoader, load_file
from hibiscus_recon.settings import HibiscusSettings
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from tests.helpers.db import add_statement_line, seed_bank_account, seed_statement
from tests.helpers.hibiscus_csv import make_row, with_valid_checksum, write_csv

LOAD_TS = datetime(2025, 1, 3, 9, 30, 15, 123456)


def _staged(session: Session) -> list[ErpStatementImport]:
    session.expire_all()
    return list(session.scalars(select(ErpStatementImport).order_by(ErpStatementImport.id)))


@pytest.fixture
def bank_account_id(session: Session) -> int:
    account_id = seed_bank_account(session)
    session.commit()
    return account_id


def test_load_stages_every_row_with_mapped_columns(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(
        tmp_path / "hibiscus_2025-01.csv",
        [
            make_row(Umsatz_Id="1", Zweck="RE 4802", Zweck2="00001234", Kommentar="note"),
            make_row(Umsatz_Id="2", Betrag="-50,5", EndToEndId="", Checksum="99"),
        ],
    )

    result = load_file(session, HibiscusSettings(), csv_path, load_ts=LOAD_TS)

    rows = _staged(session)
    assert result.staged == 2
    assert result.staged_ids == [r.id for r in rows]
    assert result.statement_reference == "2025-01.csv"
    assert result.warnings == []

    first, second = rows
    assert first.bank_account_id == bank_account_id
    assert first.bank_account_no == "1234567890"
    assert first.routing_no == "50010517"
    assert first.line == 1
    assert first.eft_trx_id == "1"
    assert first.eft_payee == "Muster GmbH"
    assert first.eft_payee_account == "DE02120300000000202051"
    assert first.eft_check_no == "BYLADEM1001"
    assert first.trx_amt == Decimal("119.00")
    assert first.stmt_amt == Decimal("119.00")
    assert first.statement_line_date == date(2025, 1, 2)
    assert first.valuta_date == date(2025, 1, 2)
    assert first.eft_memo == "RE 4802\n00001234"
    assert first.memo == "PrimaNota=9000\nArt=Gutschrift\nCustomerRef=NONREF"
    assert first.eft_reference == "E2E-4711"
    assert first.eft_statement_reference == "2025-01.csv"
    assert first.eft_trx_type == "166"
    assert first.line_description == "note"
    assert first.trx_type is None
    assert first.checksum is None
    assert first.name == "2025-01-03 09:30:15"
    assert first.statement_date == datetime(2025, 1, 3, 9, 30, 15)
    assert first.description == HibiscusSettings().statement_description
    assert first.is_imported is False

    assert second.trx_amt == Decimal("-50.5")
    assert second.eft_reference is None
    assert second.trx_type == "99"
    assert second.checksum == 99
    assert second.name == first.name


def test_statement_name_drops_sub_second_precision(session: Session, tmp_path: Path) -> None:
    loader = HibiscusLoader(
        session, HibiscusSettings(), file_path=tmp_path / "x.csv", load_ts=LOAD_TS
    )

    assert loader.statement_name == "2025-01-03 09:30:15"


def test_header_only_file_stages_nothing(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(tmp_path / "empty.csv", [])

    result = load_file(session, HibiscusSettings(), csv_path)

    assert result.staged == 0
    assert _staged(session) == []


def test_unknown_bank_account_stops_the_load(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(
        tmp_path / "a.csv",
        [make_row(Umsatz_Id="1"), make_row(Umsatz_Id="2", Konto_AccountNo="999")],
    )

    with pytest.raises(LoadError) as exc_info:
        load_file(session, HibiscusSettings(), csv_path)

    err = exc_info.value
    assert err.error_code == LOAD_ERROR
    assert err.row == 2
    assert err.error_description == "Line 2 -> Bank Not Found Account=999, Routing=50010517"
    # Rows committed before the failure stay staged.
    assert [r.line for r in _staged(session)] == [1]


def test_inactive_or_ambiguous_bank_account_is_not_found(session: Session, tmp_path: Path) -> None:
    seed_bank_account(session, is_active=False)
    seed_bank_account(session, account_no="555")
    seed_bank_account(session, account_no="555")
    session.commit()

    for account_no in ("1234567890", "555"):
        row = make_row(Konto_AccountNo=account_no)
        csv_path = write_csv(tmp_path / f"{account_no}.csv", [row])
        with pytest.raises(LoadError, match="Bank Not Found"):
            load_file(session, HibiscusSettings(), csv_path)

    assert _staged(session) == []


def test_duplicate_within_staging_is_rejected(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(
        tmp_path / "a.csv",
        [make_row(Umsatz_Id="7"), make_row(Umsatz_Id="8"), make_row(Umsatz_Id="7")],
    )

    with pytest.raises(LoadError) as exc_info:
        load_file(session, HibiscusSettings(), csv_path)

    assert exc_info.value.error_description == (
        "Line 3 -> The line 7 was already loaded in the statement import"
    )
    assert [r.line for r in _staged(session)] == [7, 8]


def test_reloading_the_same_file_fails_on_first_row(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(tmp_path / "a.csv", [make_row(Umsatz_Id="7")])
    load_file(session, HibiscusSettings(), csv_path)

    with pytest.raises(LoadError, match=r"^LoadError: Line 1 -> The line 7"):
        load_file(session, HibiscusSettings(), csv_path)

    assert len(_staged(session)) == 1


def test_duplicate_of_posted_statement_line_names_the_statement(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    statement = seed_statement(session, bank_account_id, name="January")
    add_statement_line(session, statement, line=4711, trx_amt="10")
    session.commit()
    csv_path = write_csv(tmp_path / "a.csv", [make_row(Umsatz_Id="4711")])

    with pytest.raises(LoadError) as exc_info:
        load_file(session, HibiscusSettings(), csv_path)

    assert exc_info.value.error_description == (
        "Line 1 -> The line 4711 was already loaded in Bank Statement January"
    )
    assert _staged(session) == []


def test_duplicates_on_another_bank_account_are_allowed(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    seed_bank_account(session, account_no="555")
    session.commit()
    csv_path = write_csv(
        tmp_path / "a.csv",
        [make_row(Umsatz_Id="7"), make_row(Umsatz_Id="7", Konto_AccountNo="555")],
    )

    result = load_file(session, HibiscusSettings(), csv_path)

    assert result.staged == 2


def test_duplicate_check_can_be_disabled(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(tmp_path / "a.csv", [make_row(Umsatz_Id="7"), make_row(Umsatz_Id="7")])

    result = load_file(session, HibiscusSettings(validate_dups_trxid=False), csv_path)

    assert result.staged == 2


def test_matching_checksum_passes_silently(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(tmp_path / "a.csv", [with_valid_checksum(make_row())])
    settings = HibiscusSettings(validate_checksum=True, force_checksum=True)

    result = load_file(session, settings, csv_path)

    assert result.staged == 1
    assert result.warnings == []


def test_checksum_mismatch_warns_without_force(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    good = with_valid_checksum(make_row(Umsatz_Id="1"))
    bad = dict(good, Umsatz_Id="2", Checksum=str(int(good["Checksum"]) + 1))
    missing = make_row(Umsatz_Id="3")
    csv_path = write_csv(tmp_path / "a.csv", [good, bad, missing])

    result = load_file(session, HibiscusSettings(validate_checksum=True), csv_path)

    assert result.staged == 3
    assert result.warnings == [
        f"The checksum for line 2 doesn't match, calculated={good['Checksum']}, "
        f"expected={bad['Checksum']}",
        f"The checksum for line 3 doesn't match, calculated={good['Checksum']}, "
        "expected=missing",
    ]


def test_checksum_mismatch_with_force_is_fatal(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    good = with_valid_checksum(make_row(Umsatz_Id="1"))
    bad = dict(good, Umsatz_Id="2", Checksum="1")
    csv_path = write_csv(tmp_path / "a.csv", [good, bad])
    settings = HibiscusSettings(validate_checksum=True, force_checksum=True)

    with pytest.raises(LoadError) as exc_info:
        load_file(session, settings, csv_path)

    assert exc_info.value.row == 2
    assert exc_info.value.error_description.startswith(
        "Line 2 -> The checksum for line 2 doesn't match"
    )
    assert exc_info.value.error_description.endswith("expected=1")
    assert [r.line for r in _staged(session)] == [1]


def test_force_without_validation_does_not_check(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(tmp_path / "a.csv", [make_row(Checksum="1")])

    result = load_file(session, HibiscusSettings(force_checksum=True), csv_path)

    assert result.staged == 1


def test_unparseable_row_reports_line_and_keeps_earlier_rows(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(
        tmp_path / "a.csv",
        [make_row(Umsatz_Id="1"), make_row(Umsatz_Id="2", Datum="2025-01-02"), make_row()],
    )

    with pytest.raises(LoadError) as exc_info:
        load_file(session, HibiscusSettings(), csv_path)

    assert exc_info.value.row == 2
    assert exc_info.value.error_description.startswith("Line 2 -> Datum: invalid date")
    assert [r.line for r in _staged(session)] == [1]


def test_missing_header_column_is_a_load_error(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    columns = [c for c in COLUMNS if c != "Umsatz_Id"]
    csv_path = write_csv(tmp_path / "a.csv", [make_row()], columns=columns)

    with pytest.raises(LoadError) as exc_info:
        load_file(session, HibiscusSettings(), csv_path)

    assert exc_info.value.error_code == LOAD_ERROR
    assert exc_info.value.row is None
    assert "Missing columns: Umsatz_Id" in exc_info.value.error_description
    assert _staged(session) == []


def test_unreadable_file_is_an_init_error(session: Session, tmp_path: Path) -> None:
    with pytest.raises(LoadError) as exc_info:
        load_file(session, HibiscusSettings(), tmp_path / "missing.csv")

    assert exc_info.value.error_code == INIT_ERROR
    assert exc_info.value.row is None


def test_amount_finer_than_storage_scale_stops_the_load(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(tmp_path / "a.csv", [make_row(Umsatz_Id="1", Betrag="0,1234567")])

    with pytest.raises(LoadError) as exc_info:
        load_file(session, HibiscusSettings(), csv_path)

    assert exc_info.value.error_description == (
        "Line 1 -> Betrag: more than 6 decimal places in '0,1234567'"
    )
    assert _staged(session) == []


def test_six_decimal_amount_is_stored_unrounded(
    session: Session, bank_account_id: int, tmp_path: Path
) -> None:
    csv_path = write_csv(tmp_path / "a.csv", [make_row(Umsatz_Id="1", Betrag="0,123456")])

    load_file(session, HibiscusSettings(), csv_path)

    (row,) = _staged(session)
    assert row.trx_amt == Decimal("0.123456")


def test_failed_commit_is_reported_as_load_error_for_the_row(
    session: Session, bank_account_id: int, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    csv_path = write_csv(tmp_path / "a.csv", [make_row(Umsatz_Id="1")])

    def _failing_commit() -> None:
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", _failing_commit)

    with pytest.raises(LoadError) as exc_info:
        load_file(session, HibiscusSettings(), csv_path)

    assert exc_info.value.error_code == LOAD_ERROR
    assert exc_info.value.row == 1
    assert exc_info.value.error_description.startswith("Line 1 -> ")
    assert "database is locked" in exc_info.value.error_description
