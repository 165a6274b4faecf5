from __future__ import annotations

import pytest
from hibiscus_recon.settings import DEFAULT_STATEMENT_DESCRIPTION, HibiscusSettings
from pydantic import ValidationError


def test_defaults() -> None:
    s = HibiscusSettings()

    assert s.statement_description == DEFAULT_STATEMENT_DESCRIPTION
    assert s.validate_dups_trxid is True
    assert s.validate_checksum is False
    assert s.force_checksum is False
    assert s.sales_invoice_match_regex is None
    assert s.date_range_matcher == 0


def test_from_env_reads_every_key() -> None:
    s = HibiscusSettings.from_env(
        {
            "HIBISCUS_STATEMENT_DESCRIPTION": "Nightly import",
            "HIBISCUS_VALIDATE_DUPS_TRXID": "no",
            "HIBISCUS_VALIDATE_CHECKSUM": "Y",
            "HIBISCUS_FORCE_CHECKSUM": "true",
            "SALES_INVOICE_MATCH_REGEX": r"(4802[0-9]{8}), (RE-\d+)",
            "DATE_RANGE_MATCHER": "3",
        }
    )

    assert s.statement_description == "Nightly import"
    assert s.validate_dups_trxid is False
    assert s.validate_checksum is True
    assert s.force_checksum is True
    assert s.sales_invoice_match_regex == (r"(4802[0-9]{8})", r"(RE-\d+)")
    assert s.date_range_matcher == 3


def test_from_env_ignores_blank_values() -> None:
    s = HibiscusSettings.from_env({"DATE_RANGE_MATCHER": "  ", "SALES_INVOICE_MATCH_REGEX": ""})

    assert s.date_range_matcher == 0
    assert s.sales_invoice_match_regex is None


def test_from_env_defaults_to_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATE_RANGE_MATCHER", "5")

    assert HibiscusSettings.from_env().date_range_matcher == 5


def test_regex_list_of_only_commas_counts_as_unset() -> None:
    assert HibiscusSettings(sales_invoice_match_regex=" , ,").sales_invoice_match_regex is None


@pytest.mark.parametrize(
    "env",
    [
        {"DATE_RANGE_MATCHER": "-1"},
        {"DATE_RANGE_MATCHER": "two"},
        {"HIBISCUS_VALIDATE_CHECKSUM": "maybe"},
    ],
)
def test_invalid_values_are_rejected(env: dict[str, str]) -> None:
    with pytest.raises(ValidationError):
        HibiscusSettings.from_env(env)


def test_settings_are_frozen() -> None:
    s = HibiscusSettings()

    with pytest.raises(ValidationError):
        s.force_checksum = True  # type: ignore[misc]
