"""Adapter for mapping a Hibiscus CSV export to canonical transaction lines.

CSV header (exact keys expected, in this order):
Konto_AccountNo, Konto_RoutingNo, Konto_Id, Umsatz_Id, Empfaenger_Konto,
Empfaenger_Blz, Empfaenger_Name, Betrag, Zweck, Zweck2, Zweck3, Datum, Valuta,
Kommentar, Checksum, GvCode, EndToEndId, MandateId, PrimaNota, Art,
CustomerRef, AddKey, TxId, PurposeCode, Empfaenger_Name2, UmsatzTyp_Name

Dialect
-------
UTF-8 with a header row. The delimiter is ``,`` or ``;`` (the exporter's
north-european template); it is detected from the header line. Empty cells
are treated as absent.

Mapping rules
-------------
- ``Konto_AccountNo``/``Konto_RoutingNo``/``Konto_Id``/``Umsatz_Id``/``Betrag``
  are required; ids must be integers.
- ``Betrag``: ``,`` is replaced with ``.`` before parsing (the exporter emits
  either, depending on its locale); the ``Decimal`` keeps the source scale.
  More than ``MAX_AMOUNT_SCALE`` fractional digits is a row error, since the
  staging column would round them away.
- ``Datum``/``Valuta``: ``dd.MM.yyyy``, required.
- ``memo``: ``Zweck``, ``Zweck2``, ``Zweck3`` joined with ``\\n``; absent parts
  are skipped, never turned into blank lines.
- ``secondary_memo``: ``Name=Value`` lines for the auxiliary columns with a
  non-blank value, joined with ``\\n``.
- ``trx_type``: the declared checksum rendered as text.

Failure mode
------------
Header problems raise ``csv.Error``. Row problems raise :class:`RowParseError`
carrying the 1-based data row number; iteration stops there.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from os import PathLike
from typing import TextIO

from ..checksum import HBCI_DATE_FORMAT, compute_checksum
from ..statement_line import CanonicalTransactionLine

COLUMNS: tuple[str, ...] = (
    "Konto_AccountNo",
    "Konto_RoutingNo",
    "Konto_Id",
    "Umsatz_Id",
    "Empfaenger_Konto",
    "Empfaenger_Blz",
    "Empfaenger_Name",
    "Betrag",
    "Zweck",
    "Zweck2",
    "Zweck3",
    "Datum",
    "Valuta",
    "Kommentar",
    "Checksum",
    "GvCode",
    "EndToEndId",
    "MandateId",
    "PrimaNota",
    "Art",
    "CustomerRef",
    "AddKey",
    "TxId",
    "PurposeCode",
    "Empfaenger_Name2",
    "UmsatzTyp_Name",
)

# Auxiliary columns that feed ``secondary_memo``, in output order.
SECONDARY_MEMO_COLUMNS: tuple[str, ...] = (
    "PrimaNota",
    "Art",
    "CustomerRef",
    "AddKey",
    "TxId",
    "PurposeCode",
    "Empfaenger_Name2",
    "UmsatzTyp_Name",
)

_SUPPORTED_DELIMITERS = (";", ",")

# Fractional digits the amount columns store without rounding.
MAX_AMOUNT_SCALE = 6

# Plain ASCII number forms; Python-only spellings such as "1_000" are rejected.
_INT_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class RowParseError(ValueError):
    """A data row could not be mapped; ``row`` is 1-based (header excluded)."""

    def __init__(self, row: int, message: str):
        super().__init__(message)
        self.row = row


@dataclass(frozen=True, slots=True)
class ParsedRow:
    """One mapped row plus the checksum recomputed from its raw fields."""

    row: int
    line: CanonicalTransactionLine
    recomputed_checksum: int


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def _optional(row: Mapping[str, str | None], col: str) -> str | None:
    value = row.get(col)
    if value is None or value == "":
        return None
    return value


def _required(row: Mapping[str, str | None], col: str) -> str:
    value = _optional(row, col)
    if value is None:
        raise ValueError(f"{col} is required")
    return value


def _to_int(raw: str, col: str) -> int:
    if not _INT_RE.fullmatch(raw.strip()):
        raise ValueError(f"{col}: invalid integer {raw!r}")
    return int(raw.strip())


def _to_amount(raw: str) -> Decimal:
    # Some exporter configurations use a comma as the decimal separator.
    text = raw.replace(",", ".").strip()
    if not _DECIMAL_RE.fullmatch(text):
        raise ValueError(f"Betrag: invalid amount {raw!r}")
    d = Decimal(text)
    exponent = d.normalize().as_tuple().exponent
    if isinstance(exponent, int) and -exponent > MAX_AMOUNT_SCALE:
        raise ValueError(f"Betrag: more than {MAX_AMOUNT_SCALE} decimal places in {raw!r}")
    return d


def _to_date(raw: str, col: str) -> date:
    try:
        return datetime.strptime(raw.strip(), HBCI_DATE_FORMAT).date()
    except ValueError as exc:
        raise ValueError(f"{col}: invalid date {raw!r}, expected dd.MM.yyyy") from exc


def merge_memo(*parts: str | None) -> str:
    """Join the present purpose parts with newlines."""

    return "\n".join(p for p in parts if p is not None)


def build_secondary_memo(row: Mapping[str, str | None]) -> str:
    entries = []
    for col in SECONDARY_MEMO_COLUMNS:
        value = row.get(col)
        if value is not None and value.strip():
            entries.append(f"{col}={value}")
    return "\n".join(entries)


def statement_reference_from_path(path: str | PathLike[str]) -> str:
    """Return the part of the file name after the last ``_`` or path separator."""

    return re.split(r"[_/\\]", str(path))[-1]


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def to_canonical_line(
    row: Mapping[str, str | None], *, statement_reference: str
) -> tuple[CanonicalTransactionLine, int]:
    """Map one CSV row; returns the line and the recomputed checksum.

    Raises ``ValueError`` describing the first offending column.
    """

    account_no = _required(row, "Konto_AccountNo")
    routing_no = _required(row, "Konto_RoutingNo")
    account_id = _to_int(_required(row, "Konto_Id"), "Konto_Id")
    trx_id = _to_int(_required(row, "Umsatz_Id"), "Umsatz_Id")
    amount = _to_amount(_required(row, "Betrag"))
    book_date = _to_date(_required(row, "Datum"), "Datum")
    value_date = _to_date(_required(row, "Valuta"), "Valuta")
    raw_checksum = _optional(row, "Checksum")
    checksum = _to_int(raw_checksum, "Checksum") if raw_checksum is not None else None

    payee_account = _optional(row, "Empfaenger_Konto")
    payee_routing = _optional(row, "Empfaenger_Blz")
    payee_name = _optional(row, "Empfaenger_Name")
    memo = merge_memo(_optional(row, "Zweck"), _optional(row, "Zweck2"), _optional(row, "Zweck3"))

    line = CanonicalTransactionLine(
        bank_account_no=account_no,
        routing_no=routing_no,
        account_id=account_id,
        external_trx_id=str(trx_id),
        payee_account_no=payee_account,
        payee_name=payee_name,
        check_no=payee_routing,
        amount=amount,
        statement_line_date=book_date,
        valuta_date=value_date,
        memo=memo,
        secondary_memo=build_secondary_memo(row),
        trx_type=str(checksum) if checksum is not None else None,
        reference=_optional(row, "EndToEndId"),
        statement_reference=statement_reference,
        checksum=checksum,
        line_description=_optional(row, "Kommentar"),
        eft_trx_type=_optional(row, "GvCode"),
        reference_no=_optional(row, "MandateId"),
    )
    recomputed = compute_checksum(
        art=_optional(row, "Art"),
        account_id=account_id,
        amount=amount,
        customer_ref=_optional(row, "CustomerRef"),
        counterparty_routing=payee_routing,
        counterparty_account=payee_account,
        counterparty_name=payee_name,
        prima_nota=_optional(row, "PrimaNota"),
        memo=memo,
        book_date=book_date,
        value_date=value_date,
    )
    return line, recomputed


# ---------------------------------------------------------------------------
# File level
# ---------------------------------------------------------------------------


def detect_delimiter(header_line: str) -> str:
    """Pick the delimiter that splits the header into the most known columns."""

    best = ","
    best_hits = -1
    for delim in _SUPPORTED_DELIMITERS:
        names = {c.strip().strip('"') for c in header_line.split(delim)}
        hits = len(names.intersection(COLUMNS))
        if hits > best_hits:
            best, best_hits = delim, hits
    return best


def _dict_reader_from_text(text: str) -> csv.DictReader:
    header_line = text.split("\n", 1)[0]
    reader = csv.DictReader(io.StringIO(text), delimiter=detect_delimiter(header_line))
    headers = reader.fieldnames
    if not headers:
        raise csv.Error("Hibiscus CSV: header row missing; file may be empty.")
    missing = [col for col in COLUMNS if col not in headers]
    if missing:
        raise csv.Error("Hibiscus CSV: header mismatch. Missing columns: " + ", ".join(missing))
    return reader


def iter_parsed_rows(file: TextIO, *, statement_reference: str) -> Iterator[ParsedRow]:
    """Yield :class:`ParsedRow` items in file order.

    Parameters
    ----------
    file:
        An open text file object (``encoding='utf-8'``, ``newline=''``).
    statement_reference:
        Reference copied onto every line (see
        :func:`statement_reference_from_path`).
    """

    reader = _dict_reader_from_text(file.read())
    row_no = 0
    while True:
        row_no += 1
        try:
            raw = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            raise RowParseError(row_no, str(exc)) from exc
        try:
            line, recomputed = to_canonical_line(raw, statement_reference=statement_reference)
        except ValueError as exc:
            raise RowParseError(row_no, str(exc)) from exc
        yield ParsedRow(row=row_no, line=line, recomputed_checksum=recomputed)


__all__ = [
    "COLUMNS",
    "MAX_AMOUNT_SCALE",
    "ParsedRow",
    "RowParseError",
    "SECONDARY_MEMO_COLUMNS",
    "build_secondary_memo",
    "detect_delimiter",
    "iter_parsed_rows",
    "merge_memo",
    "statement_reference_from_path",
    "to_canonical_line",
]
