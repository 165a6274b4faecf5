"""Canonical transaction line: one statement entry, independent of the source format.

Field order (exact):
    - bank_account_no, routing_no: identify the source account
    - account_id: the exporter's internal account id
    - external_trx_id: the exporter's transaction id (duplicate key)
    - payee_account_no, payee_name, check_no: counterparty, optional
    - amount: signed ``Decimal`` (positive = inbound); kept at source scale
    - statement_line_date, valuta_date: book date and value date
    - memo: purpose lines joined with ``\\n``
    - secondary_memo: ``Name=Value`` lines from auxiliary columns
    - trx_type, reference: passthrough classification/reference
    - statement_reference: derived from the file name
    - checksum: value declared by the exporter, when present
    - line_description, eft_trx_type, reference_no: passthrough extras
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class CanonicalTransactionLine:
    """A single parsed statement row.

    Built once by the parser and never mutated afterwards. The settlement
    amount and the transaction amount are the same value in Hibiscus exports,
    so only ``amount`` is carried.
    """

    bank_account_no: str
    routing_no: str
    account_id: int
    external_trx_id: str
    payee_account_no: str | None
    payee_name: str | None
    check_no: str | None
    amount: Decimal
    statement_line_date: date
    valuta_date: date
    memo: str
    secondary_memo: str
    trx_type: str | None
    reference: str | None
    statement_reference: str
    checksum: int | None = None
    line_description: str | None = None
    eft_trx_type: str | None = None
    reference_no: str | None = None


__all__ = ["CanonicalTransactionLine"]
