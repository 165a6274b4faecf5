"""Per-row checksum as computed by the Hibiscus exporter (best effort).

Hibiscus stores a CRC-32 per transaction, computed from a concatenation of
upper-cased fields. The concatenation below mirrors what the exporter is
known to do, including Java string semantics (absent values render as
``null``) and Java's ``Double.toString`` rendering of the amount.

Known limitation: the value recomputed here does not match the exporter's for
every row, and no independent test vector is available to pin the exact
algorithm down. Treat a mismatch as a hint, not proof of tampering; the
loader only fails on it when the force flag is set.
"""

from __future__ import annotations

import zlib
from datetime import date
from decimal import Decimal
from typing import Any

# Same pattern as the CSV date columns.
HBCI_DATE_FORMAT = "%d.%m.%Y"


def _java_str(value: str | None) -> str:
    return "null" if value is None else value


def java_double_str(value: Decimal) -> str:
    """Render ``value`` the way Java's ``Double.toString`` renders a double.

    Plain notation for magnitudes in ``[1e-3, 1e7)``, otherwise computerized
    scientific notation (``1.0E7``, ``-2.5E-4``).
    """

    x = float(value)
    if x == 0.0:
        return "-0.0" if str(x).startswith("-") else "0.0"
    if 1e-3 <= abs(x) < 1e7:
        return repr(x)
    sign, digits, exponent = Decimal(repr(x)).normalize().as_tuple()
    if not isinstance(exponent, int):
        raise ValueError(f"cannot render non-finite value {value!r}")
    sci_exp = len(digits) + exponent - 1
    head = str(digits[0])
    tail = "".join(str(d) for d in digits[1:]) or "0"
    return f"{'-' if sign else ''}{head}.{tail}E{sci_exp}"


def checksum_payload(
    *,
    art: str | None,
    account_id: int,
    amount: Decimal,
    customer_ref: str | None,
    counterparty_routing: str | None,
    counterparty_account: str | None,
    counterparty_name: str | None,
    prima_nota: str | None,
    memo: str | None,
    book_date: date,
    value_date: date,
) -> str:
    """Return the exact string that is fed into the CRC."""

    merged_purpose = memo.replace("\n", " ") if memo is not None else ""
    return (
        (art or "").upper()
        + str(account_id)
        + java_double_str(amount)
        + _java_str(customer_ref)
        + _java_str(counterparty_routing)
        + _java_str(counterparty_account)
        + _java_str(counterparty_name).upper()
        + _java_str(prima_nota)
        + ""  # balance is not part of the checksum
        + merged_purpose.upper()
        + book_date.strftime(HBCI_DATE_FORMAT)
        + value_date.strftime(HBCI_DATE_FORMAT)
    )


def compute_checksum(**fields: Any) -> int:
    """CRC-32 (unsigned) over the UTF-8 bytes of :func:`checksum_payload`."""

    payload = checksum_payload(**fields)
    return zlib.crc32(payload.encode("utf-8")) & 0xFFFFFFFF


__all__ = ["HBCI_DATE_FORMAT", "checksum_payload", "compute_checksum", "java_double_str"]
