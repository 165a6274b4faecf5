"""Explicit configuration for the loader and the matchers.

Every component receives a :class:`HibiscusSettings` instance at construction
time; nothing in the package reads process-wide settings on its own. The CLI
builds one from the environment (after loading ``.env``) via
:meth:`HibiscusSettings.from_env`.

Environment keys
----------------
``HIBISCUS_STATEMENT_DESCRIPTION``
    Description stored on every staged row / generated statement header.
``HIBISCUS_VALIDATE_DUPS_TRXID``
    Reject rows whose exporter transaction id is already loaded (default on).
``HIBISCUS_VALIDATE_CHECKSUM``
    Recompute and compare the per-row checksum (default off).
``HIBISCUS_FORCE_CHECKSUM``
    Turn a checksum mismatch from a warning into a fatal error (default off).
``SALES_INVOICE_MATCH_REGEX``
    Comma-separated regular expressions with one capture group each, used to
    find invoice numbers in the memo. No default.
``DATE_RANGE_MATCHER``
    Tolerance in days when matching payments by date (default 0).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_STATEMENT_DESCRIPTION = "Uploaded via hibiscus_recon.loader.HibiscusLoader"

# Field name -> environment key
ENV_KEYS: dict[str, str] = {
    "statement_description": "HIBISCUS_STATEMENT_DESCRIPTION",
    "validate_dups_trxid": "HIBISCUS_VALIDATE_DUPS_TRXID",
    "validate_checksum": "HIBISCUS_VALIDATE_CHECKSUM",
    "force_checksum": "HIBISCUS_FORCE_CHECKSUM",
    "sales_invoice_match_regex": "SALES_INVOICE_MATCH_REGEX",
    "date_range_matcher": "DATE_RANGE_MATCHER",
}


class HibiscusSettings(BaseModel):
    """Immutable settings bundle for one import/match run."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    statement_description: str = DEFAULT_STATEMENT_DESCRIPTION
    validate_dups_trxid: bool = True
    validate_checksum: bool = False
    force_checksum: bool = False
    # ``None`` means "not configured"; the invoice matcher refuses to run then.
    sales_invoice_match_regex: tuple[str, ...] | None = None
    date_range_matcher: int = Field(default=0, ge=0)

    @field_validator("sales_invoice_match_regex", mode="before")
    @classmethod
    def _split_patterns(cls, v: Any) -> Any:
        # The stored value is a single comma-separated string; split it the
        # same way (a literal comma inside a pattern is not supported).
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        patterns = tuple(p.strip() for p in v if isinstance(p, str) and p.strip())
        return patterns or None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HibiscusSettings:
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Unset or empty keys keep their defaults. Booleans accept the usual
        spellings (``true/false``, ``1/0``, ``yes/no``, ``y/n``).
        """

        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name, key in ENV_KEYS.items():
            raw = env.get(key)
            if raw is None or not raw.strip():
                continue
            values[field_name] = raw
        return cls.model_validate(values)


__all__ = ["DEFAULT_STATEMENT_DESCRIPTION", "ENV_KEYS", "HibiscusSettings"]
