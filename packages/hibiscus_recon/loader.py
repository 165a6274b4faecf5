"""Load a Hibiscus CSV export into the statement staging table.

Each data row goes through the same sequence:

1. map the CSV row to a :class:`CanonicalTransactionLine`;
2. resolve the target bank account (account number + routing number);
3. stage the row (flushed, not yet committed);
4. reject duplicates when ``validate_dups_trxid`` is on;
5. compare checksums when ``validate_checksum`` is on; a mismatch is fatal
   only with ``force_checksum``;
6. commit.

The first fatal problem rolls back the row being processed and raises
:class:`~hibiscus_recon.errors.LoadError`; rows committed before it stay
staged. Every row-level description starts with ``Line <n> -> `` where ``n``
is the 1-based data row.
"""

from __future__ import annotations

import csv
from datetime import datetime
from os import PathLike
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .duplicates import find_duplicate, resolve_bank_account
from .errors import INIT_ERROR, LOAD_ERROR, LoadError
from .ingest.hibiscus_csv import (
    ParsedRow,
    RowParseError,
    iter_parsed_rows,
    statement_reference_from_path,
)
from .logging_setup import get_logger
from .models import LoadResult
from .persistence import stage_line
from .settings import HibiscusSettings

_logger = get_logger("hibiscus_recon.loader")

STATEMENT_NAME_FORMAT = "%Y-%m-%d %H:%M:%S"


class _RowRejected(Exception):
    """Internal: a guard rejected the current row."""


def checksum_mismatch_message(line_no: str, calculated: int, expected: int | None) -> str:
    shown = "missing" if expected is None else str(expected)
    return (
        f"The checksum for line {line_no} doesn't match, "
        f"calculated={calculated}, expected={shown}"
    )


class HibiscusLoader:
    """Stage the rows of one Hibiscus CSV file.

    The loader commits on ``session`` once per accepted row, so the session
    should not carry unrelated pending work.
    """

    def __init__(
        self,
        session: Session,
        settings: HibiscusSettings,
        *,
        file_path: str | PathLike[str],
        load_ts: datetime | None = None,
    ):
        self._session = session
        self._settings = settings
        self._path = Path(file_path)
        self._load_ts = (load_ts or datetime.now()).replace(microsecond=0)
        self._statement_name = self._load_ts.strftime(STATEMENT_NAME_FORMAT)
        self._statement_reference = statement_reference_from_path(file_path)

    @property
    def statement_name(self) -> str:
        return self._statement_name

    def load_lines(self) -> LoadResult:
        """Stage every row; raise :class:`LoadError` on the first fatal problem."""

        result = LoadResult(statement_reference=self._statement_reference)
        _logger.info(
            "loader:start file=%s reference=%s dups=%s checksum=%s force=%s",
            self._path.name,
            self._statement_reference,
            self._settings.validate_dups_trxid,
            self._settings.validate_checksum,
            self._settings.force_checksum,
        )
        try:
            fh = self._path.open("r", encoding="utf-8", newline="")
        except OSError as e:
            raise LoadError(INIT_ERROR, f"cannot open {self._path}: {e}") from e

        with fh:
            try:
                for parsed in iter_parsed_rows(fh, statement_reference=self._statement_reference):
                    self._load_row(parsed, result)
            except csv.Error as e:
                _logger.error("loader:header_invalid file=%s error=%s", self._path.name, e)
                raise LoadError(LOAD_ERROR, str(e)) from e
            except RowParseError as e:
                self._session.rollback()
                _logger.error("loader:row_failed row=%d error=%s", e.row, e)
                raise LoadError(LOAD_ERROR, f"Line {e.row} -> {e}", row=e.row) from e

        _logger.info(
            "loader:done file=%s staged=%d warnings=%d",
            self._path.name,
            result.staged,
            len(result.warnings),
        )
        return result

    # ------------------------------------------------------------------
    # Per-row processing
    # ------------------------------------------------------------------

    def _load_row(self, parsed: ParsedRow, result: LoadResult) -> None:
        try:
            staged_id = self._stage_and_check(parsed, result)
            self._session.commit()
        except (_RowRejected, SQLAlchemyError) as e:
            self._session.rollback()
            _logger.error("loader:row_failed row=%d error=%s", parsed.row, e)
            raise LoadError(LOAD_ERROR, f"Line {parsed.row} -> {e}", row=parsed.row) from e
        result.staged_ids.append(staged_id)
        _logger.debug(
            "loader:row_staged row=%d line=%s id=%d",
            parsed.row,
            parsed.line.external_trx_id,
            staged_id,
        )

    def _stage_and_check(self, parsed: ParsedRow, result: LoadResult) -> int:
        line = parsed.line
        bank_account_id = resolve_bank_account(
            self._session, account_no=line.bank_account_no, routing_no=line.routing_no
        )
        if bank_account_id is None:
            raise _RowRejected(
                f"Bank Not Found Account={line.bank_account_no}, Routing={line.routing_no}"
            )

        staged = stage_line(
            self._session,
            line,
            bank_account_id=bank_account_id,
            statement_name=self._statement_name,
            statement_description=self._settings.statement_description,
            load_ts=self._load_ts,
        )

        if self._settings.validate_dups_trxid:
            reason = find_duplicate(
                self._session,
                line_no=int(line.external_trx_id),
                bank_account_id=bank_account_id,
                exclude_import_id=staged.id,
            )
            if reason is not None:
                raise _RowRejected(reason)

        if self._settings.validate_checksum and line.checksum != parsed.recomputed_checksum:
            message = checksum_mismatch_message(
                line.external_trx_id, parsed.recomputed_checksum, line.checksum
            )
            if self._settings.force_checksum:
                raise _RowRejected(message)
            _logger.warning("loader:checksum_mismatch row=%d %s", parsed.row, message)
            result.warnings.append(message)

        return staged.id


def load_file(
    session: Session,
    settings: HibiscusSettings,
    file_path: str | PathLike[str],
    *,
    load_ts: datetime | None = None,
) -> LoadResult:
    """Convenience wrapper around :meth:`HibiscusLoader.load_lines`."""

    return HibiscusLoader(session, settings, file_path=file_path, load_ts=load_ts).load_lines()


__all__ = ["HibiscusLoader", "STATEMENT_NAME_FORMAT", "checksum_mismatch_message", "load_file"]
