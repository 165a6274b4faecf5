# ruff: noqa: I001
"""CLI for the ``hibiscus_recon`` package.

This module exposes callable command handlers (``cmd_load``, ``cmd_run``, ...)
and a Typer-based console interface on top of them. Environment variables
(``DATABASE_URL`` and the ``HIBISCUS_*`` settings) are loaded from a local
``.env`` using ``python-dotenv`` before any command runs. Business logic lives
in ``hibiscus_recon.api`` and the modules it re-exports.

Every handler prints ``Error: ...`` to stderr and returns ``1`` on failure;
the Typer commands turn that into the process exit status.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import OptionInfo

from .logging_setup import configure_logging
from .settings import HibiscusSettings


# ---- Small module-level helpers used by CLI commands -------------------------


def _load_settings() -> HibiscusSettings | None:
    try:
        return HibiscusSettings.from_env()
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return None


def _get_statement(session, statement_id: int):
    from db.models.erp import ErpBankStatement

    statement = session.get(ErpBankStatement, statement_id)
    if statement is None:
        raise LookupError(f"bank statement {statement_id} not found")
    return statement


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


# ---- Command handlers ---------------------------------------------------------


def cmd_load(csv_path: str, *, database_url: str | None = None) -> int:
    """Stage a Hibiscus CSV file; print the staged count and checksum warnings."""

    from db.client import session_scope
    from .errors import LoadError
    from .loader import HibiscusLoader

    settings = _load_settings()
    if settings is None:
        return 1
    try:
        with session_scope(database_url=database_url) as session:
            result = HibiscusLoader(session, settings, file_path=csv_path).load_lines()
    except LoadError as e:
        print(f"Error: {e.error_code}: {e.error_description}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: load failed: {e}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    print(f"Staged {result.staged} line(s) from {result.statement_reference}")
    return 0


def cmd_import(bank_account_id: int, *, database_url: str | None = None) -> int:
    """Import pending staged rows of a bank account into a draft statement."""

    from db.client import session_scope
    from .importer import import_staged_lines

    try:
        with session_scope(database_url=database_url) as session:
            statement = import_staged_lines(session, bank_account_id)
            statement_id = statement.id if statement is not None else None
    except Exception as e:
        print(f"Error: import failed: {e}", file=sys.stderr)
        return 1

    if statement_id is None:
        print(f"Nothing to import for bank account {bank_account_id}")
    else:
        print(f"Created draft statement {statement_id}")
    return 0


def cmd_match(statement_id: int, matcher_id: str, *, database_url: str | None = None) -> int:
    """Run one matcher over the open lines of a statement."""

    from db.client import session_scope
    from .errors import MatcherConfigurationError
    from .matchers.factory import new_matcher
    from .matching import match_statement

    settings = _load_settings()
    if settings is None:
        return 1
    matcher = new_matcher(matcher_id, settings)
    if matcher is None:
        print(f"Error: unknown matcher: {matcher_id}", file=sys.stderr)
        return 1
    try:
        with session_scope(database_url=database_url) as session:
            summary = match_statement(session, _get_statement(session, statement_id), matcher)
    except MatcherConfigurationError as e:
        print(f"Error: matcher configuration: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: match failed: {e}", file=sys.stderr)
        return 1

    print(
        f"Examined {summary.examined} line(s): matched {summary.matched}, "
        f"noted {summary.noted}, failed {len(summary.failed_lines)}"
    )
    return 0


def cmd_validate(statement_id: int, *, database_url: str | None = None) -> int:
    """Report whether a statement may be prepared."""

    from db.client import session_scope
    from .errors import StatementValidationError
    from .validation import validate_statement

    try:
        with session_scope(database_url=database_url) as session:
            validate_statement(session, _get_statement(session, statement_id))
    except StatementValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: validation failed: {e}", file=sys.stderr)
        return 1
    print(f"Statement {statement_id} is ready to prepare")
    return 0


def cmd_prepare(statement_id: int, *, database_url: str | None = None) -> int:
    """Validate a draft statement and move it to in-progress."""

    from db.client import session_scope
    from .errors import StatementValidationError
    from .validation import prepare_statement

    try:
        with session_scope(database_url=database_url) as session:
            statement = prepare_statement(session, _get_statement(session, statement_id))
            status = statement.doc_status
    except StatementValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: prepare failed: {e}", file=sys.stderr)
        return 1
    print(f"Statement {statement_id} is now {status}")
    return 0


def cmd_create_payments(statement_id: int, *, database_url: str | None = None) -> int:
    """Create payments for the invoice-matched lines of a draft statement."""

    from db.client import session_scope
    from .payments import create_payments

    try:
        with session_scope(database_url=database_url) as session:
            payment_ids = create_payments(session, _get_statement(session, statement_id))
    except Exception as e:
        print(f"Error: create payments failed: {e}", file=sys.stderr)
        return 1
    print(f"Created {len(payment_ids)} payment(s) for statement {statement_id}")
    return 0


def cmd_run(
    csv_path: str,
    *,
    matcher_id: str | None = None,
    create_payments: bool = False,
    database_url: str | None = None,
) -> int:
    """Run the full pipeline: delete old import, load, import, match, create payments."""

    from .errors import PipelineStepError
    from .workflows.import_flow import run_import_pipeline

    settings = _load_settings()
    if settings is None:
        return 1
    try:
        result = run_import_pipeline(
            csv_path,
            settings,
            matcher_id,
            database_url=database_url,
            create_payments=create_payments,
            on_progress=print,
        )
    except PipelineStepError as e:
        cause = e.__cause__
        detail = getattr(cause, "error_description", None) or str(cause)
        print(f"Error: step {e.step} failed: {detail}", file=sys.stderr)
        return 1

    if result.statement_ids:
        print("Statements: " + ", ".join(str(i) for i in result.statement_ids))
    return 0


# ---- Typer application ----------------------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Load Hibiscus bank-statement CSV exports and reconcile them against open "
        "invoices and vendor payments. Loads DATABASE_URL and HIBISCUS_* settings "
        "from a local .env before running."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Used inside ``Annotated``, so the first positional is the flag name.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a Hibiscus CSV export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the loader reports a missing file itself
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
STATEMENT_ID_OPTION: OptionInfo = typer.Option("--statement-id", help="Bank statement id")
MATCHER_OPTION: OptionInfo = typer.Option(
    "--matcher",
    help="Matcher identifier (invoice_in_memo, vendor_payment, or a full class name).",
)


@app.command("load")
def load_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Stage the rows of a CSV export."""

    _exit(cmd_load(str(csv_path), database_url=database_url))


@app.command("import")
def import_cmd(
    bank_account_id: Annotated[
        int, typer.Option("--bank-account-id", help="Bank account to import")
    ],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Create a draft statement from the staged rows of a bank account."""

    _exit(cmd_import(bank_account_id, database_url=database_url))


@app.command("match")
def match_cmd(
    statement_id: Annotated[int, STATEMENT_ID_OPTION],
    matcher_id: Annotated[str, MATCHER_OPTION] = "invoice_in_memo",
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Match the open lines of a statement."""

    _exit(cmd_match(statement_id, matcher_id, database_url=database_url))


@app.command("validate")
def validate_cmd(
    statement_id: Annotated[int, STATEMENT_ID_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Check that no non-zero line is left without a payment."""

    _exit(cmd_validate(statement_id, database_url=database_url))


@app.command("prepare")
def prepare_cmd(
    statement_id: Annotated[int, STATEMENT_ID_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Validate a draft statement and move it to in-progress."""

    _exit(cmd_prepare(statement_id, database_url=database_url))


@app.command("create-payments")
def create_payments_cmd(
    statement_id: Annotated[int, STATEMENT_ID_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Create payments for lines matched to an invoice."""

    _exit(cmd_create_payments(statement_id, database_url=database_url))


@app.command("run")
def run_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    matcher_id: Annotated[str | None, typer.Option("--matcher", help="Matcher to run")] = None,
    create_payments: Annotated[
        bool,
        typer.Option("--create-payments", help="Create payments for invoice matches"),
    ] = False,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Delete old import, load, import and (optionally) match and pay in one go."""

    _exit(
        cmd_run(
            str(csv_path),
            matcher_id=matcher_id,
            create_payments=create_payments,
            database_url=database_url,
        )
    )


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    # Central logging setup so child loggers inherit configuration
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m hibiscus_recon.cli`
    app()
