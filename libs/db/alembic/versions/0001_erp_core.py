# ruff: noqa: I001
"""ERP core tables: bank accounts, partners, invoices, payments, statements.

Revision ID: 0001_erp_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_erp_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_AMOUNT = sa.Numeric(20, 6)
_DOC_STATUS_CHECK = "doc_status in ('DR','IP','CO','CL','WP','VO')"


def upgrade() -> None:
    # Reference data
    op.create_table(
        "erp_bank_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_no", sa.String(), nullable=False),
        sa.Column("routing_no", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "erp_bpartners",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "erp_bp_bank_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "bpartner_id", sa.Integer(), sa.ForeignKey("erp_bpartners.id"), nullable=False
        ),
        sa.Column("iban", sa.String(), nullable=True),
    )

    # Documents
    op.create_table(
        "erp_invoices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("document_no", sa.String(), nullable=False),
        sa.Column(
            "bpartner_id", sa.Integer(), sa.ForeignKey("erp_bpartners.id"), nullable=False
        ),
        sa.Column("is_sotrx", sa.Boolean(), nullable=False),
        sa.Column("doc_status", sa.String(2), nullable=False),
        sa.Column("grand_total", _AMOUNT, nullable=False),
        sa.Column("open_amt", _AMOUNT, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint(_DOC_STATUS_CHECK, name="ck_erp_invoice_doc_status"),
    )
    op.create_index("ix_erp_invoices_document_no", "erp_invoices", ["document_no"])

    op.create_table(
        "erp_payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("document_no", sa.String(), nullable=True),
        sa.Column(
            "bpartner_id", sa.Integer(), sa.ForeignKey("erp_bpartners.id"), nullable=False
        ),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("erp_invoices.id"), nullable=True),
        sa.Column("is_receipt", sa.Boolean(), nullable=False),
        sa.Column("is_reconciled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("doc_status", sa.String(2), nullable=False),
        sa.Column("pay_amt", _AMOUNT, nullable=False),
        sa.Column("date_trx", sa.Date(), nullable=False),
        sa.CheckConstraint(_DOC_STATUS_CHECK, name="ck_erp_payment_doc_status"),
    )

    # Posted statements
    op.create_table(
        "erp_bank_statements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "bank_account_id",
            sa.Integer(),
            sa.ForeignKey("erp_bank_accounts.id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("statement_date", sa.DateTime(), nullable=True),
        sa.Column("doc_status", sa.String(2), nullable=False, server_default=sa.text("'DR'")),
        sa.CheckConstraint(_DOC_STATUS_CHECK, name="ck_erp_statement_doc_status"),
    )
    op.create_table(
        "erp_bank_statement_lines",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "bank_statement_id",
            sa.Integer(),
            sa.ForeignKey("erp_bank_statements.id"),
            nullable=False,
        ),
        sa.Column("line", sa.BigInteger(), nullable=False),
        sa.Column("trx_amt", _AMOUNT, nullable=False),
        sa.Column("stmt_amt", _AMOUNT, nullable=False),
        sa.Column("statement_line_date", sa.Date(), nullable=False),
        sa.Column("valuta_date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("eft_memo", sa.Text(), nullable=True),
        sa.Column("eft_trx_id", sa.String(), nullable=True),
        sa.Column("eft_payee", sa.String(), nullable=True),
        sa.Column("eft_payee_account", sa.String(), nullable=True),
        sa.Column("eft_reference", sa.String(), nullable=True),
        sa.Column("reference_no", sa.String(), nullable=True),
        sa.Column("payment_id", sa.Integer(), sa.ForeignKey("erp_payments.id"), nullable=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("erp_invoices.id"), nullable=True),
        sa.Column(
            "bpartner_id", sa.Integer(), sa.ForeignKey("erp_bpartners.id"), nullable=True
        ),
    )
    op.create_index(
        "ix_erp_bank_statement_lines_bank_statement_id",
        "erp_bank_statement_lines",
        ["bank_statement_id"],
    )

    # Staging
    op.create_table(
        "erp_statement_imports",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "bank_account_id",
            sa.Integer(),
            sa.ForeignKey("erp_bank_accounts.id"),
            nullable=True,
        ),
        sa.Column("bank_account_no", sa.String(), nullable=True),
        sa.Column("routing_no", sa.String(), nullable=True),
        sa.Column("line", sa.BigInteger(), nullable=True),
        sa.Column("eft_trx_id", sa.String(), nullable=True),
        sa.Column("eft_payee_account", sa.String(), nullable=True),
        sa.Column("eft_check_no", sa.String(), nullable=True),
        sa.Column("eft_payee", sa.String(), nullable=True),
        sa.Column("stmt_amt", _AMOUNT, nullable=True),
        sa.Column("trx_amt", _AMOUNT, nullable=True),
        sa.Column("statement_line_date", sa.Date(), nullable=True),
        sa.Column("valuta_date", sa.Date(), nullable=True),
        sa.Column("eft_memo", sa.Text(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("trx_type", sa.String(), nullable=True),
        sa.Column("eft_trx_type", sa.String(), nullable=True),
        sa.Column("eft_reference", sa.String(), nullable=True),
        sa.Column("reference_no", sa.String(), nullable=True),
        sa.Column("eft_statement_reference", sa.String(), nullable=True),
        sa.Column("line_description", sa.Text(), nullable=True),
        sa.Column("checksum", sa.BigInteger(), nullable=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("statement_date", sa.DateTime(), nullable=True),
        sa.Column("is_imported", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "bank_statement_line_id",
            sa.Integer(),
            sa.ForeignKey("erp_bank_statement_lines.id"),
            nullable=True,
        ),
    )
    op.create_index("ix_erp_statement_imports_line", "erp_statement_imports", ["line"])


def downgrade() -> None:
    op.drop_index("ix_erp_statement_imports_line", table_name="erp_statement_imports")
    op.drop_table("erp_statement_imports")
    op.drop_index(
        "ix_erp_bank_statement_lines_bank_statement_id", table_name="erp_bank_statement_lines"
    )
    op.drop_table("erp_bank_statement_lines")
    op.drop_table("erp_bank_statements")
    op.drop_table("erp_payments")
    op.drop_index("ix_erp_invoices_document_no", table_name="erp_invoices")
    op.drop_table("erp_invoices")
    op.drop_table("erp_bp_bank_accounts")
    op.drop_table("erp_bpartners")
    op.drop_table("erp_bank_accounts")
