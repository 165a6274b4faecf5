from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression as sa_expr


class Base(DeclarativeBase):
    pass


# Six fractional digits; the statement parser rejects finer amounts.
_AMOUNT = Numeric(20, 6)

# Document status codes shared by invoices, payments and statements.
DOC_STATUS_DRAFTED = "DR"
DOC_STATUS_IN_PROGRESS = "IP"
DOC_STATUS_COMPLETED = "CO"
DOC_STATUS_CLOSED = "CL"
DOC_STATUS_WAITING_PAYMENT = "WP"
DOC_STATUS_VOIDED = "VO"

_DOC_STATUS_CHECK = "doc_status in ('DR','IP','CO','CL','WP','VO')"


# ---------------------------
# Reference: bank accounts and business partners
# ---------------------------


class ErpBankAccount(Base):
    __tablename__ = "erp_bank_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Resolution key for incoming statement files: (account_no, routing_no).
    account_no: Mapped[str] = mapped_column(String, nullable=False)
    routing_no: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa_expr.true()
    )


class ErpBPartner(Base):
    __tablename__ = "erp_bpartners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa_expr.true()
    )


class ErpBPBankAccount(Base):
    __tablename__ = "erp_bp_bank_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bpartner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("erp_bpartners.id"), nullable=False
    )
    iban: Mapped[str | None] = mapped_column(String, nullable=True)


# ---------------------------
# Documents: invoices and payments
# ---------------------------


class ErpInvoice(Base):
    __tablename__ = "erp_invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_no: Mapped[str] = mapped_column(String, nullable=False, index=True)
    bpartner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("erp_bpartners.id"), nullable=False
    )
    # True for sales (customer) invoices, False for vendor invoices.
    is_sotrx: Mapped[bool] = mapped_column(Boolean, nullable=False)
    doc_status: Mapped[str] = mapped_column(String(2), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(_AMOUNT, nullable=False)
    # Unpaid remainder; payments created from statement lines reduce it.
    open_amt: Mapped[Decimal] = mapped_column(_AMOUNT, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa_expr.true()
    )

    __table_args__ = (CheckConstraint(_DOC_STATUS_CHECK, name="ck_erp_invoice_doc_status"),)


class ErpPayment(Base):
    __tablename__ = "erp_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_no: Mapped[str | None] = mapped_column(String, nullable=True)
    bpartner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("erp_bpartners.id"), nullable=False
    )
    invoice_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("erp_invoices.id"), nullable=True
    )
    is_receipt: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_reconciled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa_expr.false()
    )
    doc_status: Mapped[str] = mapped_column(String(2), nullable=False)
    pay_amt: Mapped[Decimal] = mapped_column(_AMOUNT, nullable=False)
    date_trx: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (CheckConstraint(_DOC_STATUS_CHECK, name="ck_erp_payment_doc_status"),)


# ---------------------------
# Staging: erp_statement_imports
# ---------------------------


class ErpStatementImport(Base):
    """One staged statement row as loaded from a bank export file.

    ``line`` carries the exporter's transaction id and is the duplicate key
    together with ``bank_account_id``.
    """

    __tablename__ = "erp_statement_imports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bank_account_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("erp_bank_accounts.id"), nullable=True
    )
    bank_account_no: Mapped[str | None] = mapped_column(String, nullable=True)
    routing_no: Mapped[str | None] = mapped_column(String, nullable=True)
    line: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)
    eft_trx_id: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_payee_account: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_check_no: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_payee: Mapped[str | None] = mapped_column(String, nullable=True)
    stmt_amt: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)
    trx_amt: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)
    statement_line_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    valuta_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    eft_memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    trx_type: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_trx_type: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    reference_no: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_statement_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    line_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    checksum: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    # Statement header values copied onto every staged row of one load.
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    statement_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_imported: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa_expr.false()
    )
    bank_statement_line_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("erp_bank_statement_lines.id"), nullable=True
    )


# ---------------------------
# Posted: erp_bank_statements / erp_bank_statement_lines
# ---------------------------


class ErpBankStatement(Base):
    __tablename__ = "erp_bank_statements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bank_account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("erp_bank_accounts.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    statement_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    doc_status: Mapped[str] = mapped_column(
        String(2), nullable=False, default="DR", server_default=text("'DR'")
    )

    __table_args__ = (CheckConstraint(_DOC_STATUS_CHECK, name="ck_erp_statement_doc_status"),)


class ErpBankStatementLine(Base):
    __tablename__ = "erp_bank_statement_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bank_statement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("erp_bank_statements.id"), nullable=False, index=True
    )
    line: Mapped[int] = mapped_column(BigInteger, nullable=False)
    trx_amt: Mapped[Decimal] = mapped_column(_AMOUNT, nullable=False)
    stmt_amt: Mapped[Decimal] = mapped_column(_AMOUNT, nullable=False)
    statement_line_date: Mapped[date] = mapped_column(Date, nullable=False)
    valuta_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Free text mutated by the match pass (outcome note prefix).
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    eft_memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    eft_trx_id: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_payee: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_payee_account: Mapped[str | None] = mapped_column(String, nullable=True)
    eft_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    reference_no: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("erp_payments.id"), nullable=True
    )
    invoice_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("erp_invoices.id"), nullable=True
    )
    bpartner_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("erp_bpartners.id"), nullable=True
    )


__all__ = [
    "Base",
    "DOC_STATUS_CLOSED",
    "DOC_STATUS_COMPLETED",
    "DOC_STATUS_DRAFTED",
    "DOC_STATUS_IN_PROGRESS",
    "DOC_STATUS_VOIDED",
    "DOC_STATUS_WAITING_PAYMENT",
    "ErpBPartner",
    "ErpBPBankAccount",
    "ErpBankAccount",
    "ErpBankStatement",
    "ErpBankStatementLine",
    "ErpInvoice",
    "ErpPayment",
    "ErpStatementImport",
]
