"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ERP-side tables used by ``hibiscus_recon``: bank
accounts, partners, invoices, payments, the statement staging table and
posted bank statements.
"""

from .erp import (
    Base,
    ErpBankAccount,
    ErpBankStatement,
    ErpBankStatementLine,
    ErpBPartner,
    ErpBPBankAccount,
    ErpInvoice,
    ErpPayment,
    ErpStatementImport,
)

__all__ = [
    "Base",
    "ErpBankAccount",
    "ErpBankStatement",
    "ErpBankStatementLine",
    "ErpBPartner",
    "ErpBPBankAccount",
    "ErpInvoice",
    "ErpPayment",
    "ErpStatementImport",
]
