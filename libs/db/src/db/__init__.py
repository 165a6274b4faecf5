"""db: shared database library (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``db.models.erp`` (re-exported for convenience)
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from .models.erp import (
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

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "ErpBankAccount",
    "ErpBankStatement",
    "ErpBankStatementLine",
    "ErpBPartner",
    "ErpBPBankAccount",
    "ErpInvoice",
    "ErpPayment",
    "ErpStatementImport",
]
