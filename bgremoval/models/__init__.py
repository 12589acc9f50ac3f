from bgremoval.models.user import User
from bgremoval.models.transaction import Transaction
from bgremoval.models.audit_log import AuditLog

__all__ = [
    "User",
    "Transaction",
    "AuditLog",
]
