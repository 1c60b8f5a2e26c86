from greep.models.audit import AuditLog
from greep.models.enums import DriverTier, ExpenseType, InvestorTier, PayoutStatus, UserRole
from greep.models.expense import Expense
from greep.models.payment import DriverPayment
from greep.models.payout import InvestorPayout
from greep.models.user import User

__all__ = [
    "AuditLog",
    "DriverTier",
    "ExpenseType",
    "InvestorTier",
    "PayoutStatus",
    "UserRole",
    "Expense",
    "DriverPayment",
    "InvestorPayout",
    "User",
]
