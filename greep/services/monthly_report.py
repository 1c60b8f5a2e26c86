from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from greep.models.enums import ExpenseType, UserRole, enum_value
from greep.utils.dates import iso_text
from greep.utils.decimal_math import money, money_sum, share_pct


UNKNOWN = "Unknown"

PAYMENT_COLUMNS = ["driver_name", "driver_tier", "week_start", "amount", "notes"]
EXPENSE_COLUMNS = ["date", "type", "description", "amount", "notes"]
PAYOUT_COLUMNS = [
    "investor_name",
    "investor_tier",
    "month",
    "gross_amount",
    "total_expenses",
    "net_amount",
    "status",
    "notes",
]
SUMMARY_COLUMNS = ["category", "amount"]

REPORT_COLUMNS = {
    "payments": PAYMENT_COLUMNS,
    "expenses": EXPENSE_COLUMNS,
    "payouts": PAYOUT_COLUMNS,
    "summary": SUMMARY_COLUMNS,
}


@dataclass(frozen=True)
class DriverPerformance:
    driver_id: str
    driver_name: str
    tier: str
    payment_count: int
    total_earned: Decimal


@dataclass(frozen=True)
class ExpenseBreakdown:
    type: str
    item_count: int
    total_amount: Decimal
    share_pct: Decimal


@dataclass
class MonthlyReport:
    month: str
    monthly_revenue: Decimal
    monthly_expense_total: Decimal
    monthly_payout_total: Decimal
    monthly_profit: Decimal
    payment_rows: list[dict] = field(default_factory=list)
    expense_rows: list[dict] = field(default_factory=list)
    payout_rows: list[dict] = field(default_factory=list)
    summary_rows: list[dict] = field(default_factory=list)
    driver_performance: list[DriverPerformance] = field(default_factory=list)
    expense_breakdown: list[ExpenseBreakdown] = field(default_factory=list)

    def rows_for(self, category: str) -> list[dict]:
        return {
            "payments": self.payment_rows,
            "expenses": self.expense_rows,
            "payouts": self.payout_rows,
            "summary": self.summary_rows,
        }[category]


def filter_payments_for_month(payments: Sequence, month: str) -> list:
    return [payment for payment in payments if iso_text(payment.week_start_date).startswith(month)]


def filter_expenses_for_month(expenses: Sequence, month: str) -> list:
    return [expense for expense in expenses if iso_text(expense.date).startswith(month)]


def filter_payouts_for_month(payouts: Sequence, month: str) -> list:
    return [payout for payout in payouts if payout.month == month]


def _users_by_id(users: Sequence) -> dict:
    return {str(user.id): user for user in users}


def payment_rows(users: Sequence, payments: Sequence) -> list[dict]:
    lookup = _users_by_id(users)
    rows = []
    for payment in payments:
        driver = lookup.get(str(payment.driver_id))
        rows.append(
            {
                "driver_name": (driver.name if driver else None) or UNKNOWN,
                "driver_tier": (driver.tier if driver else None) or UNKNOWN,
                "week_start": iso_text(payment.week_start_date),
                "amount": money(payment.amount_paid),
                "notes": payment.notes or "",
            }
        )
    return rows


def expense_rows(expenses: Sequence) -> list[dict]:
    return [
        {
            "date": iso_text(expense.date),
            "type": enum_value(expense.type),
            "description": expense.description,
            "amount": money(expense.amount),
            "notes": expense.notes or "",
        }
        for expense in expenses
    ]


def payout_rows(users: Sequence, payouts: Sequence) -> list[dict]:
    lookup = _users_by_id(users)
    rows = []
    for payout in payouts:
        investor = lookup.get(str(payout.investor_id))
        rows.append(
            {
                "investor_name": (investor.name if investor else None) or UNKNOWN,
                "investor_tier": (investor.tier if investor else None) or UNKNOWN,
                "month": payout.month,
                "gross_amount": money(payout.gross_amount),
                "total_expenses": money(payout.total_expenses),
                "net_amount": money(payout.net_amount),
                "status": enum_value(payout.status),
                "notes": payout.notes or "",
            }
        )
    return rows


def driver_performance(users: Sequence, month_payments: Sequence) -> list[DriverPerformance]:
    rows = []
    for user in users:
        if enum_value(user.role) != UserRole.driver.value or not user.active:
            continue
        own = [payment for payment in month_payments if str(payment.driver_id) == str(user.id)]
        rows.append(
            DriverPerformance(
                driver_id=str(user.id),
                driver_name=user.name,
                tier=user.tier,
                payment_count=len(own),
                total_earned=money_sum(payment.amount_paid for payment in own),
            )
        )
    return rows


def expense_breakdown(month_expenses: Sequence, month_total: Decimal) -> list[ExpenseBreakdown]:
    rows = []
    for expense_type in ExpenseType:
        typed = [expense for expense in month_expenses if enum_value(expense.type) == expense_type.value]
        total = money_sum(expense.amount for expense in typed)
        rows.append(
            ExpenseBreakdown(
                type=expense_type.value,
                item_count=len(typed),
                total_amount=total,
                share_pct=share_pct(total, month_total),
            )
        )
    return rows


def build_monthly_report(
    month: str,
    users: Sequence,
    payments: Sequence,
    expenses: Sequence,
    payouts: Sequence,
) -> MonthlyReport:
    month_payments = filter_payments_for_month(payments, month)
    month_expenses = filter_expenses_for_month(expenses, month)
    month_payouts = filter_payouts_for_month(payouts, month)

    revenue = money_sum(payment.amount_paid for payment in month_payments)
    expense_total = money_sum(expense.amount for expense in month_expenses)
    payout_total = money_sum(payout.net_amount for payout in month_payouts)
    profit = money(revenue - expense_total - payout_total)

    return MonthlyReport(
        month=month,
        monthly_revenue=revenue,
        monthly_expense_total=expense_total,
        monthly_payout_total=payout_total,
        monthly_profit=profit,
        payment_rows=payment_rows(users, month_payments),
        expense_rows=expense_rows(month_expenses),
        payout_rows=payout_rows(users, month_payouts),
        summary_rows=[
            {"category": "Revenue", "amount": revenue},
            {"category": "Expenses", "amount": expense_total},
            {"category": "Payouts", "amount": payout_total},
            {"category": "Profit", "amount": profit},
        ],
        driver_performance=driver_performance(users, month_payments),
        expense_breakdown=expense_breakdown(month_expenses, expense_total),
    )


BACKUP_COLUMNS = {
    "users": ["id", "name", "email", "role", "tier", "active", "created_at"],
    "payments": ["id", "driver_name", "week_start", "amount", "notes"],
    "expenses": ["id", "date", "type", "description", "amount", "notes"],
    "payouts": [
        "id",
        "investor_name",
        "month",
        "gross_amount",
        "total_expenses",
        "net_amount",
        "status",
        "notes",
    ],
}


def backup_rows(
    users: Sequence,
    payments: Sequence,
    expenses: Sequence,
    payouts: Sequence,
) -> dict[str, list[dict]]:
    """Whole-table projections for the backup export."""
    lookup = _users_by_id(users)

    def _name(user_id: object) -> str:
        user = lookup.get(str(user_id))
        return (user.name if user else None) or UNKNOWN

    return {
        "users": [
            {
                "id": str(user.id),
                "name": user.name,
                "email": user.email,
                "role": enum_value(user.role),
                "tier": user.tier,
                "active": "Yes" if user.active else "No",
                "created_at": iso_text(user.created_at),
            }
            for user in users
        ],
        "payments": [
            {
                "id": str(payment.id),
                "driver_name": _name(payment.driver_id),
                "week_start": iso_text(payment.week_start_date),
                "amount": money(payment.amount_paid),
                "notes": payment.notes or "",
            }
            for payment in payments
        ],
        "expenses": [
            {"id": str(expense.id), **row}
            for expense, row in zip(expenses, expense_rows(expenses))
        ],
        "payouts": [
            {
                "id": str(payout.id),
                "investor_name": _name(payout.investor_id),
                "month": payout.month,
                "gross_amount": money(payout.gross_amount),
                "total_expenses": money(payout.total_expenses),
                "net_amount": money(payout.net_amount),
                "status": enum_value(payout.status),
                "notes": payout.notes or "",
            }
            for payout in payouts
        ],
    }
