from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from greep.models.enums import PayoutStatus, UserRole, enum_value
from greep.utils.dates import iso_text, month_key
from greep.utils.decimal_math import money, money_sum


UNKNOWN_DRIVER = "Unknown Driver"
UNKNOWN_INVESTOR = "Unknown Investor"


@dataclass(frozen=True)
class DashboardStats:
    total_revenue: Decimal
    total_expenses: Decimal
    total_payouts: Decimal
    net_profit: Decimal
    active_drivers: int
    active_investors: int
    pending_payouts: int
    current_month_revenue: Decimal


@dataclass(frozen=True)
class RecentPaymentRow:
    payment_id: str
    driver_id: str
    driver_name: str
    week_start_date: date
    amount_paid: Decimal


@dataclass(frozen=True)
class PendingPayoutRow:
    payout_id: str
    investor_id: str
    investor_name: str
    month: str
    net_amount: Decimal


def count_active(users: Sequence, role: UserRole) -> int:
    return sum(1 for user in users if enum_value(user.role) == role.value and bool(user.active))


def compute_dashboard_stats(
    users: Sequence,
    payments: Sequence,
    expenses: Sequence,
    payouts: Sequence,
    *,
    now: datetime | None = None,
) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    current_month = month_key(now)

    total_revenue = money_sum(payment.amount_paid for payment in payments)
    total_expenses = money_sum(expense.amount for expense in expenses)
    total_payouts = money_sum(payout.net_amount for payout in payouts)

    return DashboardStats(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        total_payouts=total_payouts,
        net_profit=money(total_revenue - total_expenses - total_payouts),
        active_drivers=count_active(users, UserRole.driver),
        active_investors=count_active(users, UserRole.investor),
        pending_payouts=sum(1 for payout in payouts if enum_value(payout.status) == PayoutStatus.pending.value),
        current_month_revenue=money_sum(
            payment.amount_paid
            for payment in payments
            if iso_text(payment.week_start_date).startswith(current_month)
        ),
    )


def recent_payments(users: Sequence, payments: Sequence, limit: int = 5) -> list[RecentPaymentRow]:
    names = {str(user.id): user.name for user in users}
    latest = list(payments)[-limit:] if limit > 0 else []
    return [
        RecentPaymentRow(
            payment_id=str(payment.id),
            driver_id=str(payment.driver_id),
            driver_name=names.get(str(payment.driver_id)) or UNKNOWN_DRIVER,
            week_start_date=payment.week_start_date,
            amount_paid=money(payment.amount_paid),
        )
        for payment in reversed(latest)
    ]


def pending_payout_rows(users: Sequence, payouts: Sequence) -> list[PendingPayoutRow]:
    names = {str(user.id): user.name for user in users}
    return [
        PendingPayoutRow(
            payout_id=str(payout.id),
            investor_id=str(payout.investor_id),
            investor_name=names.get(str(payout.investor_id)) or UNKNOWN_INVESTOR,
            month=payout.month,
            net_amount=money(payout.net_amount),
        )
        for payout in payouts
        if enum_value(payout.status) == PayoutStatus.pending.value
    ]
