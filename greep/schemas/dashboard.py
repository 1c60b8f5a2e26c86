from datetime import date
from decimal import Decimal

from pydantic import BaseModel


class DashboardStatsOut(BaseModel):
    total_revenue: Decimal
    total_expenses: Decimal
    total_payouts: Decimal
    net_profit: Decimal
    active_drivers: int
    active_investors: int
    pending_payouts: int
    current_month_revenue: Decimal


class RecentPaymentOut(BaseModel):
    payment_id: str
    driver_id: str
    driver_name: str
    week_start_date: date
    amount_paid: Decimal


class PendingPayoutOut(BaseModel):
    payout_id: str
    investor_id: str
    investor_name: str
    month: str
    net_amount: Decimal


class DashboardOut(BaseModel):
    stats: DashboardStatsOut
    recent_payments: list[RecentPaymentOut]
    pending_payouts: list[PendingPayoutOut]
