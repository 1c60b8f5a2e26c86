from decimal import Decimal

from pydantic import BaseModel


class DriverPerformanceOut(BaseModel):
    driver_id: str
    driver_name: str
    tier: str
    payment_count: int
    total_earned: Decimal


class ExpenseBreakdownOut(BaseModel):
    type: str
    item_count: int
    total_amount: Decimal
    share_pct: Decimal


class MonthlyReportOut(BaseModel):
    month: str
    monthly_revenue: Decimal
    monthly_expense_total: Decimal
    monthly_payout_total: Decimal
    monthly_profit: Decimal
    payment_rows: list[dict]
    expense_rows: list[dict]
    payout_rows: list[dict]
    summary_rows: list[dict]
    driver_performance: list[DriverPerformanceOut]
    expense_breakdown: list[ExpenseBreakdownOut]
