from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from greep.models.enums import ExpenseType, enum_value
from greep.utils.dates import month_bounds, to_date
from greep.utils.decimal_math import money, money_sum


@dataclass(frozen=True)
class PayoutPreview:
    investor_id: str
    month: str
    gross_amount: Decimal
    total_expenses: Decimal
    net_amount: Decimal
    expense_count: int


def investor_month_expenses(expenses: Iterable, investor_id: str, month: str) -> list:
    """Investor-type expenses attributed to ``investor_id`` dated inside ``month``.

    The month is a closed date range from its first to its last day; expense
    dates are compared as calendar dates, so a time component never pushes a
    record out of the month.
    """
    first_day, last_day = month_bounds(month)
    matched = []
    for expense in expenses:
        if enum_value(expense.type) != ExpenseType.investor.value:
            continue
        if expense.user_id is None or str(expense.user_id) != str(investor_id):
            continue
        expense_date = to_date(expense.date)
        if expense_date is None:
            continue
        if first_day <= expense_date <= last_day:
            matched.append(expense)
    return matched


def investor_expense_total(expenses: Iterable, investor_id: str, month: str) -> Decimal:
    return money_sum(expense.amount for expense in investor_month_expenses(expenses, investor_id, month))


def preview_net_amount(gross_amount: Decimal | int | float | str, total_expenses: Decimal) -> Decimal:
    # expenses may exceed the gross amount; the result is not floored
    return money(money(gross_amount) - money(total_expenses))


def preview_payout(
    expenses: Iterable,
    *,
    investor_id: str,
    month: str,
    gross_amount: Decimal | int | float | str,
) -> PayoutPreview:
    matched = investor_month_expenses(expenses, investor_id, month)
    total_expenses = money_sum(expense.amount for expense in matched)
    return PayoutPreview(
        investor_id=investor_id,
        month=month,
        gross_amount=money(gross_amount),
        total_expenses=total_expenses,
        net_amount=preview_net_amount(gross_amount, total_expenses),
        expense_count=len(matched),
    )
