from datetime import date, datetime
from decimal import Decimal

import pytest

from greep.models.enums import ExpenseType
from greep.models.expense import Expense
from greep.services.payouts import (
    investor_expense_total,
    investor_month_expenses,
    preview_net_amount,
    preview_payout,
)
from greep.utils.decimal_math import money


def _expense(expense_id: str, amount: str, day, *, user_id: str = "inv-1", kind: ExpenseType = ExpenseType.investor) -> Expense:
    return Expense(
        id=expense_id,
        type=kind,
        amount=money(amount),
        date=day,
        description="Maintenance",
        paid_by="company",
        user_id=user_id,
    )


def test_net_amount_subtracts_month_expenses() -> None:
    expenses = [_expense("e1", "1500", date(2024, 3, 10)), _expense("e2", "500", date(2024, 3, 22))]

    preview = preview_payout(expenses, investor_id="inv-1", month="2024-03", gross_amount="15000")

    assert preview.total_expenses == money(2000)
    assert preview.net_amount == money(13000)
    assert preview.expense_count == 2
    assert preview.gross_amount == Decimal("15000.00")


def test_net_amount_is_not_floored_at_zero() -> None:
    expenses = [_expense("e1", "16000", date(2024, 3, 5))]

    preview = preview_payout(expenses, investor_id="inv-1", month="2024-03", gross_amount=15000)

    assert preview.net_amount == money(-1000)


def test_month_range_includes_first_and_last_day() -> None:
    expenses = [
        _expense("first", "10", date(2024, 2, 1)),
        _expense("leap", "20", date(2024, 2, 29)),
        _expense("before", "40", date(2024, 1, 31)),
        _expense("after", "80", date(2024, 3, 1)),
    ]

    matched = investor_month_expenses(expenses, "inv-1", "2024-02")

    assert [expense.id for expense in matched] == ["first", "leap"]
    assert investor_expense_total(expenses, "inv-1", "2024-02") == money(30)


def test_other_investors_and_other_expense_types_are_ignored() -> None:
    expenses = [
        _expense("mine", "100", date(2024, 3, 3)),
        _expense("theirs", "200", date(2024, 3, 3), user_id="inv-2"),
        _expense("driver", "300", date(2024, 3, 3), kind=ExpenseType.driver),
        _expense("admin", "400", date(2024, 3, 3), kind=ExpenseType.admin),
    ]

    preview = preview_payout(expenses, investor_id="inv-1", month="2024-03", gross_amount="1000")

    assert preview.total_expenses == money(100)
    assert preview.net_amount == money(900)


def test_time_component_does_not_push_expense_out_of_month() -> None:
    expenses = [_expense("late", "75", datetime(2024, 3, 31, 23, 30))]

    assert investor_expense_total(expenses, "inv-1", "2024-03") == money(75)


def test_no_expenses_leaves_gross_untouched() -> None:
    preview = preview_payout([], investor_id="inv-1", month="2024-03", gross_amount="1234.50")

    assert preview.total_expenses == money(0)
    assert preview.net_amount == money("1234.50")
    assert preview_net_amount("100", money(0)) == money(100)


def test_malformed_month_is_rejected() -> None:
    with pytest.raises(ValueError):
        preview_payout([], investor_id="inv-1", month="2024-13", gross_amount=10)
