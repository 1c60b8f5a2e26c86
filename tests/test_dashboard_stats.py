from datetime import date, datetime, timezone
from decimal import Decimal

from greep.models.enums import ExpenseType, PayoutStatus, UserRole
from greep.models.expense import Expense
from greep.models.payment import DriverPayment
from greep.models.payout import InvestorPayout
from greep.models.user import User
from greep.services.dashboard import compute_dashboard_stats, pending_payout_rows, recent_payments
from greep.utils.decimal_math import money


FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _user(user_id: str, role: UserRole, *, tier: str = "A", active: bool = True, name: str | None = None) -> User:
    return User(
        id=user_id,
        name=name or user_id.title(),
        email=f"{user_id}@test.com",
        role=role,
        tier=tier,
        active=active,
        can_login=False,
    )


def _payment(payment_id: str, driver_id: str, week_start: date, amount: str) -> DriverPayment:
    return DriverPayment(
        id=payment_id,
        driver_id=driver_id,
        week_start_date=week_start,
        amount_paid=money(amount),
        balance_carryover=money(0),
        notes=None,
    )


def test_dashboard_scenario_totals() -> None:
    payments = [_payment("p1", "d1", date(2024, 3, 4), "1000")]
    expenses = [
        Expense(
            id="e1",
            type=ExpenseType.admin,
            amount=money("200"),
            date=date(2024, 3, 10),
            description="Rent",
            paid_by="company",
        )
    ]
    payouts = [
        InvestorPayout(
            id="o1",
            investor_id="i1",
            month="2024-03",
            gross_amount=money("300"),
            total_expenses=money("0"),
            net_amount=money("300"),
            status=PayoutStatus.pending,
        )
    ]

    stats = compute_dashboard_stats([], payments, expenses, payouts, now=FIXED_NOW)

    assert stats.total_revenue == money("1000")
    assert stats.total_expenses == money("200")
    assert stats.total_payouts == money("300")
    assert stats.net_profit == money("500")
    assert stats.pending_payouts == 1
    assert stats.current_month_revenue == money("1000")


def test_empty_collections_yield_zero_stats() -> None:
    stats = compute_dashboard_stats([], [], [], [], now=FIXED_NOW)
    assert stats.total_revenue == money(0)
    assert stats.total_expenses == money(0)
    assert stats.total_payouts == money(0)
    assert stats.net_profit == money(0)
    assert stats.active_drivers == 0
    assert stats.active_investors == 0
    assert stats.pending_payouts == 0
    assert stats.current_month_revenue == money(0)


def test_active_counts_ignore_inactive_and_other_roles() -> None:
    users = [
        _user("d1", UserRole.driver),
        _user("d2", UserRole.driver),
        _user("i1", UserRole.investor, tier="X"),
        _user("admin", UserRole.admin),
    ]
    baseline = compute_dashboard_stats(users, [], [], [], now=FIXED_NOW)
    assert baseline.active_drivers == 2
    assert baseline.active_investors == 1

    users.append(_user("d3", UserRole.driver, active=False))
    users.append(_user("i2", UserRole.investor, tier="Y", active=False))
    with_inactive = compute_dashboard_stats(users, [], [], [], now=FIXED_NOW)
    assert with_inactive.active_drivers == 2
    assert with_inactive.active_investors == 1

    users[0].active = False
    toggled = compute_dashboard_stats(users, [], [], [], now=FIXED_NOW)
    assert toggled.active_drivers == 1


def test_current_month_revenue_uses_injected_clock() -> None:
    payments = [
        _payment("p1", "d1", date(2024, 2, 26), "500"),
        _payment("p2", "d1", date(2024, 3, 4), "760"),
        _payment("p3", "d1", date(2024, 3, 25), "800"),
        _payment("p4", "d1", date(2024, 4, 1), "700"),
    ]
    march = compute_dashboard_stats([], payments, [], [], now=FIXED_NOW)
    april = compute_dashboard_stats([], payments, [], [], now=datetime(2024, 4, 2, tzinfo=timezone.utc))

    assert march.current_month_revenue == money("1560")
    assert april.current_month_revenue == money("700")
    assert march.total_revenue == money("2760")


def test_net_profit_may_go_negative_and_stats_are_idempotent() -> None:
    payments = [_payment("p1", "d1", date(2024, 3, 4), "100.10")]
    expenses = [
        Expense(id="e1", type=ExpenseType.driver, amount=money("80.20"), date=date(2024, 3, 5), description="Fuel", paid_by="x", user_id="d1"),
        Expense(id="e2", type=ExpenseType.admin, amount=money("40.30"), date=date(2024, 3, 6), description="Ink", paid_by="x"),
    ]
    first = compute_dashboard_stats([], payments, expenses, [], now=FIXED_NOW)
    second = compute_dashboard_stats([], payments, expenses, [], now=FIXED_NOW)

    assert first == second
    assert first.net_profit == money("-20.40")
    assert first.net_profit == first.total_revenue - first.total_expenses - first.total_payouts


def test_recent_payments_latest_first_with_unknown_driver_fallback() -> None:
    users = [_user("d1", UserRole.driver, name="Mehmet")]
    payments = [
        _payment(f"p{index}", "d1" if index % 2 else "ghost", date(2024, 3, index), "100")
        for index in range(1, 8)
    ]

    rows = recent_payments(users, payments, limit=5)

    assert [row.payment_id for row in rows] == ["p7", "p6", "p5", "p4", "p3"]
    assert rows[0].driver_name == "Mehmet"
    assert rows[1].driver_name == "Unknown Driver"


def test_pending_payout_rows_resolve_investor_names() -> None:
    users = [_user("i1", UserRole.investor, tier="X", name="Cem")]
    payouts = [
        InvestorPayout(id="o1", investor_id="i1", month="2024-03", gross_amount=money(10), total_expenses=money(0), net_amount=money(10), status=PayoutStatus.pending),
        InvestorPayout(id="o2", investor_id="gone", month="2024-03", gross_amount=money(5), total_expenses=money(0), net_amount=money(5), status=PayoutStatus.pending),
        InvestorPayout(id="o3", investor_id="i1", month="2024-02", gross_amount=money(7), total_expenses=money(0), net_amount=money(7), status=PayoutStatus.paid),
    ]

    rows = pending_payout_rows(users, payouts)

    assert [row.payout_id for row in rows] == ["o1", "o2"]
    assert rows[0].investor_name == "Cem"
    assert rows[1].investor_name == "Unknown Investor"
    assert rows[0].net_amount == Decimal("10.00")
