from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select

from greep.db.session import SessionLocal
from greep.models.enums import ExpenseType, PayoutStatus, UserRole
from greep.models.expense import Expense
from greep.models.payment import DriverPayment
from greep.models.payout import InvestorPayout
from greep.models.user import User
from greep.services.carryover import compute_balance_carryover
from greep.services.payouts import preview_payout
from greep.services.seed import ensure_default_admin
from greep.utils.dates import month_key
from greep.utils.decimal_math import money


DRIVERS = [
    ("Mehmet Kaya", "A"),
    ("Ayse Demir", "B"),
    ("Emre Yilmaz", "A"),
    ("Zeynep Arslan", "B"),
]
INVESTORS = [
    ("Cem Ozturk", "X"),
    ("Elif Sahin", "Y"),
]


def _email(name: str) -> str:
    return f"{name.lower().replace(' ', '.')}@greep.io"


def _get_or_create_user(db, *, name: str, role: UserRole, tier: str) -> User:
    user = db.scalar(select(User).where(User.email == _email(name)))
    if user is not None:
        return user
    user = User(name=name, email=_email(name), role=role, tier=tier, active=True, can_login=False)
    db.add(user)
    db.flush()
    return user


def _mondays(start: date, weeks: int) -> list[date]:
    first = start - timedelta(days=start.weekday())
    return [first + timedelta(weeks=offset) for offset in range(weeks)]


def _seed_payments(db, drivers: list[User], admin: User, weeks: list[date]) -> None:
    for index, driver in enumerate(drivers):
        for week_index, week_start in enumerate(weeks):
            exists = db.scalar(
                select(DriverPayment.id).where(
                    DriverPayment.driver_id == driver.id,
                    DriverPayment.week_start_date == week_start,
                )
            )
            if exists is not None:
                continue
            amount = money(700 + ((index * 7 + week_index * 13) % 12) * 10)
            db.add(
                DriverPayment(
                    driver_id=driver.id,
                    week_start_date=week_start,
                    amount_paid=amount,
                    balance_carryover=compute_balance_carryover(driver.tier, amount),
                    created_by=admin.id,
                )
            )


def _seed_expenses(db, drivers: list[User], investors: list[User], admin: User, months: list[date]) -> None:
    if db.scalar(select(Expense.id).limit(1)) is not None:
        return
    for month_start in months:
        db.add(
            Expense(
                type=ExpenseType.admin,
                amount=money(1500),
                date=month_start + timedelta(days=2),
                description="Office rent",
                paid_by="company",
                created_by=admin.id,
            )
        )
        for driver in drivers[:2]:
            db.add(
                Expense(
                    type=ExpenseType.driver,
                    amount=money(250),
                    date=month_start + timedelta(days=9),
                    description="Vehicle service",
                    paid_by="company",
                    user_id=driver.id,
                    created_by=admin.id,
                )
            )
        for investor in investors:
            db.add(
                Expense(
                    type=ExpenseType.investor,
                    amount=money(2000),
                    date=month_start + timedelta(days=14),
                    description="Insurance premium",
                    paid_by="company",
                    user_id=investor.id,
                    created_by=admin.id,
                )
            )
    db.flush()


def _seed_payouts(db, investors: list[User], admin: User, months: list[date]) -> None:
    expenses = list(db.scalars(select(Expense)).all())
    for investor in investors:
        gross = Decimal("15000") if investor.tier == "X" else Decimal("12000")
        for month_start in months:
            month = month_key(month_start)
            exists = db.scalar(
                select(InvestorPayout.id).where(
                    InvestorPayout.investor_id == investor.id,
                    InvestorPayout.month == month,
                )
            )
            if exists is not None:
                continue
            preview = preview_payout(expenses, investor_id=investor.id, month=month, gross_amount=gross)
            db.add(
                InvestorPayout(
                    investor_id=investor.id,
                    month=month,
                    gross_amount=preview.gross_amount,
                    total_expenses=preview.total_expenses,
                    net_amount=preview.net_amount,
                    status=PayoutStatus.paid if month_start != months[-1] else PayoutStatus.pending,
                    created_by=admin.id,
                )
            )


def main() -> None:
    today = date.today()
    months = []
    cursor = date(today.year, today.month, 1)
    for _ in range(3):
        months.insert(0, cursor)
        cursor = (cursor - timedelta(days=1)).replace(day=1)
    weeks = _mondays(months[0], 13)

    with SessionLocal() as db:
        admin = ensure_default_admin(db)
        drivers = [_get_or_create_user(db, name=name, role=UserRole.driver, tier=tier) for name, tier in DRIVERS]
        investors = [
            _get_or_create_user(db, name=name, role=UserRole.investor, tier=tier) for name, tier in INVESTORS
        ]
        _seed_payments(db, drivers, admin, weeks)
        _seed_expenses(db, drivers, investors, admin, months)
        _seed_payouts(db, investors, admin, months)
        db.commit()
        print("Synthetic data seeded successfully.")


if __name__ == "__main__":
    main()
