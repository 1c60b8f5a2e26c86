from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from greep.core.config import get_settings
from greep.utils.decimal_math import money


def expected_weekly_amount(tier: str | None, schedule: Mapping[str, Decimal] | None = None) -> Decimal:
    """Weekly amount a driver of ``tier`` is expected to pay; 0 for tiers outside the schedule."""
    if schedule is None:
        schedule = get_settings().driver_tier_schedule
    if tier is None:
        return money(0)
    return money(schedule.get(str(tier), 0))


def compute_balance_carryover(
    tier: str | None,
    amount_paid: Decimal | int | float | str,
    schedule: Mapping[str, Decimal] | None = None,
) -> Decimal:
    return money(expected_weekly_amount(tier, schedule) - money(amount_paid))
