from collections.abc import Iterable
from decimal import Decimal, ROUND_HALF_UP


MONEY_QUANT = Decimal("0.01")
SHARE_QUANT = Decimal("0.1")


def money(value: Decimal | int | float | str | None) -> Decimal:
    if value is None or value == "":
        value = 0
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal | int | float | str | None]) -> Decimal:
    total = money(0)
    for value in values:
        total = money(total + money(value))
    return total


def share_pct(part: Decimal, whole: Decimal) -> Decimal:
    if money(part) <= 0 or money(whole) <= 0:
        return Decimal("0.0")
    return ((money(part) / money(whole)) * Decimal("100")).quantize(SHARE_QUANT, rounding=ROUND_HALF_UP)
