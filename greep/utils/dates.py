import calendar
import re
from datetime import date, datetime


MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
_MONTH_RE = re.compile(MONTH_PATTERN)


def iso_text(value: date | datetime | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def to_date(value: date | datetime | str | None) -> date | None:
    """Calendar date of a stored value, dropping any time-of-day component."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def is_month_key(value: str) -> bool:
    return bool(_MONTH_RE.match(value or ""))


def month_key(value: date | datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def month_bounds(month: str) -> tuple[date, date]:
    if not is_month_key(month):
        raise ValueError(f"Month must be formatted YYYY-MM, got {month!r}.")
    year, month_number = (int(part) for part in month.split("-"))
    last_day = calendar.monthrange(year, month_number)[1]
    return date(year, month_number, 1), date(year, month_number, last_day)
