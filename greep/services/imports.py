from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from greep.models.enums import ExpenseType, PayoutStatus, UserRole, default_tier, tier_allowed
from greep.models.user import User, new_id
from greep.services.records import ENTITY_MODELS, insert_record
from greep.utils.dates import is_month_key, to_date
from greep.utils.decimal_math import money


logger = logging.getLogger("greep.imports")

HEADER_SIGNATURES: list[tuple[str, frozenset[str]]] = [
    ("users", frozenset({"role", "tier", "name"})),
    ("payments", frozenset({"driver_id", "week_start_date", "amount_paid"})),
    ("expenses", frozenset({"date", "description", "amount", "type"})),
    ("payouts", frozenset({"investor_id", "month", "gross_amount"})),
]


@dataclass
class ParsedImport:
    entity_type: str
    rows: list[dict[str, Any]] = field(default_factory=list)
    skipped: int = 0


@dataclass(frozen=True)
class ImportOutcome:
    entity_type: str
    parsed: int
    created: int
    skipped: int
    record_ids: list[str]


class UnknownImportType(ValueError):
    pass


def detect_entity_type(headers: list[str]) -> str:
    header_set = {header.strip().lower() for header in headers if header}
    for entity_type, required in HEADER_SIGNATURES:
        if required <= header_set:
            return entity_type
    return "unknown"


def _text(row: dict, key: str) -> str:
    return (row.get(key) or "").strip()


def _amount(value: str) -> Decimal:
    try:
        return money(value or 0)
    except InvalidOperation:
        return money(0)


def _flag(value: str, default: bool) -> bool:
    value = (value or "").strip().lower()
    if not value:
        return default
    return value in {"true", "1", "yes", "y"}


def _user_row(row: dict) -> dict | None:
    name = _text(row, "name")
    if not name:
        return None
    try:
        role = UserRole(_text(row, "role") or UserRole.driver.value)
    except ValueError:
        return None
    tier = _text(row, "tier").upper() or default_tier(role)
    if not tier_allowed(role, tier):
        return None
    slug = re.sub(r"\s+", ".", name.lower())
    return {
        "id": _text(row, "id") or new_id(),
        "name": name,
        "email": _text(row, "email") or f"{slug}@example.com",
        "role": role,
        "tier": tier,
        "active": _flag(row.get("active", ""), True),
        "can_login": _flag(row.get("can_login", ""), False),
    }


def _payment_row(row: dict) -> dict | None:
    driver_id = _text(row, "driver_id")
    week_start = to_date(_text(row, "week_start_date"))
    if not driver_id or week_start is None:
        return None
    return {
        "id": _text(row, "id") or new_id(),
        "driver_id": driver_id,
        "week_start_date": week_start,
        "amount_paid": _amount(_text(row, "amount_paid")),
        "balance_carryover": _amount(_text(row, "balance_carryover")),
        "notes": _text(row, "notes") or None,
        "created_by": _text(row, "created_by"),
    }


def _expense_row(row: dict) -> dict | None:
    expense_date = to_date(_text(row, "date"))
    description = _text(row, "description")
    if expense_date is None or not description:
        return None
    try:
        expense_type = ExpenseType(_text(row, "type") or ExpenseType.admin.value)
    except ValueError:
        return None
    return {
        "id": _text(row, "id") or new_id(),
        "type": expense_type,
        "amount": _amount(_text(row, "amount")),
        "date": expense_date,
        "description": description,
        "paid_by": _text(row, "paid_by") or "company",
        "user_id": _text(row, "user_id") or None,
        "notes": _text(row, "notes") or None,
        "created_by": _text(row, "created_by"),
    }


def _payout_row(row: dict) -> dict | None:
    investor_id = _text(row, "investor_id")
    month = _text(row, "month")[:7]
    if not investor_id or not is_month_key(month):
        return None
    try:
        payout_status = PayoutStatus(_text(row, "status") or PayoutStatus.pending.value)
    except ValueError:
        payout_status = PayoutStatus.pending
    gross = _amount(_text(row, "gross_amount"))
    # older exports carry the expense figure as "deductions"
    total_expenses = _amount(_text(row, "total_expenses") or _text(row, "deductions"))
    net_text = _text(row, "net_amount")
    return {
        "id": _text(row, "id") or new_id(),
        "investor_id": investor_id,
        "month": month,
        "gross_amount": gross,
        "total_expenses": total_expenses,
        "net_amount": _amount(net_text) if net_text else money(gross - total_expenses),
        "status": payout_status,
        "notes": _text(row, "notes") or None,
        "created_by": _text(row, "created_by"),
    }


ROW_PARSERS = {
    "users": _user_row,
    "payments": _payment_row,
    "expenses": _expense_row,
    "payouts": _payout_row,
}


def parse_csv(content: str) -> ParsedImport:
    reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
    entity_type = detect_entity_type(reader.fieldnames or [])
    if entity_type == "unknown":
        raise UnknownImportType("Could not determine the record type from the CSV headers.")

    parser = ROW_PARSERS[entity_type]
    parsed = ParsedImport(entity_type=entity_type)
    for raw in reader:
        row = {(key or "").strip().lower(): value for key, value in raw.items()}
        values = parser(row)
        if values is None:
            parsed.skipped += 1
            continue
        parsed.rows.append(values)
    return parsed


def import_rows(db: Session, parsed: ParsedImport, *, actor: User) -> ImportOutcome:
    model = ENTITY_MODELS[parsed.entity_type]
    created: list[str] = []
    skipped = parsed.skipped
    known_emails: set[str] = set()
    if parsed.entity_type == "users":
        known_emails = set(db.scalars(select(User.email)).all())

    for values in parsed.rows:
        if db.get(model, values["id"]) is not None:
            skipped += 1
            continue
        if parsed.entity_type == "users":
            if values["email"] in known_emails:
                skipped += 1
                continue
            known_emails.add(values["email"])
        else:
            values["created_by"] = values.get("created_by") or actor.id
        record = insert_record(db, parsed.entity_type, values)
        created.append(record.id)

    logger.info(
        "Imported %s %s rows (%s skipped) for %s",
        len(created),
        parsed.entity_type,
        skipped,
        actor.email,
    )
    return ImportOutcome(
        entity_type=parsed.entity_type,
        parsed=len(parsed.rows),
        created=len(created),
        skipped=skipped,
        record_ids=created,
    )
