from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from greep.db.base import Base
from greep.models.expense import Expense
from greep.models.payment import DriverPayment
from greep.models.payout import InvestorPayout
from greep.models.user import User
from greep.utils.dates import month_key, to_date


ENTITY_MODELS: dict[str, type[Base]] = {
    "users": User,
    "payments": DriverPayment,
    "expenses": Expense,
    "payouts": InvestorPayout,
}

ENTITY_LABELS = {
    "users": "User",
    "payments": "Payment",
    "expenses": "Expense",
    "payouts": "Payout",
}

# column each listing filters on when a date range is requested
DATE_COLUMNS = {
    "payments": "week_start_date",
    "expenses": "date",
    "payouts": "month",
    "users": "created_at",
}


@dataclass
class Collections:
    users: list[User] = field(default_factory=list)
    payments: list[DriverPayment] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    payouts: list[InvestorPayout] = field(default_factory=list)


@dataclass(frozen=True)
class RecordPage:
    items: list
    total_count: int
    page_count: int
    page: int
    page_size: int


def _model(entity_type: str) -> type[Base]:
    try:
        return ENTITY_MODELS[entity_type]
    except KeyError as exc:
        raise ValueError(f"Unknown entity type {entity_type!r}.") from exc


def snapshot(record: Base) -> dict[str, Any]:
    """JSON-safe column values of a record, for audit trails."""
    state: dict[str, Any] = {}
    for column in record.__table__.columns:
        value = getattr(record, column.key)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, date):
            value = value.isoformat()
        state[column.key] = value
    return state


def list_records(db: Session, entity_type: str) -> list:
    model = _model(entity_type)
    return list(db.scalars(select(model).order_by(model.created_at, model.id)).all())


def get_record_or_404(db: Session, entity_type: str, record_id: str):
    record = db.get(_model(entity_type), record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{ENTITY_LABELS[entity_type]} not found.",
        )
    return record


def insert_record(db: Session, entity_type: str, values: dict[str, Any]):
    record = _model(entity_type)(**values)
    db.add(record)
    db.flush()
    return record


def update_record(db: Session, entity_type: str, record_id: str, values: dict[str, Any]):
    record = get_record_or_404(db, entity_type, record_id)
    for key, value in values.items():
        setattr(record, key, value)
    db.flush()
    return record


def delete_record(db: Session, entity_type: str, record_id: str) -> dict[str, Any]:
    record = get_record_or_404(db, entity_type, record_id)
    before = snapshot(record)
    db.delete(record)
    db.flush()
    return before


def load_collections(db: Session) -> Collections:
    return Collections(
        users=list_records(db, "users"),
        payments=list_records(db, "payments"),
        expenses=list_records(db, "expenses"),
        payouts=list_records(db, "payouts"),
    )


def paginate_records(
    db: Session,
    entity_type: str,
    *,
    page: int = 0,
    page_size: int = 10,
    sort: str | None = None,
    desc: bool = True,
    start: date | str | None = None,
    end: date | str | None = None,
    filters: list | None = None,
) -> RecordPage:
    model = _model(entity_type)
    date_column = getattr(model, DATE_COLUMNS[entity_type])
    sort_key = sort or DATE_COLUMNS[entity_type]
    if sort_key not in model.__table__.columns:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot sort {entity_type} by {sort_key!r}.",
        )

    conditions = list(filters or [])
    if entity_type == "payouts":
        # payouts are month-granular; compare on the YYYY-MM key
        start = month_key(to_date(start)) if start is not None else None
        end = month_key(to_date(end)) if end is not None else None
    if start is not None:
        conditions.append(date_column >= start)
    if end is not None:
        conditions.append(date_column <= end)

    total_count = db.scalar(select(func.count()).select_from(model).where(*conditions)) or 0
    sort_column = getattr(model, sort_key)
    ordering = [sort_column.desc() if desc else sort_column.asc(), model.id]
    items = list(
        db.scalars(
            select(model)
            .where(*conditions)
            .order_by(*ordering)
            .offset(page * page_size)
            .limit(page_size)
        ).all()
    )
    return RecordPage(
        items=items,
        total_count=total_count,
        page_count=math.ceil(total_count / page_size) if page_size else 0,
        page=page,
        page_size=page_size,
    )
