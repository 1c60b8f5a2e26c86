from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from greep.api.deps import get_db, get_operator
from greep.core.config import get_settings
from greep.models.enums import ExpenseType
from greep.models.expense import Expense
from greep.models.user import User
from greep.schemas.common import Page
from greep.schemas.expenses import ExpenseCreateRequest, ExpenseOut, ExpenseUpdateRequest
from greep.services.audit import log_audit
from greep.services.records import (
    delete_record,
    get_record_or_404,
    insert_record,
    paginate_records,
    snapshot,
)
from greep.utils.decimal_math import money


router = APIRouter(prefix="/expenses", tags=["expenses"])

ATTRIBUTED_TYPES = {ExpenseType.driver, ExpenseType.investor}


def _validate_attribution(db: Session, expense_type: ExpenseType, user_id: str | None) -> str | None:
    if expense_type not in ATTRIBUTED_TYPES:
        return None
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{expense_type.value.title()} expenses require user_id.",
        )
    user = db.get(User, user_id)
    if user is None or user.role.value != expense_type.value:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{expense_type.value.title()} not found.",
        )
    return user.id


@router.get("", response_model=Page[ExpenseOut])
def list_expenses(
    page: int = Query(default=0, ge=0),
    page_size: int | None = Query(default=None, ge=1),
    sort: str | None = None,
    desc: bool = True,
    start_date: date | None = None,
    end_date: date | None = None,
    type: ExpenseType | None = None,
    user_id: str | None = None,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> Page[ExpenseOut]:
    settings = get_settings()
    size = min(page_size or settings.default_page_size, settings.max_page_size)
    filters = []
    if type is not None:
        filters.append(Expense.type == type)
    if user_id:
        filters.append(Expense.user_id == user_id)
    result = paginate_records(
        db,
        "expenses",
        page=page,
        page_size=size,
        sort=sort,
        desc=desc,
        start=start_date,
        end=end_date,
        filters=filters,
    )
    return Page[ExpenseOut](
        items=[ExpenseOut.model_validate(item) for item in result.items],
        total_count=result.total_count,
        page_count=result.page_count,
        page=result.page,
        page_size=result.page_size,
    )


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreateRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> Expense:
    user_id = _validate_attribution(db, payload.type, payload.user_id)
    expense = insert_record(
        db,
        "expenses",
        {
            "type": payload.type,
            "amount": money(payload.amount),
            "date": payload.date,
            "description": payload.description,
            "paid_by": payload.paid_by,
            "user_id": user_id,
            "notes": payload.notes,
            "created_by": operator.id,
        },
    )
    log_audit(
        db,
        actor=operator,
        action="expense.create",
        entity_type="expense",
        entity_id=expense.id,
        after_state=snapshot(expense),
    )
    db.commit()
    db.refresh(expense)
    return expense


@router.patch("/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: str,
    payload: ExpenseUpdateRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> Expense:
    expense = get_record_or_404(db, "expenses", expense_id)
    before = snapshot(expense)

    expense_type = payload.type or ExpenseType(expense.type)
    if payload.type is not None or payload.user_id is not None:
        expense.user_id = _validate_attribution(db, expense_type, payload.user_id or expense.user_id)
        expense.type = expense_type
    if payload.amount is not None:
        expense.amount = money(payload.amount)
    if payload.date is not None:
        expense.date = payload.date
    if payload.description is not None:
        expense.description = payload.description
    if payload.paid_by is not None:
        expense.paid_by = payload.paid_by
    if payload.notes is not None:
        expense.notes = payload.notes

    log_audit(
        db,
        actor=operator,
        action="expense.update",
        entity_type="expense",
        entity_id=expense.id,
        before_state=before,
        after_state=snapshot(expense),
    )
    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> None:
    before = delete_record(db, "expenses", expense_id)
    log_audit(
        db,
        actor=operator,
        action="expense.delete",
        entity_type="expense",
        entity_id=expense_id,
        before_state=before,
    )
    db.commit()
    return None
