from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from greep.api.deps import get_db, get_operator
from greep.core.config import get_settings
from greep.models.enums import ExpenseType, PayoutStatus, UserRole
from greep.models.expense import Expense
from greep.models.payout import InvestorPayout
from greep.models.user import User
from greep.schemas.common import Page
from greep.schemas.payouts import PayoutCreateRequest, PayoutOut, PayoutPreviewOut, PayoutUpdateRequest
from greep.services.audit import log_audit
from greep.services.payouts import PayoutPreview, preview_payout
from greep.services.records import (
    delete_record,
    get_record_or_404,
    insert_record,
    paginate_records,
    snapshot,
)
from greep.utils.dates import MONTH_PATTERN


router = APIRouter(prefix="/payouts", tags=["payouts"])


def _get_investor(db: Session, investor_id: str) -> User:
    investor = db.get(User, investor_id)
    if investor is None or investor.role != UserRole.investor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Investor not found.")
    return investor


def _compute(db: Session, investor_id: str, month: str, gross_amount: Decimal) -> PayoutPreview:
    candidates = list(
        db.scalars(
            select(Expense).where(
                Expense.type == ExpenseType.investor,
                Expense.user_id == investor_id,
            )
        ).all()
    )
    return preview_payout(candidates, investor_id=investor_id, month=month, gross_amount=gross_amount)


@router.get("", response_model=Page[PayoutOut])
def list_payouts(
    page: int = Query(default=0, ge=0),
    page_size: int | None = Query(default=None, ge=1),
    sort: str | None = None,
    desc: bool = True,
    start_date: date | None = None,
    end_date: date | None = None,
    status_filter: PayoutStatus | None = Query(default=None, alias="status"),
    investor_id: str | None = None,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> Page[PayoutOut]:
    settings = get_settings()
    size = min(page_size or settings.default_page_size, settings.max_page_size)
    filters = []
    if status_filter is not None:
        filters.append(InvestorPayout.status == status_filter)
    if investor_id:
        filters.append(InvestorPayout.investor_id == investor_id)
    result = paginate_records(
        db,
        "payouts",
        page=page,
        page_size=size,
        sort=sort,
        desc=desc,
        start=start_date,
        end=end_date,
        filters=filters,
    )
    return Page[PayoutOut](
        items=[PayoutOut.model_validate(item) for item in result.items],
        total_count=result.total_count,
        page_count=result.page_count,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/preview", response_model=PayoutPreviewOut)
def preview_investor_payout(
    investor_id: str,
    month: str = Query(pattern=MONTH_PATTERN),
    gross_amount: Decimal = Query(ge=0),
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> PayoutPreviewOut:
    investor = _get_investor(db, investor_id)
    preview = _compute(db, investor.id, month, gross_amount)
    return PayoutPreviewOut(
        investor_id=preview.investor_id,
        month=preview.month,
        gross_amount=preview.gross_amount,
        total_expenses=preview.total_expenses,
        net_amount=preview.net_amount,
        expense_count=preview.expense_count,
    )


@router.post("", response_model=PayoutOut, status_code=status.HTTP_201_CREATED)
def create_payout(
    payload: PayoutCreateRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> InvestorPayout:
    investor = _get_investor(db, payload.investor_id)
    preview = _compute(db, investor.id, payload.month, payload.gross_amount)
    payout = insert_record(
        db,
        "payouts",
        {
            "investor_id": investor.id,
            "month": payload.month,
            "gross_amount": preview.gross_amount,
            "total_expenses": preview.total_expenses,
            "net_amount": preview.net_amount,
            "status": payload.status,
            "notes": payload.notes,
            "created_by": operator.id,
        },
    )
    log_audit(
        db,
        actor=operator,
        action="payout.create",
        entity_type="investor_payout",
        entity_id=payout.id,
        after_state=snapshot(payout),
    )
    db.commit()
    db.refresh(payout)
    return payout


@router.patch("/{payout_id}", response_model=PayoutOut)
def update_payout(
    payout_id: str,
    payload: PayoutUpdateRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> InvestorPayout:
    payout = get_record_or_404(db, "payouts", payout_id)
    before = snapshot(payout)

    if payload.investor_id is not None:
        payout.investor_id = _get_investor(db, payload.investor_id).id
    if payload.month is not None:
        payout.month = payload.month
    if payload.gross_amount is not None:
        payout.gross_amount = payload.gross_amount
    if payload.status is not None:
        payout.status = payload.status
    if payload.notes is not None:
        payout.notes = payload.notes

    if payload.investor_id is not None or payload.month is not None or payload.gross_amount is not None:
        preview = _compute(db, payout.investor_id, payout.month, payout.gross_amount)
        payout.gross_amount = preview.gross_amount
        payout.total_expenses = preview.total_expenses
        payout.net_amount = preview.net_amount

    log_audit(
        db,
        actor=operator,
        action="payout.update",
        entity_type="investor_payout",
        entity_id=payout.id,
        before_state=before,
        after_state=snapshot(payout),
    )
    db.commit()
    db.refresh(payout)
    return payout


@router.post("/{payout_id}/toggle-status", response_model=PayoutOut)
def toggle_payout_status(
    payout_id: str,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> InvestorPayout:
    payout = get_record_or_404(db, "payouts", payout_id)
    previous = PayoutStatus(payout.status)
    payout.status = PayoutStatus.paid if previous == PayoutStatus.pending else PayoutStatus.pending
    log_audit(
        db,
        actor=operator,
        action="payout.toggle_status",
        entity_type="investor_payout",
        entity_id=payout.id,
        before_state={"status": previous.value},
        after_state={"status": payout.status.value},
    )
    db.commit()
    db.refresh(payout)
    return payout


@router.delete("/{payout_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payout(
    payout_id: str,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> None:
    before = delete_record(db, "payouts", payout_id)
    log_audit(
        db,
        actor=operator,
        action="payout.delete",
        entity_type="investor_payout",
        entity_id=payout_id,
        before_state=before,
    )
    db.commit()
    return None
