from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from greep.api.deps import get_db, get_operator
from greep.core.config import get_settings
from greep.models.enums import UserRole
from greep.models.payment import DriverPayment
from greep.models.user import User
from greep.schemas.common import Page
from greep.schemas.payments import CarryoverPreview, PaymentCreateRequest, PaymentOut, PaymentUpdateRequest
from greep.services.audit import log_audit
from greep.services.carryover import compute_balance_carryover, expected_weekly_amount
from greep.services.records import (
    delete_record,
    get_record_or_404,
    insert_record,
    paginate_records,
    snapshot,
)
from greep.utils.decimal_math import money


router = APIRouter(prefix="/payments", tags=["payments"])


def _get_driver(db: Session, driver_id: str) -> User:
    driver = db.get(User, driver_id)
    if driver is None or driver.role != UserRole.driver:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found.")
    return driver


@router.get("", response_model=Page[PaymentOut])
def list_payments(
    page: int = Query(default=0, ge=0),
    page_size: int | None = Query(default=None, ge=1),
    sort: str | None = None,
    desc: bool = True,
    start_date: date | None = None,
    end_date: date | None = None,
    driver_id: str | None = None,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> Page[PaymentOut]:
    settings = get_settings()
    size = min(page_size or settings.default_page_size, settings.max_page_size)
    filters = [DriverPayment.driver_id == driver_id] if driver_id else []
    result = paginate_records(
        db,
        "payments",
        page=page,
        page_size=size,
        sort=sort,
        desc=desc,
        start=start_date,
        end=end_date,
        filters=filters,
    )
    return Page[PaymentOut](
        items=[PaymentOut.model_validate(item) for item in result.items],
        total_count=result.total_count,
        page_count=result.page_count,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/carryover-preview", response_model=CarryoverPreview)
def preview_carryover(
    driver_id: str,
    amount_paid: Decimal = Query(ge=0),
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> CarryoverPreview:
    driver = _get_driver(db, driver_id)
    return CarryoverPreview(
        driver_id=driver.id,
        tier=driver.tier,
        expected_amount=expected_weekly_amount(driver.tier),
        amount_paid=money(amount_paid),
        balance_carryover=compute_balance_carryover(driver.tier, amount_paid),
    )


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreateRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> DriverPayment:
    driver = _get_driver(db, payload.driver_id)
    if payload.balance_carryover is not None:
        carryover = money(payload.balance_carryover)
    else:
        carryover = compute_balance_carryover(driver.tier, payload.amount_paid)
    payment = insert_record(
        db,
        "payments",
        {
            "driver_id": driver.id,
            "week_start_date": payload.week_start_date,
            "amount_paid": money(payload.amount_paid),
            "balance_carryover": carryover,
            "notes": payload.notes,
            "created_by": operator.id,
        },
    )
    log_audit(
        db,
        actor=operator,
        action="payment.create",
        entity_type="driver_payment",
        entity_id=payment.id,
        after_state=snapshot(payment),
    )
    db.commit()
    db.refresh(payment)
    return payment


@router.patch("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payment_id: str,
    payload: PaymentUpdateRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> DriverPayment:
    payment = get_record_or_404(db, "payments", payment_id)
    before = snapshot(payment)

    if payload.driver_id is not None:
        payment.driver_id = _get_driver(db, payload.driver_id).id
    if payload.week_start_date is not None:
        payment.week_start_date = payload.week_start_date
    if payload.amount_paid is not None:
        payment.amount_paid = money(payload.amount_paid)
    if payload.notes is not None:
        payment.notes = payload.notes

    if payload.balance_carryover is not None:
        payment.balance_carryover = money(payload.balance_carryover)
    elif payload.driver_id is not None or payload.amount_paid is not None:
        driver = _get_driver(db, payment.driver_id)
        payment.balance_carryover = compute_balance_carryover(driver.tier, payment.amount_paid)

    log_audit(
        db,
        actor=operator,
        action="payment.update",
        entity_type="driver_payment",
        entity_id=payment.id,
        before_state=before,
        after_state=snapshot(payment),
    )
    db.commit()
    db.refresh(payment)
    return payment


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> None:
    before = delete_record(db, "payments", payment_id)
    log_audit(
        db,
        actor=operator,
        action="payment.delete",
        entity_type="driver_payment",
        entity_id=payment_id,
        before_state=before,
    )
    db.commit()
    return None
