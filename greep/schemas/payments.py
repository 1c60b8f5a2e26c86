from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from greep.schemas.common import ORMModel


class PaymentCreateRequest(BaseModel):
    driver_id: str
    week_start_date: date
    amount_paid: Decimal = Field(ge=0)
    balance_carryover: Decimal | None = Field(
        default=None,
        description="Persisted as given; derived from the driver's tier when omitted.",
    )
    notes: str | None = Field(default=None, max_length=3000)


class PaymentUpdateRequest(BaseModel):
    driver_id: str | None = None
    week_start_date: date | None = None
    amount_paid: Decimal | None = Field(default=None, ge=0)
    balance_carryover: Decimal | None = None
    notes: str | None = Field(default=None, max_length=3000)


class PaymentOut(ORMModel):
    id: str
    driver_id: str
    week_start_date: date
    amount_paid: Decimal
    balance_carryover: Decimal
    notes: str | None = None
    created_by: str
    created_at: datetime


class CarryoverPreview(BaseModel):
    driver_id: str
    tier: str
    expected_amount: Decimal
    amount_paid: Decimal
    balance_carryover: Decimal
