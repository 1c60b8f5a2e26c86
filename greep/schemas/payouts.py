from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from greep.models.enums import PayoutStatus
from greep.schemas.common import ORMModel
from greep.utils.dates import MONTH_PATTERN


class PayoutCreateRequest(BaseModel):
    investor_id: str
    month: str = Field(pattern=MONTH_PATTERN)
    gross_amount: Decimal = Field(ge=0)
    status: PayoutStatus = PayoutStatus.pending
    notes: str | None = Field(default=None, max_length=3000)


class PayoutUpdateRequest(BaseModel):
    investor_id: str | None = None
    month: str | None = Field(default=None, pattern=MONTH_PATTERN)
    gross_amount: Decimal | None = Field(default=None, ge=0)
    status: PayoutStatus | None = None
    notes: str | None = Field(default=None, max_length=3000)


class PayoutOut(ORMModel):
    id: str
    investor_id: str
    month: str
    gross_amount: Decimal
    total_expenses: Decimal
    net_amount: Decimal
    status: PayoutStatus
    notes: str | None = None
    created_by: str
    created_at: datetime


class PayoutPreviewOut(BaseModel):
    investor_id: str
    month: str
    gross_amount: Decimal
    total_expenses: Decimal
    net_amount: Decimal
    expense_count: int
