import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from greep.models.enums import ExpenseType
from greep.schemas.common import ORMModel


class ExpenseCreateRequest(BaseModel):
    type: ExpenseType
    amount: Decimal = Field(gt=0)
    date: dt.date
    description: str = Field(min_length=1, max_length=1000)
    paid_by: str = Field(default="", max_length=255)
    user_id: str | None = None
    notes: str | None = Field(default=None, max_length=3000)


class ExpenseUpdateRequest(BaseModel):
    type: ExpenseType | None = None
    amount: Decimal | None = Field(default=None, gt=0)
    date: dt.date | None = None
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    paid_by: str | None = Field(default=None, max_length=255)
    user_id: str | None = None
    notes: str | None = Field(default=None, max_length=3000)


class ExpenseOut(ORMModel):
    id: str
    type: ExpenseType
    amount: Decimal
    date: dt.date
    description: str
    paid_by: str
    user_id: str | None = None
    notes: str | None = None
    created_by: str
    created_at: dt.datetime
