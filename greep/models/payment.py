from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from greep.db.base import Base
from greep.models.user import creation_stamp, new_id


class DriverPayment(Base):
    __tablename__ = "driver_payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # plain reference: removing a driver keeps their payment history
    driver_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    week_start_date: Mapped[date] = mapped_column(nullable=False, index=True)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    balance_carryover: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=creation_stamp, server_default=func.now(), nullable=False
    )
