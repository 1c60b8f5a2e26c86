from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import Boolean, DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column

from greep.db.base import Base
from greep.models.enums import UserRole


def new_id() -> str:
    return str(uuid.uuid4())


_stamp_lock = threading.Lock()
_last_stamp: datetime | None = None


def creation_stamp() -> datetime:
    """UTC creation time, strictly increasing within the process.

    Rows are listed in creation order, so two rows written in the same
    microsecond (or the same transaction) must still get distinct stamps.
    """
    global _last_stamp
    with _stamp_lock:
        stamp = datetime.now(timezone.utc)
        if _last_stamp is not None and stamp <= _last_stamp:
            stamp = _last_stamp + timedelta(microseconds=1)
        _last_stamp = stamp
        return stamp


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        default=UserRole.driver,
        nullable=False,
        index=True,
    )
    tier: Mapped[str] = mapped_column(String(1), nullable=False, default="A")
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    can_login: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=creation_stamp, server_default=func.now(), nullable=False
    )
