from collections.abc import Generator
from datetime import datetime, timezone

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from greep.core.config import get_settings
from greep.core.security import require_login_allowed, require_roles
from greep.db.session import SessionLocal
from greep.models.enums import UserRole
from greep.models.user import User


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock() -> datetime:
    return datetime.now(timezone.utc)


def get_current_user(
    db: Session = Depends(get_db),
    x_user_id: str | None = Header(default=None),
) -> User:
    if x_user_id is None:
        # Safe default for local development.
        user = db.scalar(select(User).where(User.email == get_settings().default_admin_email))
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required.",
            )
    else:
        user = db.get(User, x_user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid user.",
            )
    require_login_allowed(user)
    return user


def get_operator(current_user: User = Depends(get_current_user)) -> User:
    """The back office is admin-only; every route runs as an operator."""
    require_roles(current_user, [UserRole.admin])
    return current_user
