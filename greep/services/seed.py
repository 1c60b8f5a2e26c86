from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from greep.core.config import get_settings
from greep.models.enums import ADMIN_PLACEHOLDER_TIER, UserRole
from greep.models.user import User


logger = logging.getLogger("greep.seed")


def ensure_default_admin(db: Session) -> User:
    settings = get_settings()
    admin = db.scalar(select(User).where(User.email == settings.default_admin_email))
    if admin is not None:
        return admin

    admin = User(
        name=settings.default_admin_name,
        email=settings.default_admin_email,
        role=UserRole.admin,
        tier=ADMIN_PLACEHOLDER_TIER,
        active=True,
        can_login=True,
    )
    db.add(admin)
    db.commit()
    logger.info("Seeded default admin %s", admin.email)
    return admin
