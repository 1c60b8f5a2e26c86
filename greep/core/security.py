from collections.abc import Iterable

from fastapi import HTTPException, status

from greep.models.enums import UserRole, enum_value
from greep.models.user import User


def require_roles(user: User, allowed_roles: Iterable[UserRole]) -> None:
    allowed = {UserRole(role).value for role in allowed_roles}
    role = enum_value(user.role)
    if role in allowed:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient role privileges.",
    )


def require_login_allowed(user: User) -> None:
    if not user.active or not user.can_login:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user.",
        )
