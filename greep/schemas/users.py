from datetime import datetime

from pydantic import BaseModel, Field

from greep.models.enums import UserRole
from greep.schemas.common import ORMModel


class UserCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    role: UserRole = UserRole.driver
    tier: str | None = Field(default=None, min_length=1, max_length=1)
    active: bool = True
    can_login: bool = False


class UserUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=255)
    role: UserRole | None = None
    tier: str | None = Field(default=None, min_length=1, max_length=1)
    active: bool | None = None
    can_login: bool | None = None


class UserOut(ORMModel):
    id: str
    name: str
    email: str
    role: UserRole
    tier: str
    active: bool
    can_login: bool
    created_at: datetime
