from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from greep.api.deps import get_db, get_operator
from greep.models.enums import UserRole, default_tier, tier_allowed
from greep.models.user import User
from greep.schemas.users import UserCreateRequest, UserOut, UserUpdateRequest
from greep.services.audit import log_audit
from greep.services.records import delete_record, get_record_or_404, insert_record, snapshot


router = APIRouter(prefix="/users", tags=["users"])


def _resolve_tier(role: UserRole, tier: str | None) -> str:
    if tier is None:
        return default_tier(role)
    tier = tier.upper()
    if not tier_allowed(role, tier):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Tier {tier} is not valid for role {role.value}.",
        )
    return tier


def _assert_email_free(db: Session, email: str, user_id: str | None = None) -> None:
    existing = db.scalar(select(User).where(User.email == email))
    if existing is not None and existing.id != user_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use.")


@router.get("", response_model=list[UserOut])
def list_users(
    role: UserRole | None = None,
    active: bool | None = None,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> list[User]:
    query = select(User)
    if role is not None:
        query = query.where(User.role == role)
    if active is not None:
        query = query.where(User.active.is_(active))
    return list(db.scalars(query.order_by(User.name, User.id)).all())


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreateRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> User:
    _assert_email_free(db, payload.email)
    user = insert_record(
        db,
        "users",
        {
            "name": payload.name,
            "email": payload.email,
            "role": payload.role,
            "tier": _resolve_tier(payload.role, payload.tier),
            "active": payload.active,
            "can_login": payload.can_login,
        },
    )
    log_audit(
        db,
        actor=operator,
        action="user.create",
        entity_type="user",
        entity_id=user.id,
        after_state=snapshot(user),
    )
    db.commit()
    db.refresh(user)
    return user


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> User:
    return get_record_or_404(db, "users", user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> User:
    user = get_record_or_404(db, "users", user_id)
    before = snapshot(user)

    role = payload.role or UserRole(user.role)
    if payload.tier is not None:
        user.tier = _resolve_tier(role, payload.tier)
    elif payload.role is not None and not tier_allowed(role, user.tier):
        user.tier = default_tier(role)
    if payload.role is not None:
        user.role = payload.role
    if payload.email is not None:
        _assert_email_free(db, payload.email, user.id)
        user.email = payload.email
    if payload.name is not None:
        user.name = payload.name
    if payload.active is not None:
        user.active = payload.active
    if payload.can_login is not None:
        user.can_login = payload.can_login

    log_audit(
        db,
        actor=operator,
        action="user.update",
        entity_type="user",
        entity_id=user.id,
        before_state=before,
        after_state=snapshot(user),
    )
    db.commit()
    db.refresh(user)
    return user


@router.post("/{user_id}/toggle-active", response_model=UserOut)
def toggle_user_active(
    user_id: str,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> User:
    user = get_record_or_404(db, "users", user_id)
    user.active = not user.active
    log_audit(
        db,
        actor=operator,
        action="user.toggle_active",
        entity_type="user",
        entity_id=user.id,
        after_state={"active": user.active},
    )
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> None:
    if user_id == operator.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account.")
    before = delete_record(db, "users", user_id)
    log_audit(
        db,
        actor=operator,
        action="user.delete",
        entity_type="user",
        entity_id=user_id,
        before_state=before,
    )
    db.commit()
    return None
