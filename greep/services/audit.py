from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from greep.models.audit import AuditLog
from greep.models.user import User


MAX_AUDIT_ROWS = 500


def log_audit(
    db: Session,
    *,
    actor: User,
    action: str,
    entity_type: str,
    entity_id: str,
    before_state: dict | None = None,
    after_state: dict | None = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; the caller commits."""
    entry = AuditLog(
        actor_user_id=actor.id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        before_state=before_state,
        after_state=after_state,
    )
    db.add(entry)
    return entry


def recent_audit_entries(db: Session, *, entity_type: str | None = None, limit: int = 200) -> list[AuditLog]:
    query = select(AuditLog)
    if entity_type is not None:
        query = query.where(AuditLog.entity_type == entity_type)
    limit = max(1, min(limit, MAX_AUDIT_ROWS))
    return list(db.scalars(query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)).all())
