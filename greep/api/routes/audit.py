from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from greep.api.deps import get_db, get_operator
from greep.models.user import User
from greep.schemas.audit import AuditLogOut
from greep.services.audit import MAX_AUDIT_ROWS, recent_audit_entries


router = APIRouter(tags=["audit"])


@router.get("/audit", response_model=list[AuditLogOut])
def list_audit_log(
    entity_type: str | None = None,
    limit: int = Query(default=200, ge=1, le=MAX_AUDIT_ROWS),
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> list[AuditLogOut]:
    return [AuditLogOut.model_validate(row) for row in recent_audit_entries(db, entity_type=entity_type, limit=limit)]
