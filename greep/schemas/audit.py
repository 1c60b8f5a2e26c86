from datetime import datetime

from greep.schemas.common import ORMModel


class AuditLogOut(ORMModel):
    id: int
    actor_user_id: str
    action: str
    entity_type: str
    entity_id: str
    before_state: dict | None = None
    after_state: dict | None = None
    created_at: datetime
