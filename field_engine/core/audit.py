from sqlalchemy.orm import Session
from typing import Any

from field_engine.models.audit_event import AuditEvent


def log_event(
    *,
    db: Session,
    actor_owner_id: int | None,
    action: str,
    entity_type: str,
    entity_id,
    metadata: dict[str, Any] | None = None,
):
    event = AuditEvent(
        actor_owner_id=actor_owner_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        event_metadata=metadata,
    )
    db.add(event)
