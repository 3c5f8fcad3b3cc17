from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from field_engine.db.session import get_db
from field_engine.models.audit_event import AuditEvent
from field_engine.schemas.audit import AuditEventOut

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditEventOut])
def list_audit_events(
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    action: str | None = Query(default=None),
    actor_owner_id: int | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Newest first."""
    stmt = select(AuditEvent)
    filters = {
        "entity_type": entity_type,
        "entity_id": entity_id,
        "action": action,
        "actor_owner_id": actor_owner_id,
    }
    for column, value in filters.items():
        if value is not None:
            stmt = stmt.where(getattr(AuditEvent, column) == value)

    stmt = stmt.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(limit)
    return [AuditEventOut.model_validate(row) for row in db.scalars(stmt)]
