from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuditEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    actor_owner_id: int | None
    action: str
    entity_type: str
    entity_id: str
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="event_metadata")
    created_at: datetime
