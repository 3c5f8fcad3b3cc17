from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from field_engine.core.audit import log_event
from field_engine.core.value_store import CustomFieldValueStore
from field_engine.db.record_store import SqlAlchemyRecordStore
from field_engine.db.session import get_db, get_store
from field_engine.schemas.forms import CustomFieldValuesPut

router = APIRouter(prefix="/entities/{entity_type}/{entity_id}/custom-fields", tags=["custom-field-values"])


@router.get("")
def get_custom_field_values(
    entity_type: str,
    entity_id: str,
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return CustomFieldValueStore(store).get_values(entity_type, entity_id)


@router.get("/display")
def get_custom_field_display_values(
    entity_type: str,
    entity_id: str,
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return CustomFieldValueStore(store).get_display_values(entity_type, entity_id)


@router.put("")
def set_custom_field_values(
    entity_type: str,
    entity_id: str,
    payload: CustomFieldValuesPut,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    values = CustomFieldValueStore(store)
    values.set_values(entity_type, entity_id, payload.values, owner_id=payload.owner_id)

    log_event(
        db=db,
        actor_owner_id=payload.owner_id,
        action="CUSTOM_FIELD_VALUES_SET",
        entity_type=entity_type,
        entity_id=entity_id,
        metadata={
            "set": sorted(k for k, v in payload.values.items() if v is not None),
            "removed": sorted(k for k, v in payload.values.items() if v is None),
        },
    )
    return values.get_values(entity_type, entity_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_custom_field_values(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    count = CustomFieldValueStore(store).delete_all(entity_type, entity_id)

    log_event(
        db=db,
        actor_owner_id=None,
        action="CUSTOM_FIELD_VALUES_DELETED",
        entity_type=entity_type,
        entity_id=entity_id,
        metadata={"count": count},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
