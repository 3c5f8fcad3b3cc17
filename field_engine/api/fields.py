from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from field_engine.core.audit import log_event
from field_engine.core.field_types import generate_field_key
from field_engine.core.registry import FieldRegistry
from field_engine.db.record_store import SqlAlchemyRecordStore
from field_engine.db.session import get_db, get_store
from field_engine.schemas.fields import FieldDefinition, FieldDependency
from field_engine.schemas.forms import (
    FieldDefinitionCreate,
    FieldDefinitionUpdate,
    FieldDependencyCreate,
)

router = APIRouter(prefix="/fields", tags=["fields"])


@router.post("", response_model=FieldDefinition, status_code=status.HTTP_201_CREATED)
def create_field_definition(
    payload: FieldDefinitionCreate,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    data = payload.model_dump()
    data["field_key"] = payload.field_key or generate_field_key(payload.label)
    f = FieldRegistry(store).create(FieldDefinition(**data))

    log_event(
        db=db,
        actor_owner_id=payload.owner_id,
        action="FIELD_DEFINITION_CREATED",
        entity_type="field_definition",
        entity_id=f.id,
        metadata={"field_key": f.field_key, "type": f.type.value, "module": f.module},
    )
    return f


@router.get("", response_model=list[FieldDefinition])
def list_field_definitions(
    module: str = Query(default="global"),
    owner_id: int | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return FieldRegistry(store).list(module, owner_id, include_inactive=include_inactive)


@router.get("/{field_key}", response_model=FieldDefinition)
def get_field_definition(
    field_key: str,
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return FieldRegistry(store).require(field_key)


@router.patch("/{field_key}", response_model=FieldDefinition)
def update_field_definition(
    field_key: str,
    payload: FieldDefinitionUpdate,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    registry = FieldRegistry(store)
    current = registry.require(field_key)
    changes = payload.model_dump(exclude_unset=True)
    f = registry.update(FieldDefinition.model_validate({**current.model_dump(), **changes}))

    log_event(
        db=db,
        actor_owner_id=current.owner_id,
        action="FIELD_DEFINITION_UPDATED",
        entity_type="field_definition",
        entity_id=f.id,
        metadata={"field_key": f.field_key, "changed": sorted(changes)},
    )
    return f


@router.post("/{field_key}/deactivate", response_model=FieldDefinition)
def deactivate_field_definition(
    field_key: str,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    f = FieldRegistry(store).deactivate(field_key)

    log_event(
        db=db,
        actor_owner_id=f.owner_id,
        action="FIELD_DEFINITION_DEACTIVATED",
        entity_type="field_definition",
        entity_id=f.id,
        metadata={"field_key": f.field_key},
    )
    return f


@router.delete("/{field_key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_field_definition(
    field_key: str,
    cascade: bool = Query(default=False),
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    registry = FieldRegistry(store)
    current = registry.require(field_key)
    registry.delete(field_key, cascade=cascade)

    log_event(
        db=db,
        actor_owner_id=current.owner_id,
        action="FIELD_DEFINITION_DELETED",
        entity_type="field_definition",
        entity_id=current.id,
        metadata={"field_key": field_key, "cascade": cascade},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{field_key}/dependencies", response_model=FieldDependency, status_code=status.HTTP_201_CREATED)
def add_field_dependency(
    field_key: str,
    payload: FieldDependencyCreate,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    registry = FieldRegistry(store)
    target = registry.require(field_key)
    rule = registry.add_dependency(FieldDependency(field_definition_id=target.id, **payload.model_dump()))

    log_event(
        db=db,
        actor_owner_id=target.owner_id,
        action="FIELD_DEPENDENCY_ADDED",
        entity_type="field_dependency",
        entity_id=rule.id,
        metadata={
            "field_key": field_key,
            "depends_on": rule.depends_on_field_key,
            "condition_type": rule.condition_type.value,
            "action": rule.action.value,
        },
    )
    return rule


@router.get("/{field_key}/dependencies", response_model=list[FieldDependency])
def list_field_dependencies(
    field_key: str,
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    registry = FieldRegistry(store)
    target = registry.require(field_key)
    return registry.list_dependencies([target.id])


@router.delete("/dependencies/{dependency_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_field_dependency(
    dependency_id: int,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    FieldRegistry(store).remove_dependency(dependency_id)

    log_event(
        db=db,
        actor_owner_id=None,
        action="FIELD_DEPENDENCY_REMOVED",
        entity_type="field_dependency",
        entity_id=dependency_id,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
