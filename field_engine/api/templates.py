from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from field_engine.core.audit import log_event
from field_engine.core.templates import FormTemplateService
from field_engine.db.record_store import SqlAlchemyRecordStore
from field_engine.db.session import get_db, get_store
from field_engine.schemas.fields import FormTemplate
from field_engine.schemas.forms import FormTemplateCreate, FormTemplateUpdate

router = APIRouter(prefix="/templates", tags=["templates"])


@router.post("", response_model=FormTemplate, status_code=status.HTTP_201_CREATED)
def create_form_template(
    payload: FormTemplateCreate,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    t = FormTemplateService(store).create(FormTemplate(**payload.model_dump(exclude_unset=True)))

    log_event(
        db=db,
        actor_owner_id=t.owner_id,
        action="FORM_TEMPLATE_CREATED",
        entity_type="form_template",
        entity_id=t.id,
        metadata={"module": t.module, "name": t.name, "is_default": t.is_default},
    )
    return t


@router.get("", response_model=list[FormTemplate])
def list_form_templates(
    module: str | None = Query(default=None),
    owner_id: int | None = Query(default=None),
    selectable_only: bool = Query(default=False),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return FormTemplateService(store).list(module, owner_id, selectable_only=selectable_only)


@router.get("/{template_id}", response_model=FormTemplate)
def get_form_template(
    template_id: int,
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return FormTemplateService(store).get(template_id)


@router.patch("/{template_id}", response_model=FormTemplate)
def update_form_template(
    template_id: int,
    payload: FormTemplateUpdate,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    changes = payload.model_dump(exclude_unset=True)
    t = FormTemplateService(store).update(template_id, changes)

    log_event(
        db=db,
        actor_owner_id=t.owner_id,
        action="FORM_TEMPLATE_UPDATED",
        entity_type="form_template",
        entity_id=t.id,
        metadata={"changed": sorted(changes)},
    )
    return t


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_form_template(
    template_id: int,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    templates = FormTemplateService(store)
    current = templates.get(template_id)
    templates.delete(template_id)

    log_event(
        db=db,
        actor_owner_id=current.owner_id,
        action="FORM_TEMPLATE_DELETED",
        entity_type="form_template",
        entity_id=template_id,
        metadata={"module": current.module, "name": current.name},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
