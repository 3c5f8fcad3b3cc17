from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from field_engine.core.audit import log_event
from field_engine.core.field_types import FormView
from field_engine.core.form_composer import FormComposer, initial_values
from field_engine.core.module_fields import ModuleFieldConfigService
from field_engine.db.record_store import SqlAlchemyRecordStore
from field_engine.db.session import get_db, get_store
from field_engine.schemas.fields import (
    FieldDescriptor,
    FieldOverride,
    FieldRuntimeState,
    ModuleFieldConfiguration,
    ResolvedFieldGroup,
)
from field_engine.schemas.forms import FieldConfigPut, FieldError, FormValidationResult, FormValuesPayload

router = APIRouter(prefix="/modules/{module}", tags=["forms"])


@router.get("/field-config", response_model=dict[str, FieldOverride])
def get_field_config(
    module: str,
    owner_id: int | None = Query(default=None),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return ModuleFieldConfigService(store).get(module, owner_id)


@router.put("/field-config/{field_key}", response_model=ModuleFieldConfiguration)
def upsert_field_config(
    module: str,
    field_key: str,
    payload: FieldConfigPut,
    db: Session = Depends(get_db),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    overrides = payload.model_dump(exclude_unset=True, exclude={"owner_id"})
    row = ModuleFieldConfigService(store).upsert(module, field_key, payload.owner_id, overrides)

    log_event(
        db=db,
        actor_owner_id=payload.owner_id,
        action="MODULE_FIELD_CONFIG_UPSERTED",
        entity_type="module_field_configuration",
        entity_id=f"{module}:{field_key}",
        metadata={"owner_id": payload.owner_id, **overrides},
    )
    return row


@router.get("/form", response_model=list[FieldDescriptor])
def get_form_fields(
    module: str,
    template_id: str | None = Query(default=None),
    owner_id: int | None = Query(default=None),
    view: FormView = Query(default=FormView.FORM),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return FormComposer(store).resolve_view(module, template_id, view, owner_id)


@router.get("/form/detail-groups", response_model=list[ResolvedFieldGroup])
def get_detail_groups(
    module: str,
    template_id: str | None = Query(default=None),
    owner_id: int | None = Query(default=None),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return FormComposer(store).resolve_detail_groups(module, template_id, owner_id)


@router.get("/form/initial-values")
def get_initial_values(
    module: str,
    template_id: str | None = Query(default=None),
    owner_id: int | None = Query(default=None),
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    fields = FormComposer(store).resolve_view(module, template_id, FormView.FORM, owner_id)
    return initial_values(fields)


@router.post("/evaluate", response_model=dict[str, FieldRuntimeState])
def evaluate_form(
    module: str,
    payload: FormValuesPayload,
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    return FormComposer(store).evaluate(module, payload.values, payload.template_id, payload.owner_id)


@router.post("/validate", response_model=FormValidationResult)
def validate_form(
    module: str,
    payload: FormValuesPayload,
    store: SqlAlchemyRecordStore = Depends(get_store),
):
    """
    Built-in attribute checks + field constraints. Always 200: a failing
    form is a normal outcome, reported in ``errors``.
    """
    composer = FormComposer(store)
    errors = composer.validate(module, payload.values, payload.template_id, payload.owner_id)

    known = {f.field_key for f in composer.resolve_fields(module, payload.template_id, payload.owner_id)}
    warnings = [f"Unknown field ignored: {key}" for key in sorted(payload.values) if key not in known]

    return FormValidationResult(valid=not errors, errors=[FieldError(**e) for e in errors], warnings=warnings)
