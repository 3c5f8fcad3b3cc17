from __future__ import annotations

import logging
from typing import Any, Callable

from field_engine.core.field_types import FieldType
from field_engine.db.record_store import MODULE_FIELD_CONFIGURATIONS, RecordStore
from field_engine.schemas.fields import (
    FieldDescriptor,
    FieldOverride,
    ModuleFieldConfiguration,
    to_record,
)

logger = logging.getLogger(__name__)

OVERRIDE_ATTRS = ("visible", "editable", "required", "order")


def _f(key: str, ftype: FieldType = FieldType.TEXT, *, label: str | None = None, **kw) -> dict:
    return {"field_key": key, "label": label or key.replace("_", " ").title(), "type": ftype, **kw}


# Compiled-in base fields per module, in declared order.
MODULE_BASE_FIELDS: dict[str, list[dict]] = {
    "stock": [
        _f("name", required=True),
        _f("sku", label="SKU"),
        _f("category"),
        _f("price", FieldType.NUMBER),
        _f("stock", FieldType.NUMBER),
    ],
    "customers": [
        _f("name", required=True),
        _f("phone"),
        _f("email"),
        _f("debtLimit", FieldType.NUMBER, label="Debt Limit"),
        _f("group"),
    ],
    "suppliers": [
        _f("name", required=True, locked=True),
        _f("phone"),
        _f("email"),
        _f("address", FieldType.TEXTAREA),
    ],
    "sales": [
        _f("productId", FieldType.SELECT, label="Product", required=True),
        _f("price", FieldType.NUMBER, required=True),
        _f("quantity", FieldType.NUMBER, required=True),
        _f("amount", FieldType.NUMBER, label="Total Amount", required=True),
        _f("customerId", FieldType.SELECT, label="Customer"),
        _f("date", FieldType.DATE, required=True),
        _f("debtCollectionDate", FieldType.DATE, label="Debt Collection Date"),
        _f("photo", FieldType.IMAGE),
    ],
    "purchases": [
        _f("supplierId", FieldType.SELECT, label="Supplier"),
        _f("productId", FieldType.SELECT, label="Product", required=True),
        _f("price", FieldType.NUMBER, required=True),
        _f("quantity", FieldType.NUMBER, required=True),
        _f("total", FieldType.NUMBER, label="Total Amount", required=True),
        _f("date", FieldType.DATE, required=True),
        _f("title", FieldType.TEXTAREA, label="Notes"),
    ],
    "expenses": [
        _f("title", required=True, locked=True),
        _f("amount", FieldType.NUMBER, required=True, locked=True),
        _f("date", FieldType.DATE),
        _f("description", FieldType.TEXTAREA),
        _f("photo", FieldType.IMAGE),
    ],
    "revenue": [
        _f("title", required=True),
        _f("amount", FieldType.NUMBER, required=True),
        _f("date", FieldType.DATE),
        _f("description", FieldType.TEXTAREA),
        _f("photo", FieldType.IMAGE),
    ],
    "employees": [
        _f("name", required=True),
        _f("email"),
        _f("phone"),
        _f("role"),
    ],
}

# entity type stored in custom_field_values -> owning module
ENTITY_MODULES: dict[str, str] = {
    "product": "stock",
    "customer": "customers",
    "supplier": "suppliers",
    "sale": "sales",
    "purchase": "purchases",
    "expense": "expenses",
    "revenue": "revenue",
    "employee": "employees",
}


def get_module_base_fields(module: str) -> list[FieldDescriptor]:
    """Fresh copies every call; unknown module -> []."""
    return [FieldDescriptor.model_validate(f) for f in MODULE_BASE_FIELDS.get(module, [])]


def supported_modules() -> list[str]:
    return list(MODULE_BASE_FIELDS)


def module_for_entity(entity_type: str) -> str:
    return ENTITY_MODULES.get(entity_type, entity_type)


# ---------------------------------------------------------------------------
# built-in attribute validators (run before custom-field constraints)
# ---------------------------------------------------------------------------

def _require(*keys: str) -> Callable[[dict], dict[str, str]]:
    def _validator(data: dict) -> dict[str, str]:
        errors: dict[str, str] = {}
        for key in keys:
            value = data.get(key)
            if value is None or (isinstance(value, str) and value.strip() == ""):
                errors[key] = f"{key} is required"
        return errors
    return _validator


def _no_errors(data: dict) -> dict[str, str]:
    return {}


BASE_VALIDATORS: dict[str, Callable[[dict], dict[str, str]]] = {
    "stock": _require("name"),
    "customers": _require("name"),
    "suppliers": _require("name"),
    "expenses": _require("title", "amount"),
    "revenue": _require("title", "amount"),
    "employees": _require("name"),
}


def get_base_validator(module: str) -> Callable[[dict], dict[str, str]]:
    return BASE_VALIDATORS.get(module, _no_errors)


# ---------------------------------------------------------------------------
# per module / owner overrides
# ---------------------------------------------------------------------------

class ModuleFieldConfigService:
    """
    Visibility / editability / required / order overrides per
    (module, field_key, owner). Each attribute resolves as:
      owner row  ->  global row (owner_id None)  ->  field's own default
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def rows(self, module: str, owner_id: int | None = None) -> list[ModuleFieldConfiguration]:
        return [
            ModuleFieldConfiguration.model_validate(rec)
            for rec in self.store.query(MODULE_FIELD_CONFIGURATIONS, {"module": module, "owner_id": owner_id})
        ]

    def get(self, module: str, owner_id: int | None = None) -> dict[str, FieldOverride]:
        merged: dict[str, FieldOverride] = {}

        layers = [self.rows(module, None)]
        if owner_id is not None:
            layers.append(self.rows(module, owner_id))

        # global first, then owner rows overwrite whatever they set
        for layer in layers:
            for row in layer:
                current = merged.setdefault(row.field_key, FieldOverride())
                for attr in OVERRIDE_ATTRS:
                    value = getattr(row, attr)
                    if value is not None:
                        setattr(current, attr, value)
        return merged

    def upsert(
        self,
        module: str,
        field_key: str,
        owner_id: int | None,
        overrides: FieldOverride | dict[str, Any],
    ) -> ModuleFieldConfiguration:
        """
        Only attributes present in ``overrides`` change; an explicit None
        clears the override at this level.
        """
        if isinstance(overrides, FieldOverride):
            changes = overrides.model_dump(include=overrides.model_fields_set)
        else:
            changes = FieldOverride.model_validate(overrides).model_dump(include=set(overrides))

        key = (module, field_key, owner_id)
        existing = self.store.read(MODULE_FIELD_CONFIGURATIONS, key)
        row = (
            ModuleFieldConfiguration.model_validate(existing)
            if existing
            else ModuleFieldConfiguration(module=module, field_key=field_key, owner_id=owner_id)
        )
        row = row.model_copy(update=changes)

        self.store.write(MODULE_FIELD_CONFIGURATIONS, key, to_record(row))
        logger.info("module field config upserted module=%s field=%s owner=%s %s", module, field_key, owner_id, changes)
        return ModuleFieldConfiguration.model_validate(self.store.read(MODULE_FIELD_CONFIGURATIONS, key))

    def apply(self, fields: list[FieldDescriptor], overrides: dict[str, FieldOverride]) -> list[FieldDescriptor]:
        """
        Apply effective overrides to resolved fields and reorder.
        Fields without an explicit order keep their position index.
        """
        out: list[tuple[int, int, FieldDescriptor]] = []
        for position, field in enumerate(fields):
            o = overrides.get(field.field_key)
            if o is not None:
                field = _apply_override(field, o)
            order = field.order if field.order is not None else position
            out.append((order, position, field))
        out.sort(key=lambda t: (t[0], t[1]))
        return [f for _, _, f in out]


def _apply_override(field: FieldDescriptor, o: FieldOverride) -> FieldDescriptor:
    update: dict[str, Any] = {}
    if o.visible is not None and not (field.locked and not o.visible):
        update["visible"] = o.visible
    if o.editable is not None:
        update["editable"] = o.editable
    if o.order is not None:
        update["order"] = o.order
    if o.required is not None and not (field.locked and not o.required):
        update["validation_rules"] = field.validation_rules.model_copy(update={"required": o.required})
    if not update:
        return field
    return field.model_copy(update=update)
