"""
Record shapes shared by the engine, the record store and the HTTP layer.

Records cross the persistence boundary as plain dicts produced by
``to_record``; timestamps are owned by the store.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from field_engine.core.field_types import (
    GLOBAL_MODULE,
    ConditionType,
    DependencyAction,
    FieldType,
    is_valid_field_key,
)

TIMESTAMP_FIELDS = {"created_at", "updated_at"}


def to_record(model: BaseModel, *, exclude: set[str] | None = None) -> dict:
    return model.model_dump(mode="json", exclude=TIMESTAMP_FIELDS | (exclude or set()))


class FieldOption(BaseModel):
    label: str
    value: Any


class ValidationRules(BaseModel):
    """
    Declared constraints of one field, e.g.
      number: {"required": true, "min": 1, "max": 5, "integer": true}
      text:   {"pattern": "^[A-Z]{3}-\\d+$", "max_length": 40}
    """
    model_config = ConfigDict(extra="ignore")

    required: bool = False
    min: float | None = None
    max: float | None = None
    pattern: str | None = None
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)
    integer: bool = False

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid pattern: {e}")
        return v

    def merged(self, overrides: "ValidationRules | dict | None") -> "ValidationRules":
        """Apply only the keys explicitly set on ``overrides``."""
        if overrides is None:
            return self
        if isinstance(overrides, dict):
            overrides = ValidationRules.model_validate(overrides)
        explicit = overrides.model_dump(include=overrides.model_fields_set)
        return self.model_copy(update=explicit)


class FieldDefinition(BaseModel):
    id: int | None = None
    field_key: str = Field(min_length=1, max_length=100)
    module: str = Field(default=GLOBAL_MODULE, min_length=1, max_length=50)
    label: str = Field(min_length=1, max_length=200)
    type: FieldType
    description: str | None = None
    options: list[FieldOption] = Field(default_factory=list)
    validation_rules: ValidationRules = Field(default_factory=ValidationRules)
    default_value: Any = None
    is_system_field: bool = False
    is_active: bool = True
    owner_id: int | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("field_key")
    @classmethod
    def _key_format(cls, v: str) -> str:
        if not is_valid_field_key(v):
            raise ValueError("field_key must match ^[a-z_][a-z0-9_]*$")
        return v

    @model_validator(mode="after")
    def _options_iff_select(self) -> "FieldDefinition":
        if self.type == FieldType.SELECT and not self.options:
            raise ValueError("select fields need at least one option")
        if self.type != FieldType.SELECT and self.options:
            raise ValueError("options are only allowed on select fields")
        return self

    @property
    def required(self) -> bool:
        return self.validation_rules.required

    def applies_to(self, module: str, owner_id: int | None) -> bool:
        """Module scope + owner scope check (None owner = shared)."""
        if self.module not in (module, GLOBAL_MODULE):
            return False
        return self.owner_id is None or self.owner_id == owner_id


class FieldDependency(BaseModel):
    id: int | None = None
    # the controlled field
    field_definition_id: int
    # the controlling field
    depends_on_field_key: str = Field(min_length=1, max_length=100)
    condition_type: ConditionType
    condition_value: Any = None
    action: DependencyAction


class CustomFieldValue(BaseModel):
    entity_type: str
    entity_id: str
    field_definition_id: int
    value: Any

    created_at: datetime | None = None
    updated_at: datetime | None = None


class FieldDescriptor(BaseModel):
    """
    One resolved form field: a compiled-in base field, a template base
    field, or a custom field definition with view flags applied.
    """
    field_key: str = Field(min_length=1, max_length=100)
    label: str
    type: FieldType = FieldType.TEXT
    options: list[FieldOption] = Field(default_factory=list)
    validation_rules: ValidationRules = Field(default_factory=ValidationRules)
    default_value: Any = None

    visible: bool = True
    editable: bool = True
    order: int | None = None
    # locked fields cannot be hidden or made optional per module/owner
    locked: bool = False
    source: Literal["base", "custom"] = "base"
    definition_id: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _fold_required(cls, data: Any) -> Any:
        # base field lists are usually written as {"key": ..., "required": true}
        if isinstance(data, dict) and "required" in data:
            data = dict(data)
            required = data.pop("required")
            rules = dict(data.get("validation_rules") or {})
            rules.setdefault("required", bool(required))
            data["validation_rules"] = rules
        return data

    @property
    def required(self) -> bool:
        return self.validation_rules.required

    @classmethod
    def from_definition(cls, definition: FieldDefinition) -> "FieldDescriptor":
        return cls(
            field_key=definition.field_key,
            label=definition.label,
            type=definition.type,
            options=definition.options,
            validation_rules=definition.validation_rules,
            default_value=definition.default_value,
            source="custom",
            definition_id=definition.id,
        )


class FieldGroup(BaseModel):
    group: str = Field(min_length=1, max_length=200)
    fields: list[str] = Field(default_factory=list)


class FormTemplate(BaseModel):
    id: int | None = None
    module: str = Field(min_length=1, max_length=50)
    owner_id: int | None = None
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None

    # replaces the module's compiled-in base fields when non-empty
    base_fields: list[FieldDescriptor] = Field(default_factory=list)
    # ordered field_key references to FieldDefinition rows
    custom_fields: list[str] = Field(default_factory=list)
    list_fields: list[str] = Field(default_factory=list)
    detail_fields: list[str] = Field(default_factory=list)
    field_groups: list[FieldGroup] = Field(default_factory=list)
    # per field_key rule overrides
    validation_rules: dict[str, ValidationRules] = Field(default_factory=dict)

    is_default: bool = False
    is_active: bool = True
    order_index: int = 0

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("custom_fields", "list_fields", "detail_fields")
    @classmethod
    def _no_duplicate_keys(cls, v: list[str]) -> list[str]:
        if len(set(v)) != len(v):
            raise ValueError("field keys must be unique")
        return v

    @field_serializer("validation_rules")
    def _dump_explicit_rules(self, v: dict[str, ValidationRules]) -> dict:
        # only what the template author set, so merging stays partial after a round trip
        return {key: rules.model_dump(mode="json", exclude_unset=True) for key, rules in v.items()}


class ModuleFieldConfiguration(BaseModel):
    """
    One (module, field_key, owner) override row. A None attribute means
    "not overridden at this level".
    """
    module: str = Field(min_length=1, max_length=50)
    field_key: str = Field(min_length=1, max_length=100)
    owner_id: int | None = None

    visible: bool | None = None
    editable: bool | None = None
    required: bool | None = None
    order: int | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None


class FieldOverride(BaseModel):
    """Effective override for one field after owner -> global precedence."""
    visible: bool | None = None
    editable: bool | None = None
    required: bool | None = None
    order: int | None = None


class FieldRuntimeState(BaseModel):
    visible: bool = True
    enabled: bool = True
    required: bool = False


class ResolvedFieldGroup(BaseModel):
    group: str
    fields: list[FieldDescriptor] = Field(default_factory=list)
