from typing import Any

from pydantic import BaseModel, Field

from field_engine.core.field_types import ConditionType, DependencyAction, FieldType
from field_engine.schemas.fields import (
    FieldDescriptor,
    FieldGroup,
    FieldOption,
    ValidationRules,
)


class FieldDefinitionCreate(BaseModel):
    # generated from the label when omitted
    field_key: str | None = Field(default=None, min_length=1, max_length=100)
    module: str = Field(default="global", min_length=1, max_length=50)
    label: str = Field(min_length=1, max_length=200)
    type: FieldType
    description: str | None = None
    options: list[FieldOption] = Field(default_factory=list)
    validation_rules: ValidationRules = Field(default_factory=ValidationRules)
    default_value: Any = None
    is_system_field: bool = False
    owner_id: int | None = None


class FieldDefinitionUpdate(BaseModel):
    # partial: only the fields sent are changed
    field_key: str | None = Field(default=None, min_length=1, max_length=100)
    label: str | None = Field(default=None, min_length=1, max_length=200)
    type: FieldType | None = None
    description: str | None = None
    options: list[FieldOption] | None = None
    validation_rules: ValidationRules | None = None
    default_value: Any = None
    is_active: bool | None = None


class FieldDependencyCreate(BaseModel):
    depends_on_field_key: str = Field(min_length=1, max_length=100)
    condition_type: ConditionType
    condition_value: Any = None
    action: DependencyAction


class CustomFieldValuesPut(BaseModel):
    values: dict[str, Any]
    owner_id: int | None = None


class FormTemplateCreate(BaseModel):
    module: str = Field(min_length=1, max_length=50)
    owner_id: int | None = None
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    base_fields: list[FieldDescriptor] = Field(default_factory=list)
    custom_fields: list[str] = Field(default_factory=list)
    list_fields: list[str] = Field(default_factory=list)
    detail_fields: list[str] = Field(default_factory=list)
    field_groups: list[FieldGroup] = Field(default_factory=list)
    validation_rules: dict[str, ValidationRules] = Field(default_factory=dict)
    is_default: bool = False
    is_active: bool = True
    order_index: int = 0


class FormTemplateUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    base_fields: list[FieldDescriptor] | None = None
    custom_fields: list[str] | None = None
    list_fields: list[str] | None = None
    detail_fields: list[str] | None = None
    field_groups: list[FieldGroup] | None = None
    validation_rules: dict[str, ValidationRules] | None = None
    is_default: bool | None = None
    is_active: bool | None = None
    order_index: int | None = None


class FieldConfigPut(BaseModel):
    owner_id: int | None = None
    visible: bool | None = None
    editable: bool | None = None
    required: bool | None = None
    order: int | None = None


class FormValuesPayload(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)
    template_id: str | None = None
    owner_id: int | None = None


class FieldError(BaseModel):
    field: str
    code: str
    message: str


class FormValidationResult(BaseModel):
    valid: bool
    errors: list[FieldError] = Field(default_factory=list)
    # submitted keys the form does not know; never block submission
    warnings: list[str] = Field(default_factory=list)
