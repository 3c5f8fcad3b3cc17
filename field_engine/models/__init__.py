from field_engine.models.audit_event import AuditEvent
from field_engine.models.custom_field_value import CustomFieldValueRow
from field_engine.models.field_definition import FieldDefinitionRow
from field_engine.models.field_dependency import FieldDependencyRow
from field_engine.models.form_template import FormTemplateRow
from field_engine.models.module_field_configuration import ModuleFieldConfigurationRow

__all__ = [ "AuditEvent", "CustomFieldValueRow", "FieldDefinitionRow",
           "FieldDependencyRow", "FormTemplateRow", "ModuleFieldConfigurationRow" ]
