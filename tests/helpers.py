from field_engine.core.field_types import ConditionType, DependencyAction, FieldType
from field_engine.core.registry import FieldRegistry
from field_engine.core.templates import FormTemplateService
from field_engine.schemas.fields import FieldDefinition, FieldDependency, FormTemplate


def create_field(
    store,
    key: str,
    *,
    field_type: FieldType = FieldType.TEXT,
    module: str = "global",
    label: str | None = None,
    rules: dict | None = None,
    options: list[dict] | None = None,
    owner_id: int | None = None,
    is_system_field: bool = False,
    default_value=None,
) -> FieldDefinition:
    registry = FieldRegistry(store)
    existing = registry.get(key)
    if existing:
        return existing

    if field_type == FieldType.SELECT and not options:
        options = [{"label": "A", "value": "a"}, {"label": "B", "value": "b"}]

    return registry.create(
        FieldDefinition(
            field_key=key,
            module=module,
            label=label or key.replace("_", " ").title(),
            type=field_type,
            validation_rules=rules or {},
            options=options or [],
            owner_id=owner_id,
            is_system_field=is_system_field,
            default_value=default_value,
        )
    )


def add_rule(
    store,
    target: FieldDefinition,
    depends_on: str,
    condition: ConditionType | str,
    value,
    action: DependencyAction | str,
) -> FieldDependency:
    return FieldRegistry(store).add_dependency(
        FieldDependency(
            field_definition_id=target.id,
            depends_on_field_key=depends_on,
            condition_type=condition,
            condition_value=value,
            action=action,
        )
    )


def create_template(store, *, module: str = "stock", name: str = "Test Template", **kw) -> FormTemplate:
    return FormTemplateService(store).create(FormTemplate(module=module, name=name, **kw))
