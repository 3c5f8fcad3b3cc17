import pytest

from field_engine.core.errors import (
    DependencyNotFound,
    DuplicateKey,
    FieldInUse,
    ImmutableField,
    SystemFieldProtected,
    UnknownField,
)
from field_engine.core.field_types import ConditionType, DependencyAction, FieldType
from field_engine.core.registry import FieldRegistry
from field_engine.core.value_store import CustomFieldValueStore
from field_engine.schemas.fields import FieldDefinition, FieldDependency
from tests.helpers import add_rule, create_field


def test_create_and_get_field(store):
    created = create_field(store, "warranty", module="stock", rules={"required": True})

    fetched = FieldRegistry(store).get("warranty")
    assert fetched.id == created.id
    assert fetched.module == "stock"
    assert fetched.required is True
    assert fetched.created_at is not None


def test_duplicate_key_rejected(store):
    create_field(store, "warranty")
    with pytest.raises(DuplicateKey):
        FieldRegistry(store).create(FieldDefinition(field_key="warranty", label="Other", type=FieldType.TEXT))


def test_invalid_key_rejected_by_schema():
    with pytest.raises(ValueError):
        FieldDefinition(field_key="Warranty Period", label="W", type=FieldType.TEXT)


def test_select_requires_options_and_others_refuse_them():
    with pytest.raises(ValueError):
        FieldDefinition(field_key="color", label="Color", type=FieldType.SELECT)
    with pytest.raises(ValueError):
        FieldDefinition(field_key="color", label="Color", type=FieldType.TEXT, options=[{"label": "R", "value": "r"}])


def test_list_filters_module_owner_and_active(store):
    create_field(store, "notes")  # global
    create_field(store, "warranty", module="stock")
    create_field(store, "vat_no", module="customers")
    create_field(store, "private_tag", module="stock", owner_id=42)
    inactive = create_field(store, "old_code", module="stock")
    FieldRegistry(store).deactivate(inactive.field_key)

    registry = FieldRegistry(store)
    assert [d.field_key for d in registry.list("stock")] == ["notes", "warranty"]
    assert [d.field_key for d in registry.list("stock", 42)] == ["notes", "warranty", "private_tag"]
    assert [d.field_key for d in registry.list("stock", 7)] == ["notes", "warranty"]
    assert "old_code" in [d.field_key for d in registry.list("stock", include_inactive=True)]


def test_update_label_keeps_id(store):
    d = create_field(store, "warranty")
    updated = FieldRegistry(store).update(d.model_copy(update={"label": "Warranty (months)"}))
    assert updated.id == d.id
    assert updated.label == "Warranty (months)"


def test_key_and_type_frozen_once_referenced(store):
    d = create_field(store, "warranty", module="stock")
    CustomFieldValueStore(store).set_values("product", 1, {"warranty": "2 years"})
    registry = FieldRegistry(store)

    with pytest.raises(ImmutableField):
        registry.update(d.model_copy(update={"field_key": "warranty_months"}))
    with pytest.raises(ImmutableField):
        registry.update(d.model_copy(update={"type": FieldType.NUMBER}))

    # other attributes stay editable
    assert registry.update(d.model_copy(update={"label": "Guarantee"})).label == "Guarantee"


def test_key_change_allowed_while_unreferenced(store):
    d = create_field(store, "warranty")
    updated = FieldRegistry(store).update(d.model_copy(update={"field_key": "warranty_months"}))
    assert updated.field_key == "warranty_months"
    assert FieldRegistry(store).get("warranty") is None


def test_system_field_cannot_be_deactivated_or_deleted(store):
    create_field(store, "notes", is_system_field=True)
    registry = FieldRegistry(store)

    with pytest.raises(SystemFieldProtected):
        registry.deactivate("notes")
    with pytest.raises(SystemFieldProtected):
        registry.delete("notes")
    with pytest.raises(SystemFieldProtected):
        registry.update(registry.get("notes").model_copy(update={"is_active": False}))

    # system flag survives an update that tries to drop it
    updated = registry.update(registry.get("notes").model_copy(update={"is_system_field": False, "label": "Memo"}))
    assert updated.is_system_field is True


def test_deactivate_keeps_values(store):
    create_field(store, "warranty", module="stock")
    values = CustomFieldValueStore(store)
    values.set_values("product", 1, {"warranty": "2 years"})

    FieldRegistry(store).deactivate("warranty")

    assert values.get_values("product", 1) == {"warranty": "2 years"}
    assert FieldRegistry(store).list("stock") == []


def test_delete_referenced_field_requires_cascade(store):
    target = create_field(store, "warranty", module="stock")
    add_rule(store, target, "category", ConditionType.EQUALS, "electronics", DependencyAction.SHOW)
    values = CustomFieldValueStore(store)
    values.set_values("product", 1, {"warranty": "2 years"})
    registry = FieldRegistry(store)

    with pytest.raises(FieldInUse):
        registry.delete("warranty")
    assert registry.get("warranty") is not None

    registry.delete("warranty", cascade=True)

    assert registry.get("warranty") is None
    assert registry.list_dependencies() == []
    assert values.get_values("product", 1) == {}


def test_delete_unknown_field(store):
    with pytest.raises(UnknownField):
        FieldRegistry(store).delete("nope")


def test_dependencies_listed_in_id_order(store):
    target = create_field(store, "warranty")
    other = create_field(store, "serial")
    first = add_rule(store, target, "category", ConditionType.EQUALS, "electronics", DependencyAction.SHOW)
    add_rule(store, other, "category", ConditionType.IS_EMPTY, None, DependencyAction.HIDE)
    third = add_rule(store, target, "price", ConditionType.GREATER_THAN, 1000, DependencyAction.SET_REQUIRED)

    registry = FieldRegistry(store)
    assert [r.id for r in registry.list_dependencies([target.id])] == [first.id, third.id]
    assert len(registry.list_dependencies()) == 3


def test_dependency_on_unknown_field_rejected(store):
    with pytest.raises(UnknownField):
        FieldRegistry(store).add_dependency(
            FieldDependency(
                field_definition_id=999,
                depends_on_field_key="category",
                condition_type=ConditionType.EQUALS,
                action=DependencyAction.SHOW,
            )
        )


def test_remove_dependency(store):
    target = create_field(store, "warranty")
    rule = add_rule(store, target, "category", ConditionType.EQUALS, "electronics", DependencyAction.SHOW)
    registry = FieldRegistry(store)

    registry.remove_dependency(rule.id)
    assert registry.list_dependencies() == []

    with pytest.raises(DependencyNotFound):
        registry.remove_dependency(rule.id)
