import pytest
from pydantic import ValidationError

from field_engine.core.errors import TemplateNotFound
from field_engine.core.templates import FormTemplateService
from field_engine.schemas.fields import FormTemplate
from tests.helpers import create_template


def test_single_default_per_module_and_owner(store):
    first = create_template(store, name="First", is_default=True)
    other_owner = create_template(store, name="Mine", owner_id=42, is_default=True)
    second = create_template(store, name="Second", is_default=True)
    templates = FormTemplateService(store)

    assert templates.get(first.id).is_default is False
    assert templates.get(other_owner.id).is_default is True
    assert templates.get_default_template("stock").id == second.id
    assert templates.get_default_template("stock", 42).id == other_owner.id
    assert templates.get_default_template("customers") is None


def test_update_to_default_demotes_others(store):
    first = create_template(store, name="First", is_default=True)
    second = create_template(store, name="Second")
    templates = FormTemplateService(store)

    updated = templates.update(second.id, {"is_default": True, "name": "Renamed"})

    assert updated.name == "Renamed"
    assert updated.is_default is True
    assert templates.get(first.id).is_default is False


def test_update_keeps_partial_rule_overrides(store):
    t = create_template(store, validation_rules={"price": {"min": 0}})
    updated = FormTemplateService(store).update(t.id, {"description": "x"})

    assert updated.validation_rules["price"].model_fields_set == {"min"}


def test_list_order_owner_scope_and_selectable(store):
    create_template(store, name="B", order_index=2)
    create_template(store, name="A", order_index=1)
    create_template(store, name="Private", owner_id=7)
    create_template(store, name="Retired", is_active=False, order_index=3)
    create_template(store, module="customers", name="Elsewhere")
    templates = FormTemplateService(store)

    assert [t.name for t in templates.list("stock", 42)] == ["A", "B", "Retired"]
    assert [t.name for t in templates.list("stock", 7, selectable_only=True)] == ["Private", "A", "B"]


def test_missing_template(store):
    templates = FormTemplateService(store)
    with pytest.raises(TemplateNotFound):
        templates.get(1)
    with pytest.raises(TemplateNotFound):
        templates.delete(1)


def test_duplicate_keys_rejected():
    with pytest.raises(ValidationError):
        FormTemplate(module="stock", name="T", list_fields=["name", "name"])
