from field_engine.core.field_types import ConditionType, DependencyAction, FieldType, FormView
from field_engine.core.form_composer import FormComposer, initial_values
from field_engine.core.module_fields import ModuleFieldConfigService, get_module_base_fields
from field_engine.core.registry import FieldRegistry
from field_engine.core.templates import FormTemplateService
from tests.helpers import add_rule, create_field, create_template

DEFAULT_KEYS = ["name", "title", "price", "amount", "stock", "category", "sku", "date"]


def _composer(store, **kw):
    kw.setdefault("default_view_fields", DEFAULT_KEYS)
    kw.setdefault("default_view_limit", 5)
    return FormComposer(store, **kw)


def _keys(fields):
    return [f.field_key for f in fields]


def test_no_template_gives_base_fields(store):
    composer = _composer(store)
    expected = _keys(get_module_base_fields("stock"))

    assert _keys(composer.resolve_fields("stock")) == expected
    assert _keys(composer.resolve_fields("stock", "default")) == expected
    assert composer.resolve_fields("unknown") == []


def test_template_base_fields_replace_defaults(store):
    t = create_template(
        store,
        base_fields=[
            {"field_key": "name", "label": "Product", "required": True},
            {"field_key": "barcode", "label": "Barcode"},
        ],
    )

    fields = _composer(store).resolve_fields("stock", t.id)
    assert _keys(fields) == ["name", "barcode"]
    assert fields[0].label == "Product"
    assert fields[0].required is True


def test_empty_template_base_fields_keep_defaults_and_append_custom(store):
    create_field(store, "warranty", module="stock")
    create_field(store, "notes", field_type=FieldType.TEXTAREA)
    t = create_template(store, custom_fields=["notes", "warranty"])

    fields = _composer(store).resolve_fields("stock", str(t.id))
    assert _keys(fields) == _keys(get_module_base_fields("stock")) + ["notes", "warranty"]
    assert fields[-1].source == "custom"
    assert fields[-1].definition_id is not None


def test_custom_fields_skip_missing_inactive_foreign_and_shadowing(store):
    create_field(store, "warranty", module="stock")
    create_field(store, "old_code", module="stock")
    FieldRegistry(store).deactivate("old_code")
    create_field(store, "vat_no", module="customers")
    create_field(store, "private_tag", module="stock", owner_id=99)
    create_field(store, "sku", module="stock")
    t = create_template(store, custom_fields=["ghost", "old_code", "vat_no", "private_tag", "sku", "warranty"])

    fields = _composer(store).resolve_fields("stock", t.id)
    assert _keys(fields)[-1] == "warranty"
    assert _keys(fields).count("sku") == 1
    assert not {"ghost", "old_code", "vat_no", "private_tag"} & set(_keys(fields))


def test_template_rule_overrides_merge(store):
    t = create_template(store, validation_rules={"price": {"min": 0}, "sku": {"required": True}})

    by_key = {f.field_key: f for f in _composer(store).resolve_fields("stock", t.id)}
    assert by_key["price"].validation_rules.min == 0
    assert by_key["sku"].required is True
    # untouched attributes of the base rule survive
    assert by_key["name"].required is True


def test_deleted_template_falls_back_to_defaults(store):
    t = create_template(store, owner_id=42, base_fields=[{"field_key": "name", "label": "Name"}])
    composer = _composer(store)
    assert _keys(composer.resolve_fields("stock", t.id, 42)) == ["name"]

    FormTemplateService(store).delete(t.id)

    assert _keys(composer.resolve_fields("stock", t.id, 42)) == _keys(get_module_base_fields("stock"))


def test_foreign_or_garbage_template_ids_fall_back(store):
    other_module = create_template(store, module="customers", base_fields=[{"field_key": "x", "label": "X"}])
    other_owner = create_template(store, owner_id=7, base_fields=[{"field_key": "x", "label": "X"}])
    composer = _composer(store)
    defaults = _keys(get_module_base_fields("stock"))

    assert _keys(composer.resolve_fields("stock", other_module.id)) == defaults
    assert _keys(composer.resolve_fields("stock", other_owner.id, 42)) == defaults
    assert _keys(composer.resolve_fields("stock", "not-a-number")) == defaults


def test_module_config_scenario(store):
    config = ModuleFieldConfigService(store)
    config.upsert("stock", "sku", None, {"visible": False})
    config.upsert("stock", "sku", 42, {"visible": True})
    composer = _composer(store)

    assert "sku" in _keys(composer.resolve_view("stock", owner_id=42))
    assert "sku" not in _keys(composer.resolve_view("stock", owner_id=7))
    # the full field list still carries the hidden field
    assert "sku" in _keys(composer.resolve_fields("stock", owner_id=7))


def test_list_view_defaults_to_bounded_subset(store):
    composer = _composer(store)
    assert _keys(composer.resolve_view("stock", view=FormView.LIST)) == ["name", "sku", "category", "price", "stock"]
    assert _keys(composer.resolve_view("expenses", view="list")) == ["title", "amount", "date"]
    assert _keys(composer.resolve_view("customers", view="list")) == ["name"]
    # no default key present: first N visible fields
    assert _keys(_composer(store, default_view_fields=[], default_view_limit=2).resolve_view("suppliers", view="list")) == ["name", "phone"]


def test_declared_list_and_detail_fields(store):
    t = create_template(store, list_fields=["price", "name"], detail_fields=["sku", "price", "hidden_one"])
    composer = _composer(store)

    assert _keys(composer.resolve_view("stock", t.id, FormView.LIST)) == ["price", "name"]
    assert _keys(composer.resolve_view("stock", t.id, FormView.DETAIL)) == ["price", "name", "sku"]


def test_detail_groups(store):
    create_field(store, "warranty", module="stock")
    t = create_template(
        store,
        custom_fields=["warranty"],
        list_fields=["name", "price"],
        detail_fields=["warranty", "sku"],
        field_groups=[
            {"group": "Basics", "fields": ["name", "price"]},
            {"group": "Empty", "fields": ["missing"]},
        ],
    )

    groups = _composer(store).resolve_detail_groups("stock", t.id)
    assert [(g.group, _keys(g.fields)) for g in groups] == [
        ("Basics", ["name", "price"]),
        ("Other", ["warranty", "sku"]),
    ]


def test_detail_groups_without_template(store):
    groups = _composer(store).resolve_detail_groups("expenses")
    assert [(g.group, _keys(g.fields)) for g in groups] == [("Details", ["title", "amount", "date"])]


def test_evaluate_and_validate_over_resolved_form(store):
    serial = create_field(store, "serial", module="stock", rules={"required": True})
    add_rule(store, serial, "category", ConditionType.EQUALS, "electronics", DependencyAction.SHOW)
    t = create_template(store, custom_fields=["serial"])
    composer = _composer(store)

    assert composer.evaluate("stock", {"category": "furniture"}, t.id)["serial"].visible is False
    assert composer.evaluate("stock", {"category": "electronics"}, t.id)["serial"].visible is True

    validate = composer.build_validator("stock", t.id)
    assert validate({"category": "furniture"}) == {"name": "name is required"}
    assert validate({"name": "TV", "category": "electronics"}) == {"serial": "Serial is required"}


def test_initial_values(store):
    create_field(
        store, "method", module="sales", field_type=FieldType.SELECT,
        options=[{"label": "Cash", "value": "cash"}], default_value="cash",
    )
    t = create_template(store, module="sales", base_fields=[{"field_key": "date", "label": "Date", "type": "date"}], custom_fields=["method"])

    assert initial_values(_composer(store).resolve_fields("sales", t.id)) == {"date": None, "method": "cash"}


def test_owner_hidden_base_field_does_not_block(store):
    config = ModuleFieldConfigService(store)
    config.upsert("stock", "name", 42, {"visible": False, "required": False})
    composer = _composer(store)

    assert "name" not in _keys(composer.resolve_view("stock", owner_id=42))
    assert composer.build_validator("stock", owner_id=42)({"sku": "X1"}) == {}
    assert composer.validate("stock", {"sku": "X1"}, owner_id=42) == []
    # other owners still see and need it
    assert composer.build_validator("stock", owner_id=7)({"sku": "X1"}) == {"name": "name is required"}


def test_optional_base_field_does_not_block(store):
    ModuleFieldConfigService(store).upsert("stock", "name", None, {"required": False})
    composer = _composer(store)

    assert "name" in _keys(composer.resolve_view("stock"))
    assert composer.build_validator("stock")({"sku": "X1"}) == {}


def test_locked_base_field_still_blocks(store):
    ModuleFieldConfigService(store).upsert("suppliers", "name", 42, {"visible": False, "required": False})
    errors = _composer(store).validate("suppliers", {"phone": "555"}, owner_id=42)

    assert [(e["field"], e["code"]) for e in errors] == [("name", "required")]
