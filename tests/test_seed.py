from field_engine.core.registry import FieldRegistry
from scripts.seed_fields import SYSTEM_FIELDS, seed


def test_seed_is_idempotent(store):
    added = seed(store)
    assert added == [d.field_key for d in SYSTEM_FIELDS]
    assert seed(store) == []


def test_seeded_fields_are_system_fields(sql_store):
    seed(sql_store)
    registry = FieldRegistry(sql_store)

    notes = registry.get("notes")
    assert notes.is_system_field is True
    assert [d.field_key for d in registry.list("sales")] == ["notes", "payment_method", "customer_signature"]
    assert registry.get("payment_method").default_value == "cash"
