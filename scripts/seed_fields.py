from field_engine.core.field_types import FieldType
from field_engine.core.registry import FieldRegistry
from field_engine.db.record_store import SqlAlchemyRecordStore
from field_engine.db.session import SessionLocal
from field_engine.schemas.fields import FieldDefinition

# Shared system fields: cannot be deactivated or deleted
SYSTEM_FIELDS = [
    FieldDefinition(
        field_key="notes",
        module="global",
        label="Notes",
        type=FieldType.TEXTAREA,
        validation_rules={"max_length": 2000},
        is_system_field=True,
    ),
    FieldDefinition(
        field_key="barcode",
        module="stock",
        label="Barcode",
        type=FieldType.TEXT,
        validation_rules={"pattern": r"^\d{8,14}$"},
        is_system_field=True,
    ),
    FieldDefinition(
        field_key="payment_method",
        module="sales",
        label="Payment Method",
        type=FieldType.SELECT,
        options=[
            {"label": "Cash", "value": "cash"},
            {"label": "Card", "value": "card"},
            {"label": "Transfer", "value": "transfer"},
        ],
        default_value="cash",
        is_system_field=True,
    ),
    FieldDefinition(
        field_key="customer_signature",
        module="sales",
        label="Customer Signature",
        type=FieldType.SIGNATURE,
        is_system_field=True,
    ),
]


def seed(store) -> list[str]:
    """Create missing system fields; returns the keys that were added."""
    registry = FieldRegistry(store)
    added = []
    for definition in SYSTEM_FIELDS:
        if registry.get(definition.field_key) is None:
            registry.create(definition)
            added.append(definition.field_key)
    return added


def main():
    db = SessionLocal()
    try:
        added = seed(SqlAlchemyRecordStore(db))
        db.commit()
        print("System fields seeded:", added or "nothing new")
    finally:
        db.close()

if __name__ == "__main__":
    main()
