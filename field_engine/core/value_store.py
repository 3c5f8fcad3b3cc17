from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping

from field_engine.core.errors import UnknownField
from field_engine.core.field_types import format_value
from field_engine.core.module_fields import module_for_entity
from field_engine.core.registry import FieldRegistry
from field_engine.db.record_store import CUSTOM_FIELD_VALUES, RecordStore
from field_engine.schemas.fields import CustomFieldValue, FieldDefinition, to_record

logger = logging.getLogger(__name__)


class CustomFieldValueStore:
    """
    Entity-attribute-value storage for custom fields, keyed by
    (entity_type, entity_id, field_definition_id) and exposed by field_key.

    Values are stored as given: shape checks belong to the validator.
    """

    def __init__(self, store: RecordStore, registry: FieldRegistry | None = None) -> None:
        self.store = store
        self.registry = registry or FieldRegistry(store)

    def get_values(self, entity_type: str, entity_id) -> dict[str, Any]:
        """
        All stored values of one entity, including values of deactivated
        fields (kept for historical display).
        """
        return {definition.field_key: value for definition, value in self._stored(entity_type, entity_id)}

    def get_display_values(self, entity_type: str, entity_id) -> dict[str, dict]:
        """field_key -> {"label", "value", "display"} for detail screens."""
        return {
            definition.field_key: {
                "label": definition.label,
                "value": value,
                "display": format_value(definition, value),
            }
            for definition, value in self._stored(entity_type, entity_id)
        }

    def _stored(self, entity_type: str, entity_id) -> Iterator[tuple[FieldDefinition, Any]]:
        rows = self.store.query(
            CUSTOM_FIELD_VALUES,
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )
        for rec in rows:
            v = CustomFieldValue.model_validate(rec)
            definition = self.registry.get_by_id(v.field_definition_id)
            if definition is None:
                # cascade should have removed it; never surface orphans without a key
                logger.warning("value row without definition id=%s", v.field_definition_id)
                continue
            yield definition, v.value

    def set_values(
        self,
        entity_type: str,
        entity_id,
        values: Mapping[str, Any],
        *,
        owner_id: int | None = None,
    ) -> None:
        """
        Diff-and-upsert, applied as one batch:
          key -> value   insert or update
          key -> None    delete
          key absent     untouched
        """
        entity_id = str(entity_id)
        module = module_for_entity(entity_type)
        resolved = [(self._writable_definition(key, module, owner_id), value) for key, value in values.items()]

        written = removed = 0
        with self.store.batch():
            for definition, value in resolved:
                key = (entity_type, entity_id, definition.id)
                if value is None:
                    removed += int(self.store.delete(CUSTOM_FIELD_VALUES, key))
                    continue
                row = CustomFieldValue(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    field_definition_id=definition.id,
                    value=value,
                )
                self.store.write(CUSTOM_FIELD_VALUES, key, to_record(row))
                written += 1

        logger.debug(
            "custom field values set entity=%s:%s written=%d removed=%d",
            entity_type, entity_id, written, removed,
        )

    def delete_all(self, entity_type: str, entity_id) -> int:
        entity_id = str(entity_id)
        rows = self.store.query(CUSTOM_FIELD_VALUES, {"entity_type": entity_type, "entity_id": entity_id})
        with self.store.batch():
            for rec in rows:
                self.store.delete(CUSTOM_FIELD_VALUES, (entity_type, entity_id, rec["field_definition_id"]))
        logger.debug("custom field values deleted entity=%s:%s count=%d", entity_type, entity_id, len(rows))
        return len(rows)

    def _writable_definition(self, field_key: str, module: str, owner_id: int | None) -> FieldDefinition:
        definition = self.registry.get(field_key)
        if definition is None or not definition.is_active or not definition.applies_to(module, owner_id):
            raise UnknownField(
                f"No active field '{field_key}' for module '{module}'",
                field_key=field_key,
                module=module,
            )
        return definition
