from __future__ import annotations

import logging

from field_engine.core.errors import (
    DependencyNotFound,
    DuplicateKey,
    FieldInUse,
    ImmutableField,
    SystemFieldProtected,
    UnknownField,
)
from field_engine.db.record_store import (
    CUSTOM_FIELD_VALUES,
    FIELD_DEFINITIONS,
    FIELD_DEPENDENCIES,
    RecordStore,
)
from field_engine.schemas.fields import FieldDefinition, FieldDependency, to_record

logger = logging.getLogger(__name__)


class FieldRegistry:
    """
    Catalog of field definitions (system and custom) and their dependency
    rules. Definitions are scoped by module ('global' = every module) and by
    owner (None = shared).
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------

    def list(
        self,
        module: str,
        owner_id: int | None = None,
        *,
        include_inactive: bool = False,
    ) -> list[FieldDefinition]:
        out = []
        for rec in self.store.query(FIELD_DEFINITIONS):
            d = FieldDefinition.model_validate(rec)
            if not d.applies_to(module, owner_id):
                continue
            if not include_inactive and not d.is_active:
                continue
            out.append(d)
        return out

    def get(self, field_key: str) -> FieldDefinition | None:
        rows = self.store.query(FIELD_DEFINITIONS, {"field_key": field_key})
        return FieldDefinition.model_validate(rows[0]) if rows else None

    def get_by_id(self, definition_id: int) -> FieldDefinition | None:
        rec = self.store.read(FIELD_DEFINITIONS, definition_id)
        return FieldDefinition.model_validate(rec) if rec else None

    def require(self, field_key: str) -> FieldDefinition:
        d = self.get(field_key)
        if d is None:
            raise UnknownField(f"Unknown field: {field_key}", field_key=field_key)
        return d

    def is_referenced(self, definition_id: int) -> bool:
        return bool(self.store.query(CUSTOM_FIELD_VALUES, {"field_definition_id": definition_id}))

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------

    def create(self, definition: FieldDefinition) -> FieldDefinition:
        if self.get(definition.field_key) is not None:
            raise DuplicateKey(
                f"Field key already exists: {definition.field_key}",
                field_key=definition.field_key,
            )
        new_id = self.store.write(FIELD_DEFINITIONS, None, to_record(definition, exclude={"id"}))
        logger.info("field definition created key=%s module=%s id=%s", definition.field_key, definition.module, new_id)
        return self.get_by_id(new_id)

    def update(self, definition: FieldDefinition) -> FieldDefinition:
        """
        Replace a stored definition (matched by id). ``field_key`` and
        ``type`` are frozen once any value references the field.
        """
        if definition.id is None:
            raise UnknownField("Definition id is required for update")
        current = self.get_by_id(definition.id)
        if current is None:
            raise UnknownField(f"Unknown field id: {definition.id}", field_definition_id=definition.id)

        key_changed = definition.field_key != current.field_key
        type_changed = definition.type != current.type
        if (key_changed or type_changed) and self.is_referenced(current.id):
            raise ImmutableField(
                f"Cannot change key or type of referenced field: {current.field_key}",
                field_key=current.field_key,
            )
        if key_changed and self.get(definition.field_key) is not None:
            raise DuplicateKey(
                f"Field key already exists: {definition.field_key}",
                field_key=definition.field_key,
            )
        if current.is_system_field:
            if not definition.is_active:
                raise SystemFieldProtected(
                    f"System field cannot be deactivated: {current.field_key}",
                    field_key=current.field_key,
                )
            # the system flag itself cannot be dropped through an update
            definition = definition.model_copy(update={"is_system_field": True})

        self.store.write(FIELD_DEFINITIONS, current.id, to_record(definition, exclude={"id"}))
        logger.info("field definition updated key=%s id=%s", definition.field_key, current.id)
        return self.get_by_id(current.id)

    def deactivate(self, field_key: str) -> FieldDefinition:
        """Soft-disable. Stored values are kept for historical display."""
        current = self.require(field_key)
        if current.is_system_field:
            raise SystemFieldProtected(
                f"System field cannot be deactivated: {field_key}",
                field_key=field_key,
            )
        if not current.is_active:
            return current
        updated = current.model_copy(update={"is_active": False})
        self.store.write(FIELD_DEFINITIONS, current.id, to_record(updated, exclude={"id"}))
        logger.info("field definition deactivated key=%s id=%s", field_key, current.id)
        return self.get_by_id(current.id)

    def delete(self, field_key: str, *, cascade: bool = False) -> None:
        """
        Hard delete. Refused for system fields, and for referenced fields
        unless ``cascade`` (which drops their values and rules too).
        """
        current = self.require(field_key)
        if current.is_system_field:
            raise SystemFieldProtected(
                f"System field cannot be deleted: {field_key}",
                field_key=field_key,
            )
        values = self.store.query(CUSTOM_FIELD_VALUES, {"field_definition_id": current.id})
        if values and not cascade:
            raise FieldInUse(
                f"Field has {len(values)} stored value(s): {field_key}",
                field_key=field_key,
            )

        with self.store.batch():
            for v in values:
                self.store.delete(
                    CUSTOM_FIELD_VALUES,
                    (v["entity_type"], v["entity_id"], v["field_definition_id"]),
                )
            for rule in self.store.query(FIELD_DEPENDENCIES, {"field_definition_id": current.id}):
                self.store.delete(FIELD_DEPENDENCIES, rule["id"])
            self.store.delete(FIELD_DEFINITIONS, current.id)

        logger.info(
            "field definition deleted key=%s id=%s values_removed=%d",
            field_key, current.id, len(values),
        )

    # ------------------------------------------------------------------
    # dependency rules
    # ------------------------------------------------------------------

    def add_dependency(self, dependency: FieldDependency) -> FieldDependency:
        if self.get_by_id(dependency.field_definition_id) is None:
            raise UnknownField(
                f"Unknown field id: {dependency.field_definition_id}",
                field_definition_id=dependency.field_definition_id,
            )
        new_id = self.store.write(FIELD_DEPENDENCIES, None, to_record(dependency, exclude={"id"}))
        logger.info(
            "dependency added id=%s field_id=%s on=%s %s -> %s",
            new_id, dependency.field_definition_id, dependency.depends_on_field_key,
            dependency.condition_type.value, dependency.action.value,
        )
        return FieldDependency.model_validate(self.store.read(FIELD_DEPENDENCIES, new_id))

    def remove_dependency(self, dependency_id: int) -> None:
        if not self.store.delete(FIELD_DEPENDENCIES, dependency_id):
            raise DependencyNotFound(f"Unknown dependency: {dependency_id}", dependency_id=dependency_id)
        logger.info("dependency removed id=%s", dependency_id)

    def list_dependencies(self, definition_ids=None) -> list[FieldDependency]:
        """Rules sorted by id ascending (the evaluation order)."""
        wanted = set(definition_ids) if definition_ids is not None else None
        rules = [
            FieldDependency.model_validate(rec)
            for rec in self.store.query(FIELD_DEPENDENCIES)
            if wanted is None or rec["field_definition_id"] in wanted
        ]
        return sorted(rules, key=lambda r: r.id)
