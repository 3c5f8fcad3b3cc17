"""
Record persistence used by the engine services.

The engine only ever talks to a ``RecordStore``: read / query / write /
delete on named collections, plus ``batch()`` for groups of writes that must
commit together. Two implementations ship here:

  InMemoryRecordStore    dict-backed, for tests and embedding
  SqlAlchemyRecordStore  one ORM table per collection
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Hashable, Iterator, Protocol

from sqlalchemy.orm import Session

from field_engine.db.base import utcnow
from field_engine.models import (
    CustomFieldValueRow,
    FieldDefinitionRow,
    FieldDependencyRow,
    FormTemplateRow,
    ModuleFieldConfigurationRow,
)

logger = logging.getLogger(__name__)

FIELD_DEFINITIONS = "field_definitions"
FIELD_DEPENDENCIES = "field_dependencies"
CUSTOM_FIELD_VALUES = "custom_field_values"
FORM_TEMPLATES = "form_templates"
MODULE_FIELD_CONFIGURATIONS = "module_field_configurations"

# natural key of each collection, in key-tuple order
KEY_COLUMNS: dict[str, tuple[str, ...]] = {
    FIELD_DEFINITIONS: ("id",),
    FIELD_DEPENDENCIES: ("id",),
    FORM_TEMPLATES: ("id",),
    CUSTOM_FIELD_VALUES: ("entity_type", "entity_id", "field_definition_id"),
    MODULE_FIELD_CONFIGURATIONS: ("module", "field_key", "owner_id"),
}

Key = Hashable

# maintained by the store, never taken from the record
TIMESTAMPS = ("created_at", "updated_at")


class RecordStore(Protocol):
    def read(self, collection: str, key: Key) -> dict | None: ...

    def query(self, collection: str, filter: dict | None = None) -> list[dict]: ...

    def write(self, collection: str, key: Key | None, record: dict) -> Key: ...

    def delete(self, collection: str, key: Key) -> bool: ...

    def batch(self): ...


def _key_columns(collection: str) -> tuple[str, ...]:
    try:
        return KEY_COLUMNS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


def _key_tuple(collection: str, key: Key) -> tuple:
    cols = _key_columns(collection)
    if len(cols) == 1:
        return (key,)
    if not isinstance(key, tuple) or len(key) != len(cols):
        raise ValueError(f"{collection} key must be a tuple of {cols}")
    return key


def _matches(record: dict, filter: dict | None) -> bool:
    if not filter:
        return True
    return all(record.get(k) == v for k, v in filter.items())


class InMemoryRecordStore:
    """
    Records are deep-copied in and out so callers never share state with
    the store. ``batch()`` snapshots everything and restores it on error.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[Key, dict]] = {c: {} for c in KEY_COLUMNS}
        self._next_id: dict[str, int] = {c: 1 for c in KEY_COLUMNS}

    def read(self, collection: str, key: Key) -> dict | None:
        _key_columns(collection)
        rec = self._data[collection].get(key)
        return copy.deepcopy(rec) if rec is not None else None

    def query(self, collection: str, filter: dict | None = None) -> list[dict]:
        _key_columns(collection)
        return [
            copy.deepcopy(rec)
            for _, rec in sorted(self._data[collection].items(), key=lambda kv: _sort_key(kv[0]))
            if _matches(rec, filter)
        ]

    def write(self, collection: str, key: Key | None, record: dict) -> Key:
        cols = _key_columns(collection)
        rows = self._data[collection]
        now = utcnow()

        if key is None:
            if cols != ("id",):
                raise ValueError(f"{collection} needs an explicit key")
            key = self._next_id[collection]
        else:
            _key_tuple(collection, key)

        if cols == ("id",):
            self._next_id[collection] = max(self._next_id[collection], int(key) + 1)

        new = copy.deepcopy(record)
        for col, part in zip(cols, _key_tuple(collection, key)):
            new[col] = part

        existing = rows.get(key)
        new["created_at"] = existing["created_at"] if existing else now
        new["updated_at"] = now
        rows[key] = new
        return key

    def delete(self, collection: str, key: Key) -> bool:
        _key_columns(collection)
        return self._data[collection].pop(key, None) is not None

    @contextmanager
    def batch(self) -> Iterator["InMemoryRecordStore"]:
        snapshot = copy.deepcopy(self._data)
        next_ids = dict(self._next_id)
        try:
            yield self
        except Exception:
            self._data = snapshot
            self._next_id = next_ids
            raise


def _sort_key(key: Key) -> tuple:
    # None sorts first inside composite keys (global rows before owner rows)
    parts = key if isinstance(key, tuple) else (key,)
    return tuple((p is not None, p if p is not None else 0) for p in parts)


class SqlAlchemyRecordStore:
    """
    Each collection maps to one ORM table; keys are looked up through the
    table's natural-key columns. Writes are flushed immediately, the
    surrounding ``get_db`` (or the caller) owns the commit.
    """

    MODELS = {
        FIELD_DEFINITIONS: FieldDefinitionRow,
        FIELD_DEPENDENCIES: FieldDependencyRow,
        CUSTOM_FIELD_VALUES: CustomFieldValueRow,
        FORM_TEMPLATES: FormTemplateRow,
        MODULE_FIELD_CONFIGURATIONS: ModuleFieldConfigurationRow,
    }

    def __init__(self, db: Session) -> None:
        self.db = db

    def _model(self, collection: str):
        _key_columns(collection)
        return self.MODELS[collection]

    def _row(self, collection: str, key: Key):
        model = self._model(collection)
        criteria = dict(zip(_key_columns(collection), _key_tuple(collection, key)))
        return self.db.query(model).filter_by(**criteria).one_or_none()

    @staticmethod
    def _to_dict(row) -> dict:
        mapper = row.__mapper__
        out = {attr.key: getattr(row, attr.key) for attr in mapper.column_attrs}
        if "id" not in KEY_COLUMNS.get(row.__tablename__, ()):
            out.pop("id", None)
        return copy.deepcopy(out)

    def read(self, collection: str, key: Key) -> dict | None:
        row = self._row(collection, key)
        return self._to_dict(row) if row is not None else None

    def query(self, collection: str, filter: dict | None = None) -> list[dict]:
        model = self._model(collection)
        q = self.db.query(model)
        if filter:
            q = q.filter_by(**filter)
        order = [getattr(model, c) for c in _key_columns(collection)]
        return [self._to_dict(r) for r in q.order_by(*order).all()]

    def write(self, collection: str, key: Key | None, record: dict) -> Key:
        model = self._model(collection)
        cols = _key_columns(collection)
        columns = {attr.key for attr in model.__mapper__.column_attrs}
        values = {k: v for k, v in record.items() if k in columns and k not in TIMESTAMPS}
        now = utcnow()
        stamps = {c: now for c in TIMESTAMPS if c in columns}

        row = self._row(collection, key) if key is not None else None
        if row is None:
            if key is not None:
                values.update(zip(cols, _key_tuple(collection, key)))
            elif cols == ("id",):
                values.pop("id", None)
            else:
                raise ValueError(f"{collection} needs an explicit key")
            row = model(**values, **stamps)
            self.db.add(row)
        else:
            for k, v in values.items():
                if k not in cols:
                    setattr(row, k, v)
            if "updated_at" in stamps:
                row.updated_at = stamps["updated_at"]

        self.db.flush()
        if cols == ("id",):
            return row.id
        return tuple(getattr(row, c) for c in cols)

    def delete(self, collection: str, key: Key) -> bool:
        row = self._row(collection, key)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True

    @contextmanager
    def batch(self) -> Iterator["SqlAlchemyRecordStore"]:
        # savepoint: a failed batch leaves earlier writes in the session alone
        try:
            with self.db.begin_nested():
                yield self
        except Exception:
            logger.debug("rolled back record batch")
            raise
