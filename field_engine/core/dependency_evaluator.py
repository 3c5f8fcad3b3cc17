"""
Conditional field state: visible / enabled / required per field, computed
from dependency rules and a snapshot of the current form values.

Pure function of its inputs; safe to call on every keystroke.

Rules are applied in ascending rule id. A rule whose condition holds
writes its action onto the target field; a later rule that touches the
same attribute overwrites it (last write wins, contradictions allowed).

A field governed by at least one ``show`` rule starts hidden and a field
governed by an ``enable`` rule starts disabled: those rules describe when
the field appears / unlocks.

Controlling fields are read from ``current_values`` as-is, even when the
controlling field is itself hidden. Hiding does not cascade down a chain.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from field_engine.core.field_types import (
    ConditionType,
    DependencyAction,
    as_number,
    is_empty,
    is_number,
)
from field_engine.schemas.fields import FieldDependency, FieldRuntimeState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# conditions
# ---------------------------------------------------------------------------

def _values_equal(actual: Any, expected: Any) -> bool:
    if actual is None or expected is None:
        return actual is None and expected is None
    if isinstance(actual, bool) or isinstance(expected, bool):
        return _bool_text(actual) == _bool_text(expected)
    if is_number(actual) or is_number(expected):
        a, b = as_number(actual), as_number(expected)
        if a is not None and b is not None:
            return a == b
    return str(actual) == str(expected)


def _bool_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip().lower()


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _equals(actual, expected) -> bool:
    return _values_equal(actual, expected)


def _not_equals(actual, expected) -> bool:
    return not _values_equal(actual, expected)


def _greater_than(actual, expected) -> bool:
    a, b = as_number(actual), as_number(expected)
    return a is not None and b is not None and a > b


def _less_than(actual, expected) -> bool:
    a, b = as_number(actual), as_number(expected)
    return a is not None and b is not None and a < b


def _contains(actual, expected) -> bool:
    if isinstance(actual, str):
        if isinstance(expected, (list, tuple, set)):
            return any(str(e) in actual for e in expected)
        return expected is not None and str(expected) in actual
    if isinstance(actual, (list, tuple, set)):
        return any(_values_equal(item, e) for item in actual for e in _as_list(expected))
    return False


def _members(expected) -> list:
    # "electronics, tools" is stored by some clients instead of a list
    if isinstance(expected, str):
        return [part.strip() for part in expected.split(",") if part.strip()]
    return _as_list(expected)


def _in(actual, expected) -> bool:
    if actual is None:
        return False
    candidates = _members(expected)
    if isinstance(actual, (list, tuple, set)):
        # every selected item must be allowed
        return bool(actual) and all(any(_values_equal(a, c) for c in candidates) for a in actual)
    return any(_values_equal(actual, c) for c in candidates)


def _not_in(actual, expected) -> bool:
    return not _in(actual, expected)


def _is_empty(actual, expected) -> bool:
    return is_empty(actual)


def _is_not_empty(actual, expected) -> bool:
    return not is_empty(actual)


CONDITIONS: dict[ConditionType, Callable[[Any, Any], bool]] = {
    ConditionType.EQUALS: _equals,
    ConditionType.NOT_EQUALS: _not_equals,
    ConditionType.GREATER_THAN: _greater_than,
    ConditionType.LESS_THAN: _less_than,
    ConditionType.CONTAINS: _contains,
    ConditionType.IN: _in,
    ConditionType.NOT_IN: _not_in,
    ConditionType.IS_EMPTY: _is_empty,
    ConditionType.IS_NOT_EMPTY: _is_not_empty,
}


def condition_holds(rule: FieldDependency, current_values: Mapping[str, Any]) -> bool:
    actual = current_values.get(rule.depends_on_field_key)
    return CONDITIONS[ConditionType(rule.condition_type)](actual, rule.condition_value)


# ---------------------------------------------------------------------------
# actions: (attribute, value) written onto FieldRuntimeState
# ---------------------------------------------------------------------------

ACTIONS: dict[DependencyAction, tuple[str, bool]] = {
    DependencyAction.SHOW: ("visible", True),
    DependencyAction.HIDE: ("visible", False),
    DependencyAction.ENABLE: ("enabled", True),
    DependencyAction.DISABLE: ("enabled", False),
    DependencyAction.SET_REQUIRED: ("required", True),
    DependencyAction.SET_OPTIONAL: ("required", False),
}


def _definition_id(field) -> int | None:
    # FieldDefinition.id or FieldDescriptor.definition_id
    if hasattr(field, "definition_id"):
        return field.definition_id
    return getattr(field, "id", None)


def initial_state(field, rules: Iterable[FieldDependency] = ()) -> FieldRuntimeState:
    actions = {DependencyAction(r.action) for r in rules}
    return FieldRuntimeState(
        visible=getattr(field, "visible", True) and DependencyAction.SHOW not in actions,
        enabled=getattr(field, "editable", True) and DependencyAction.ENABLE not in actions,
        required=bool(field.validation_rules.required),
    )


def evaluate(
    fields: Iterable,
    dependencies: Iterable[FieldDependency],
    current_values: Mapping[str, Any],
) -> dict[str, FieldRuntimeState]:
    """
    Returns {field_key: FieldRuntimeState} for every field given.

    ``fields`` are FieldDefinition or FieldDescriptor objects; rules are
    matched to them through the definition id.
    """
    fields = list(fields)
    by_id: dict[int, str] = {}
    for f in fields:
        fid = _definition_id(f)
        if fid is not None:
            by_id[fid] = f.field_key

    ordered = sorted(dependencies, key=lambda r: (r.id is None, r.id or 0))
    rules_by_key: dict[str, list[FieldDependency]] = {}
    for rule in ordered:
        key = by_id.get(rule.field_definition_id)
        if key is None:
            logger.debug("dependency %s targets unknown field id=%s", rule.id, rule.field_definition_id)
            continue
        rules_by_key.setdefault(key, []).append(rule)

    states = {f.field_key: initial_state(f, rules_by_key.get(f.field_key, ())) for f in fields}

    for rule in ordered:
        key = by_id.get(rule.field_definition_id)
        if key is None or not condition_holds(rule, current_values):
            continue
        attr, value = ACTIONS[DependencyAction(rule.action)]
        setattr(states[key], attr, value)

    return states
