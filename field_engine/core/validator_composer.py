from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Mapping

from field_engine.core.dependency_evaluator import evaluate
from field_engine.core.field_types import TEXT_TYPES, FieldType, as_number, check_value, is_empty
from field_engine.schemas.fields import FieldDependency, FieldRuntimeState

BaseValidator = Callable[[Mapping[str, Any]], dict]
Validator = Callable[[Mapping[str, Any]], dict[str, str]]


def validate_field(field, value: Any, required: bool) -> tuple[str, str] | None:
    """
    Submit-level check of one visible field: required + type + rules.
    ``pattern`` must match the whole value.
    Returns (code, message) for the first failure, or None.
    """
    label = getattr(field, "label", None) or field.field_key
    rules = field.validation_rules

    if is_empty(value):
        if required:
            return "required", f"{label} is required"
        return None

    failure = check_value(field, value)
    if failure is not None:
        return failure

    ftype = FieldType(field.type)

    if ftype == FieldType.NUMBER:
        x = as_number(value)
        if rules.integer and not x.is_integer():
            return "integer", "Must be an integer"
        if rules.min is not None and x < rules.min:
            return "min", f"Must be >= {_fmt(rules.min)}"
        if rules.max is not None and x > rules.max:
            return "max", f"Must be <= {_fmt(rules.max)}"

    elif ftype in TEXT_TYPES:
        s = value.strip()
        if rules.min_length is not None and len(s) < rules.min_length:
            return "min_length", f"Must be >= {rules.min_length} chars"
        if rules.max_length is not None and len(s) > rules.max_length:
            return "max_length", f"Must be <= {rules.max_length} chars"
        if rules.pattern and not re.fullmatch(rules.pattern, value):
            return "pattern", f"{label} has an invalid format"

    return None


def _fmt(x: float) -> str:
    return str(int(x)) if float(x).is_integer() else str(x)


def _field_errors(fields: list, states: Mapping[str, FieldRuntimeState], values: Mapping[str, Any]) -> list[dict]:
    errors: list[dict] = []
    for field in fields:
        state = states[field.field_key]
        if not state.visible:
            continue
        failure = validate_field(field, values.get(field.field_key), state.required)
        if failure is not None:
            code, message = failure
            errors.append({"field": field.field_key, "code": code, "message": message})
    return errors


def _base_errors(
    base_validator: BaseValidator | None,
    states: Mapping[str, FieldRuntimeState],
    values: Mapping[str, Any],
) -> list[dict]:
    """
    Built-in attribute errors, filtered by the resolved form: an error on a
    hidden field is dropped, and so is an empty-value error on a field the
    form no longer requires. Keys outside the form are kept as they are.
    """
    if base_validator is None:
        return []

    errors: list[dict] = []
    for key, message in (base_validator(values) or {}).items():
        empty = is_empty(values.get(key))
        state = states.get(key)
        if state is not None:
            if not state.visible:
                continue
            if empty and not state.required:
                continue
        errors.append({"field": key, "code": "required" if empty else "invalid", "message": message})
    return errors


def collect_errors(
    fields: Iterable,
    dependencies: Iterable[FieldDependency],
    values: Mapping[str, Any],
    current_values: Mapping[str, Any] | None = None,
    base_validator: BaseValidator | None = None,
) -> list[dict]:
    """
    [{"field", "code", "message"}] for the submitted values.

    Built-in attribute errors come first. Field constraints follow for
    every visible field; hidden fields are skipped entirely and
    disabled-but-visible fields are still checked. A built-in error for a
    key is not joined by a field error for the same key.
    """
    fields = list(fields)
    states = evaluate(fields, dependencies, current_values if current_values is not None else values)

    errors = _base_errors(base_validator, states, values)
    seen = {e["field"] for e in errors}
    errors.extend(e for e in _field_errors(fields, states, values) if e["field"] not in seen)
    return errors


def compose(
    base_validator: BaseValidator | None,
    fields: Iterable,
    dependencies: Iterable[FieldDependency],
    current_values: Mapping[str, Any] | None = None,
) -> Validator:
    """
    Build ``validate(values) -> {field_key: message}`` over
    :func:`collect_errors`.

    Runtime state is computed from ``current_values`` (or from the
    validated values when not given). ``fields`` should include hidden
    ones so built-in errors on them can be dropped.

    The returned validator holds only the frozen inputs, so the same values
    always give the same error map.
    """
    fields = tuple(fields)
    dependencies = tuple(dependencies)
    snapshot = dict(current_values) if current_values is not None else None

    def validate(values: Mapping[str, Any]) -> dict[str, str]:
        errors = collect_errors(fields, dependencies, values, snapshot, base_validator)
        return {e["field"]: e["message"] for e in errors}

    return validate
