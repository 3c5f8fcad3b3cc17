"""
Closed set of field types and the per-type tables that go with them.

Every behaviour that differs by field type (value check, display
formatting) is a lookup keyed by ``FieldType``; there is no subclass per type.
"""

from __future__ import annotations

import math
import re
import unicodedata
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable

GLOBAL_MODULE = "global"
EMPTY_DISPLAY = "—"

FIELD_KEY_RE = re.compile(r"^[a-z_][a-z0-9_]*$")

# Characters NFKD does not decompose to ASCII
_TRANSLITERATION = {
    "ı": "i",
    "İ": "I",
    "ß": "ss",
    "æ": "ae",
    "Æ": "AE",
    "ø": "o",
    "Ø": "O",
    "đ": "d",
    "Đ": "D",
    "ł": "l",
    "Ł": "L",
}


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    BOOLEAN = "boolean"
    TEXTAREA = "textarea"
    SIGNATURE = "signature"
    IMAGE = "image"


class ConditionType(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    IN = "in"
    NOT_IN = "not_in"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class DependencyAction(str, Enum):
    SHOW = "show"
    HIDE = "hide"
    ENABLE = "enable"
    DISABLE = "disable"
    SET_REQUIRED = "set_required"
    SET_OPTIONAL = "set_optional"


class FormView(str, Enum):
    FORM = "form"
    LIST = "list"
    DETAIL = "detail"


TEXT_TYPES = frozenset({FieldType.TEXT, FieldType.TEXTAREA})


# ---------------------------------------------------------------------------
# value helpers
# ---------------------------------------------------------------------------

def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_number(value: Any) -> float | None:
    """
    Numeric view of a value: real numbers and numeric strings.
    Booleans, NaN/inf and anything else -> None.
    """
    if is_number(value):
        x = float(value)
    elif isinstance(value, str):
        try:
            x = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return x if math.isfinite(x) else None


def is_empty(value: Any) -> bool:
    """None, blank strings and empty collections are empty; False and 0 are not."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def option_values(field) -> list[Any]:
    return [_option_attr(o, "value") for o in (getattr(field, "options", None) or [])]


def _option_attr(option, name: str) -> Any:
    if isinstance(option, dict):
        return option.get(name)
    return getattr(option, name, None)


# ---------------------------------------------------------------------------
# per-type value checks
#
# Each check gets (field, value) with a non-empty value and returns
# (code, message) on failure or None when the value has the right shape.
# ---------------------------------------------------------------------------

def _check_text(field, value):
    if not isinstance(value, str):
        return "type", "Must be text"
    return None


def _check_number(field, value):
    if as_number(value) is None:
        return "type", "Must be a number"
    return None


def _check_date(field, value):
    if isinstance(value, (date, datetime)):
        return None
    if isinstance(value, str):
        try:
            date.fromisoformat(value.strip()[:10])
            return None
        except ValueError:
            pass
    return "type", "Must be ISO date YYYY-MM-DD"


def _check_select(field, value):
    allowed = option_values(field)
    if not allowed:
        return None
    if value in allowed or str(value) in {str(v) for v in allowed}:
        return None
    return "choice", "Must be one of allowed choices"


def _check_boolean(field, value):
    if not isinstance(value, bool):
        return "type", "Must be true or false"
    return None


def _check_reference(field, value):
    # signature/image hold a stored file reference (uri or data url)
    if not isinstance(value, str):
        return "type", "Must be a file reference"
    return None


VALUE_CHECKS: dict[FieldType, Callable[[Any, Any], tuple[str, str] | None]] = {
    FieldType.TEXT: _check_text,
    FieldType.TEXTAREA: _check_text,
    FieldType.NUMBER: _check_number,
    FieldType.DATE: _check_date,
    FieldType.SELECT: _check_select,
    FieldType.BOOLEAN: _check_boolean,
    FieldType.SIGNATURE: _check_reference,
    FieldType.IMAGE: _check_reference,
}


def check_value(field, value: Any) -> tuple[str, str] | None:
    return VALUE_CHECKS[FieldType(field.type)](field, value)


# ---------------------------------------------------------------------------
# display formatting
# ---------------------------------------------------------------------------

def _format_number(field, value):
    x = as_number(value)
    if x is None:
        return str(value)
    if x.is_integer():
        return f"{int(x):,}"
    return f"{x:,.2f}"


def _format_date(field, value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return str(value)


def _format_select(field, value):
    for option in getattr(field, "options", None) or []:
        option_value = _option_attr(option, "value")
        if option_value == value or str(option_value) == str(value):
            return str(_option_attr(option, "label"))
    return str(value)


def _format_boolean(field, value):
    return "Yes" if value else "No"


FORMATTERS: dict[FieldType, Callable[[Any, Any], str]] = {
    FieldType.NUMBER: _format_number,
    FieldType.DATE: _format_date,
    FieldType.SELECT: _format_select,
    FieldType.BOOLEAN: _format_boolean,
}


def format_value(field, value: Any) -> str:
    if is_empty(value):
        return EMPTY_DISPLAY
    formatter = FORMATTERS.get(FieldType(field.type))
    if formatter is None:
        return str(value)
    return formatter(field, value)


# ---------------------------------------------------------------------------
# field keys
# ---------------------------------------------------------------------------

def generate_field_key(label: str) -> str:
    """
    "Ürün Adı" -> "urun_adi"
    """
    text = "".join(_TRANSLITERATION.get(ch, ch) for ch in label)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.encode("ascii", "ignore").decode("ascii").lower().strip()
    text = re.sub(r"[^a-z0-9_]", "_", text)
    text = re.sub(r"_+", "_", text)
    text = text.strip("_")
    if text and text[0].isdigit():
        text = f"_{text}"
    return text


def is_valid_field_key(key: str) -> bool:
    return bool(FIELD_KEY_RE.match(key or ""))
