"""Error kinds raised by the field engine services.

These are caller errors: they are never retried and the HTTP layer maps
them to 4xx responses. Field-level validation problems are not exceptions;
the validator returns them as an error map.
"""

from __future__ import annotations


class FieldEngineError(Exception):
    code = "FIELD_ENGINE_ERROR"

    def __init__(self, message: str, **context) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.context}


class DuplicateKey(FieldEngineError):
    code = "DUPLICATE_KEY"


class ImmutableField(FieldEngineError):
    code = "IMMUTABLE_FIELD"


class SystemFieldProtected(FieldEngineError):
    code = "SYSTEM_FIELD_PROTECTED"


class UnknownField(FieldEngineError):
    code = "UNKNOWN_FIELD"


class FieldInUse(FieldEngineError):
    code = "FIELD_IN_USE"


class TemplateNotFound(FieldEngineError):
    code = "TEMPLATE_NOT_FOUND"


class DependencyNotFound(FieldEngineError):
    code = "DEPENDENCY_NOT_FOUND"
