"""Error taxonomy shared by the adapter, gateway and form layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class RecordError(Exception):
    code: str
    message: str
    path: str | None = None

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        base = f"{self.code}: {self.message}"
        return f"{base} (path={self.path})" if self.path else base


class NotFound(RecordError):
    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__("NOT_FOUND", message, path)


class InvalidArgument(RecordError):
    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__("INVALID_ARGUMENT", message, path)


class InvalidNumeric(InvalidArgument):
    pass


class RemoteFailure(RecordError):
    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__("REMOTE_FAILURE", message, path)


class FormStateError(RecordError):
    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__("FORM_STATE_INVALID", message, path)


@dataclass
class FieldValidationFailure(RecordError):
    """Rejection reported by the record store for one submitted record.

    ``path`` names the first offending storage field; ``errors`` keeps every
    ``{"field", "message"}`` pair the store reported, in order.
    """

    errors: List[dict] = field(default_factory=list)

    @property
    def field_name(self) -> str | None:
        return self.path

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass
class ValidationRejected(RecordError):
    errors: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        fields = ", ".join(sorted(self.errors))
        return f"{self.message} ({fields})" if fields else self.message


def field_failure(field_name: str | None, message: str, errors: List[dict] | None = None) -> FieldValidationFailure:
    return FieldValidationFailure("FIELD_VALIDATION_FAILED", message, field_name, list(errors or []))


def rejected(errors: Dict[str, str]) -> ValidationRejected:
    return ValidationRejected("VALIDATION_REJECTED", "Please fix the highlighted fields", None, dict(errors))
