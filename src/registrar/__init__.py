"""Records kernel: error taxonomy, field adapter and entity tables."""

from .errors import (
    FieldValidationFailure,
    FormStateError,
    InvalidArgument,
    InvalidNumeric,
    NotFound,
    RecordError,
    RemoteFailure,
    ValidationRejected,
)
from .field_adapter import EntitySchema, FieldSpec, coerce_record_id, to_display, to_storage
from .schemas import COURSE, DOCUMENT, ENROLLMENT, GRADE, SCHEMAS, STUDENT, schema_for

__all__ = [
    "COURSE",
    "DOCUMENT",
    "ENROLLMENT",
    "EntitySchema",
    "FieldSpec",
    "FieldValidationFailure",
    "FormStateError",
    "GRADE",
    "InvalidArgument",
    "InvalidNumeric",
    "NotFound",
    "RecordError",
    "RemoteFailure",
    "SCHEMAS",
    "STUDENT",
    "ValidationRejected",
    "coerce_record_id",
    "schema_for",
    "to_display",
    "to_storage",
]
