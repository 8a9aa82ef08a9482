"""Field adapter between display models and ``_c`` storage records."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterable, Mapping, Tuple

from .errors import InvalidArgument, InvalidNumeric


TEXT = "text"
INT = "int"
DECIMAL = "decimal"
SET = "set"
BOOL = "bool"

NUMERIC_KINDS = (INT, DECIMAL)
SYSTEM_FIELDS = ("Name", "Tags", "Owner", "CreatedOn", "CreatedBy", "ModifiedOn", "ModifiedBy")

_MISSING = object()
_RECORD_ID_RE = re.compile(r"^\d+$")
_TRUE_TEXT = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class FieldSpec:
    name: str
    storage: str
    kind: str = TEXT
    default: Any = None
    required: bool = False
    legacy: Tuple[str, ...] = ()

    def read_keys(self) -> Tuple[str, ...]:
        return (self.storage, self.name, *self.legacy)


@dataclass(frozen=True)
class EntitySchema:
    entity: str
    table: str
    fields: Tuple[FieldSpec, ...]
    search_fields: Tuple[str, ...] = ()
    unique: Tuple[str, ...] = ()
    stamped: Tuple[str, ...] = ()
    label: Callable[[Mapping[str, Any]], str] | None = None
    defaults: Callable[[date], Dict[str, Any]] | None = None
    derived: Mapping[str, Callable[[Any], Dict[str, Any]]] = field(default_factory=dict)

    def spec_for(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def storage_name(self, name: str) -> str | None:
        spec = self.spec_for(name)
        return spec.storage if spec else None

    def display_name(self, storage: str | None) -> str | None:
        if not storage:
            return None
        for spec in self.fields:
            if storage in (spec.storage, spec.name):
                return spec.name
        return None

    def projection(self) -> list[str]:
        return [*SYSTEM_FIELDS, *(spec.storage for spec in self.fields)]

    def unique_storage_fields(self) -> list[str]:
        return [self.storage_name(name) for name in self.unique if self.storage_name(name)]


def coerce_record_id(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidArgument(f"Invalid record id: {value!r}", "Id")
    if isinstance(value, int):
        record_id = value
    elif isinstance(value, float) and math.isfinite(value) and value.is_integer():
        record_id = int(value)
    elif isinstance(value, str) and _RECORD_ID_RE.match(value.strip()):
        record_id = int(value.strip())
    else:
        raise InvalidArgument(f"Invalid record id: {value!r}", "Id")
    if record_id <= 0:
        raise InvalidArgument(f"Invalid record id: {value!r}", "Id")
    return record_id


def number_text(value: Any) -> str:
    """Render a stored number the way a text input shows it (``4.0`` -> ``"4"``)."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value).strip()


def split_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        parts = value
    else:
        parts = [value]
    items = [str(p).strip() for p in parts]
    return list(dict.fromkeys(p for p in items if p))


def join_list(value: Any) -> str:
    return ",".join(split_list(value))


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_TEXT
    return bool(value)


def _lookup(record: Mapping[str, Any], key: str) -> Any:
    current: Any = record
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _read(spec: FieldSpec, record: Mapping[str, Any]) -> Any:
    for key in spec.read_keys():
        value = _lookup(record, key)
        if value is _MISSING or value is None or value == "":
            continue
        return value
    return _MISSING


def _display_value(spec: FieldSpec, raw: Any) -> Any:
    if spec.kind in NUMERIC_KINDS:
        return number_text(spec.default if raw is _MISSING else raw)
    if spec.kind == SET:
        return split_list(spec.default if raw is _MISSING else raw)
    if spec.kind == BOOL:
        return coerce_bool(spec.default if raw is _MISSING else raw)
    if raw is _MISSING:
        return "" if spec.default is None else str(spec.default)
    return str(raw)


def _parse_number(spec: FieldSpec, raw: Any) -> int | float | None:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        number = float(raw)
    else:
        text = "" if raw is None else str(raw).strip()
        if not text:
            if spec.default is not None:
                return spec.default
            if spec.required:
                raise InvalidNumeric(f"{spec.name} is required", spec.name)
            return None
        try:
            number = float(text)
        except ValueError:
            number = math.nan
    if not math.isfinite(number):
        if spec.required:
            raise InvalidNumeric(f"{spec.name} must be a number", spec.name)
        return spec.default
    if spec.kind == INT:
        if not number.is_integer():
            raise InvalidNumeric(f"{spec.name} must be a whole number", spec.name)
        return int(number)
    return number


def _storage_value(spec: FieldSpec, raw: Any) -> Any:
    if spec.kind in NUMERIC_KINDS:
        return _parse_number(spec, raw)
    if spec.kind == SET:
        return join_list(raw)
    if spec.kind == BOOL:
        if raw is None:
            return bool(spec.default)
        return coerce_bool(raw)
    if raw is None or raw == "":
        return "" if spec.default is None else spec.default
    return raw if isinstance(raw, str) else str(raw)


def to_display(schema: EntitySchema, record: Mapping[str, Any] | None) -> dict:
    """Adapt one storage record (or a legacy camelCase record) for the forms.

    Every declared field is present in the result. Numbers become strings,
    comma-joined lists become lists and the ``Id`` identity is carried over.
    """
    record = record or {}
    display: Dict[str, Any] = {}
    if record.get("Id") is not None:
        display["Id"] = coerce_record_id(record["Id"])
    for spec in schema.fields:
        display[spec.name] = _display_value(spec, _read(spec, record))
    return display


def to_storage(schema: EntitySchema, display: Mapping[str, Any]) -> dict:
    record: Dict[str, Any] = {}
    if display.get("Id") not in (None, ""):
        record["Id"] = coerce_record_id(display["Id"])
    for spec in schema.fields:
        record[spec.storage] = _storage_value(spec, display.get(spec.name))
    if schema.label is not None:
        record["Name"] = schema.label(display)
    return record
