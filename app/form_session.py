"""Create/edit form session: draft, field errors and submission."""

from __future__ import annotations

import copy
import inspect
import logging
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List

from event_bus import RECORD_CREATED, RECORD_UPDATED, EventBus, record_event
from registrar.errors import FieldValidationFailure, FormStateError, RecordError, rejected
from registrar.field_adapter import SET, EntitySchema, coerce_record_id, to_display, to_storage

from app.gateway import RecordGateway
from app.records_validation import validate, validate_upload

logger = logging.getLogger("registrar.forms")

CLOSED = "closed"
OPEN_FOR_CREATE = "open_for_create"
OPEN_FOR_EDIT = "open_for_edit"
SUBMITTING = "submitting"
OPEN_STATES = (OPEN_FOR_CREATE, OPEN_FOR_EDIT)

SavedCallback = Callable[[dict], "Awaitable[None] | None"]


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _result(ok: bool, errors: Dict[str, str], record: dict | None, error: Exception | None) -> dict:
    return {"ok": ok, "errors": dict(errors), "record": record, "error": error}


class FormSession:
    def __init__(
        self,
        gateway: RecordGateway,
        schema: EntitySchema,
        bus: EventBus | None = None,
        on_saved: SavedCallback | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._gateway = gateway
        self.schema = schema
        self._bus = bus
        self._on_saved = on_saved
        self._today = today or date.today
        self._generation = 0
        self.state = CLOSED
        self.record_id: int | None = None
        self.draft: Dict[str, Any] = {}
        self.errors: Dict[str, str] = {}
        self.alert: str | None = None
        self.history: List[dict] = []

    @property
    def is_open(self) -> bool:
        return self.state in OPEN_STATES

    def _transition(self, to_state: str, reason: str) -> None:
        self.history.append({"at": _now(), "from_state": self.state, "to_state": to_state, "reason": reason})
        self.state = to_state

    def _reset(self, to_state: str, reason: str) -> None:
        if self.state == SUBMITTING:
            raise FormStateError("A submission is in progress", "state")
        self._generation += 1
        self.errors = {}
        self.alert = None
        self._transition(to_state, reason)

    def open_for_create(self) -> dict:
        self._reset(OPEN_FOR_CREATE, "create")
        self.record_id = None
        draft = to_display(self.schema, {})
        if self.schema.defaults is not None:
            draft.update(self.schema.defaults(self._today()))
        self.draft = draft
        return copy.deepcopy(self.draft)

    def open_for_edit(self, record: dict) -> dict:
        record_id = coerce_record_id(record.get("Id"))
        self._reset(OPEN_FOR_EDIT, "edit")
        self.record_id = record_id
        self.draft = to_display(self.schema, record)
        return copy.deepcopy(self.draft)

    def _require_open(self) -> None:
        if not self.is_open:
            raise FormStateError(f"Form is {self.state}", "state")

    def _touch(self, name: str) -> None:
        # a displayed error goes away on the next edit of that field only
        self.errors.pop(name, None)

    def set_field(self, name: str, value: Any) -> None:
        self._require_open()
        if self.schema.spec_for(name) is None:
            raise FormStateError(f"Unknown field: {name}", name)
        self.draft[name] = value
        derive = self.schema.derived.get(name)
        if derive is not None and self.state == OPEN_FOR_CREATE:
            self.draft.update(derive(value))
        self._touch(name)

    def toggle_option(self, name: str, option: str) -> List[str]:
        self._require_open()
        spec = self.schema.spec_for(name)
        if spec is None or spec.kind != SET:
            raise FormStateError(f"{name} is not a multi-choice field", name)
        current = list(self.draft.get(name) or [])
        if option in current:
            current.remove(option)
        else:
            current.append(option)
        self.draft[name] = current
        self._touch(name)
        return list(current)

    def attach_file(self, file_name: str, size: int, mime_type: str, url: str = "") -> bool:
        self._require_open()
        if self.schema.spec_for("fileName") is None:
            raise FormStateError(f"{self.schema.entity} does not take file uploads", "fileName")
        message = validate_upload(file_name, size, mime_type)
        if message:
            self.errors["fileName"] = message
            return False
        self.draft.update(
            {
                "fileName": file_name,
                "fileSize": str(size),
                "fileType": mime_type.split("/")[-1],
                "fileUrl": url,
            }
        )
        self._touch("fileName")
        return True

    def dismiss_alert(self) -> None:
        self.alert = None

    def cancel(self) -> None:
        if self.state == CLOSED:
            return
        self._generation += 1
        self._transition(CLOSED, "cancel")
        self.draft = {}
        self.errors = {}
        self.alert = None
        self.record_id = None

    def _map_field_errors(self, exc: FieldValidationFailure) -> Dict[str, str]:
        mapped: Dict[str, str] = {}
        for item in exc.errors or [{"field": exc.path, "message": exc.message}]:
            name = self.schema.display_name(item.get("field"))
            if name and name not in mapped:
                mapped[name] = item.get("message") or exc.message
        return mapped

    async def _announce(self, name: str, record: dict, record_id: int | None) -> None:
        record_id = record.get("Id") or record_id
        if self._bus is not None and record_id:
            event = record_event(name, self.schema.entity, self.schema.table, coerce_record_id(record_id), record)
            await self._bus.publish(event)
        if self._on_saved is not None:
            result = self._on_saved(record)
            if inspect.isawaitable(result):
                await result

    async def submit(self) -> dict:
        if self.state == SUBMITTING:
            raise FormStateError("A submission is already in progress", "state")
        self._require_open()
        record_id = self.record_id
        errors = validate(self.schema, self.draft, for_create=record_id is None)
        self.errors = errors
        if errors:
            logger.info("form_rejected entity=%s fields=%s", self.schema.entity, sorted(errors))
            return _result(False, errors, None, rejected(errors))

        open_state = self.state
        generation = self._generation
        self.alert = None
        self._transition(SUBMITTING, "submit")
        draft = dict(self.draft)
        for name in self.schema.stamped:
            draft[name] = _now()
        try:
            storage = to_storage(self.schema, draft)
            if record_id is None:
                saved = await self._gateway.create(self.schema.table, storage)
            else:
                saved = await self._gateway.update(self.schema.table, record_id, storage)
        except RecordError as exc:
            logger.warning("form_submit_failed entity=%s id=%s error=%s", self.schema.entity, record_id, exc.code)
            if generation != self._generation:
                return _result(False, {}, None, exc)
            self._transition(open_state, "submit_failed")
            if isinstance(exc, FieldValidationFailure):
                self.errors.update(self._map_field_errors(exc))
            self.alert = str(exc) if isinstance(exc, FieldValidationFailure) else exc.message
            return _result(False, self.errors, None, exc)
        except Exception:
            if generation == self._generation:
                self._transition(open_state, "submit_error")
            raise

        # the record is persisted; leave SUBMITTING before any listener runs
        if generation == self._generation:
            self._transition(CLOSED, "saved")
            self.draft = {}
            self.record_id = None
        logger.info("form_saved entity=%s id=%s", self.schema.entity, saved.get("Id"))
        await self._announce(RECORD_CREATED if record_id is None else RECORD_UPDATED, saved, record_id)
        return _result(True, {}, saved, None)
