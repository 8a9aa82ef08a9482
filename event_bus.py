"""In-process bus for record change events with envelope validation."""

from __future__ import annotations

import copy
import inspect
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List


Event = Dict[str, Any]
Handler = Callable[[Event], "Awaitable[None] | None"]

RECORD_CREATED = "record.created"
RECORD_UPDATED = "record.updated"
RECORD_DELETED = "record.deleted"
RECORD_EVENTS = (RECORD_CREATED, RECORD_UPDATED, RECORD_DELETED)

logger = logging.getLogger("registrar.events")


@dataclass
class EventError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        return self.message


@dataclass
class EventValidationError(EventError):
    code: str
    path: str | None = None

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        base = f"{self.code}: {self.message}"
        return f"{base} (path={self.path})" if self.path else base


def _raise(code: str, message: str, path: str | None = None) -> None:
    raise EventValidationError(code=code, message=message, path=path)


def _validate_payload(payload: Any) -> None:
    if not isinstance(payload, dict):
        _raise("PAYLOAD_INVALID", "payload must be an object", "payload")
    table = payload.get("table")
    if not isinstance(table, str) or not table:
        _raise("PAYLOAD_TABLE_INVALID", "table must be non-empty string", "payload.table")
    record_id = payload.get("record_id")
    if not isinstance(record_id, int) or isinstance(record_id, bool) or record_id <= 0:
        _raise("PAYLOAD_RECORD_ID_INVALID", "record_id must be a positive integer", "payload.record_id")
    record = payload.get("record")
    if record is not None and not isinstance(record, dict):
        _raise("PAYLOAD_RECORD_INVALID", "record must be object or null", "payload.record")


def _validate_occurred_at(value: Any) -> None:
    if not isinstance(value, str):
        _raise("META_OCCURRED_AT_INVALID", "occurred_at must be string", "meta.occurred_at")
    if not value.endswith("Z"):
        _raise("META_OCCURRED_AT_INVALID", "occurred_at must end with 'Z'", "meta.occurred_at")
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        _raise("META_OCCURRED_AT_INVALID", "occurred_at must be ISO8601", "meta.occurred_at")


def validate_event(event: Any) -> None:
    if not isinstance(event, dict):
        _raise("EVENT_INVALID", "event must be object")
    name = event.get("name")
    if name not in RECORD_EVENTS:
        _raise("EVENT_NAME_INVALID", f"name must be one of {list(RECORD_EVENTS)}", "name")

    _validate_payload(event.get("payload"))

    meta = event.get("meta")
    if not isinstance(meta, dict):
        _raise("META_INVALID", "meta must be object", "meta")
    if not isinstance(meta.get("event_id"), str):
        _raise("META_EVENT_ID_INVALID", "event_id must be string", "meta.event_id")
    _validate_occurred_at(meta.get("occurred_at"))
    if not isinstance(meta.get("entity"), str):
        _raise("META_ENTITY_INVALID", "entity must be string", "meta.entity")


def make_event(name: str, payload: dict, meta: dict) -> Event:
    if not isinstance(meta, dict):
        _raise("META_INVALID", "meta must be object", "meta")

    meta_out = copy.deepcopy(meta)
    meta_out.setdefault("event_id", str(uuid.uuid4()))
    if "occurred_at" not in meta_out:
        meta_out["occurred_at"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    event = {
        "name": name,
        "payload": copy.deepcopy(payload),
        "meta": meta_out,
    }
    validate_event(event)
    return event


def record_event(name: str, entity: str, table: str, record_id: int, record: dict | None = None) -> Event:
    return make_event(name, {"table": table, "record_id": record_id, "record": record}, {"entity": entity})


class EventBus:
    def __init__(self) -> None:
        self._subs: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subs.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> bool:
        handlers = self._subs.get(name)
        if not handlers:
            return False
        try:
            handlers.remove(handler)
            if not handlers:
                del self._subs[name]
            return True
        except ValueError:
            return False

    async def publish(self, event: dict) -> None:
        """Deliver to handlers in subscription order, awaiting async ones.

        A failing handler is logged and does not stop the others.
        """
        validate_event(event)
        for handler in list(self._subs.get(event["name"], [])):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("event_handler_failed name=%s event_id=%s", event["name"], event["meta"]["event_id"])
