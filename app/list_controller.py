"""List view over one entity: load, search, paginate and delete."""

from __future__ import annotations

import inspect
import logging
import math
from typing import Any, Awaitable, Callable, Dict, List

from event_bus import RECORD_DELETED, RECORD_EVENTS, EventBus, record_event
from registrar.errors import RecordError
from registrar.field_adapter import EntitySchema, coerce_record_id, to_display

from app.gateway import RecordGateway

logger = logging.getLogger("registrar.lists")

Enricher = Callable[[dict], Dict[str, Any]]
Confirm = Callable[[dict], "Awaitable[bool] | bool"]


def _search_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(str(v) for v in value)
    return str(value)


class ListController:
    def __init__(
        self,
        gateway: RecordGateway,
        schema: EntitySchema,
        *,
        page_size: int = 10,
        bus: EventBus | None = None,
        enrich: Enricher | None = None,
        search_fields: List[str] | None = None,
        where: List[dict] | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._gateway = gateway
        self.schema = schema
        self.page_size = page_size
        self._enrich = enrich
        self._where = where
        self.search_fields = list(search_fields or schema.search_fields)
        self.records: List[dict] = []
        self.items: List[dict] = []
        self.filtered: List[dict] = []
        self.search_term = ""
        self.current_page = 1
        self.loading = False
        self.error: str | None = None
        self._bus = bus
        if bus is not None:
            for name in RECORD_EVENTS:
                bus.subscribe(name, self._on_record_event)

    async def load(self) -> List[dict]:
        self.loading = True
        self.error = None
        try:
            records = await self._gateway.list(self.schema.table, where=self._where, fields=self.schema.projection())
        except RecordError as exc:
            self.error = exc.message
            logger.error("list_load_failed table=%s error=%s", self.schema.table, exc.code)
            raise
        finally:
            self.loading = False
        self.records = records
        self.items = [self._adapt(r) for r in records]
        self._apply_search()
        logger.debug("list_loaded table=%s count=%s", self.schema.table, len(self.items))
        return self.items

    async def retry(self) -> List[dict]:
        return await self.load()

    def _adapt(self, record: dict) -> dict:
        item = to_display(self.schema, record)
        if self._enrich is not None:
            item.update(self._enrich(item))
        return item

    def _apply_search(self) -> None:
        term = self.search_term.lower()
        if not term:
            self.filtered = list(self.items)
            return
        self.filtered = [
            item for item in self.items if any(term in _search_text(item.get(f)).lower() for f in self.search_fields)
        ]

    def set_search_term(self, term: str | None) -> List[dict]:
        self.search_term = (term or "").strip()
        self.current_page = 1
        self._apply_search()
        return self.filtered

    def total_pages(self, size: int | None = None) -> int:
        size = size or self.page_size
        return math.ceil(len(self.filtered) / size)

    def page(self, n: int | None = None, size: int | None = None) -> dict:
        """Return one page of the filtered view.

        Pages are 1-based. A page outside ``[1, totalPages]`` yields no items
        with ``endIndex == startIndex``.
        """
        n = self.current_page if n is None else n
        size = size or self.page_size
        if size < 1:
            raise ValueError("page size must be positive")
        if n < 1:
            start, items = 0, []
        else:
            start = (n - 1) * size
            items = self.filtered[start : start + size]
        return {
            "items": items,
            "totalPages": self.total_pages(size),
            "startIndex": start,
            "endIndex": start + len(items),
            "totalItems": len(self.filtered),
        }

    def go_to_page(self, n: int) -> dict:
        self.current_page = min(max(1, n), max(1, self.total_pages()))
        return self.page()

    def next_page(self) -> dict:
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> dict:
        return self.go_to_page(self.current_page - 1)

    def record_for(self, record_id: Any) -> dict | None:
        rid = coerce_record_id(record_id)
        return next((r for r in self.records if r.get("Id") == rid), None)

    async def delete(self, record_id: Any, confirm: Confirm) -> bool:
        rid = coerce_record_id(record_id)
        item = next((i for i in self.items if i.get("Id") == rid), {"Id": rid})
        answer = confirm(item)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.info("delete_declined table=%s id=%s", self.schema.table, rid)
            return False
        deleted = await self._gateway.delete(self.schema.table, rid)
        if self._bus is not None:
            await self._bus.publish(record_event(RECORD_DELETED, self.schema.entity, self.schema.table, rid))
        else:
            await self.load()
        return deleted

    async def _on_record_event(self, event: dict) -> None:
        if event["payload"]["table"] != self.schema.table:
            return
        await self.load()

    def close(self) -> None:
        if self._bus is None:
            return
        for name in RECORD_EVENTS:
            self._bus.unsubscribe(name, self._on_record_event)
        self._bus = None
