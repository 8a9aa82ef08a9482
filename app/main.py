"""Composition root for the college admin records core."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.config import GatewayConfig, load_config, load_env_file

load_env_file(ROOT / "app" / ".env")

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

import anyio

from event_bus import EventBus
from registrar.schemas import COURSE, DOCUMENT, ENROLLMENT, GRADE, SCHEMAS, STUDENT, schema_for

from app.form_session import FormSession
from app.gateway import RecordGateway
from app.list_controller import ListController
from app.reports import dashboard_stats, load_report_data, summarize
from app.stores import MemoryRecordGateway

logger = logging.getLogger("registrar")

ENRICHED_SEARCH = {
    "grade": ("studentName", "courseTitle", "courseCode"),
    "enrollment": ("studentName", "courseTitle", "courseCode"),
    "document": ("studentName",),
}


def build_gateway(config: GatewayConfig) -> RecordGateway:
    if config.backend == "remote":
        from app.stores_remote import RemoteRecordGateway

        logger.info("record_store backend=remote url=%s", config.api_url)
        return RemoteRecordGateway(config)
    logger.info("record_store backend=memory")
    return MemoryRecordGateway()


def _student_name(item: dict) -> str:
    return f"{item.get('firstName', '')} {item.get('lastName', '')}".strip()


@dataclass
class AdminConsole:
    gateway: RecordGateway
    page_size: int = 10
    bus: EventBus = field(default_factory=EventBus)
    lists: Dict[str, ListController] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for entity, schema in SCHEMAS.items():
            extra = ENRICHED_SEARCH.get(entity, ())
            self.lists[entity] = ListController(
                self.gateway,
                schema,
                page_size=self.page_size,
                bus=self.bus,
                enrich=self._enricher(entity),
                search_fields=[*schema.search_fields, *extra],
            )

    def _lookup(self, entity: str, record_id: Any) -> dict | None:
        controller = self.lists[entity]
        return next((i for i in controller.items if str(i.get("Id")) == str(record_id)), None)

    def _enricher(self, entity: str) -> Callable[[dict], dict] | None:
        fields = ENRICHED_SEARCH.get(entity)
        if not fields:
            return None

        def enrich(item: dict) -> dict:
            student = self._lookup("student", item.get("studentId")) or {}
            course = self._lookup("course", item.get("courseId")) or {}
            extra = {
                "studentName": _student_name(student) if student else "Unknown Student",
                "courseTitle": course.get("title") or "Unknown Course",
                "courseCode": course.get("courseCode") or "",
            }
            return {name: extra[name] for name in fields}

        return enrich

    def form(self, entity: str, on_saved=None) -> FormSession:
        return FormSession(self.gateway, schema_for(entity), bus=self.bus, on_saved=on_saved)

    async def load_all(self) -> None:
        # lookups for the enrichers must be in place first
        await self.lists[STUDENT.entity].load()
        await self.lists[COURSE.entity].load()
        for entity in (GRADE.entity, ENROLLMENT.entity, DOCUMENT.entity):
            await self.lists[entity].load()

    async def reports(self) -> dict:
        data = await load_report_data(self.gateway)
        return {"summary": summarize(data), "dashboard": dashboard_stats(data)}

    async def aclose(self) -> None:
        for controller in self.lists.values():
            controller.close()
        await self.gateway.aclose()


def build_console(config: GatewayConfig | None = None) -> AdminConsole:
    config = config or load_config()
    return AdminConsole(build_gateway(config), page_size=config.page_size)


async def _run(config: GatewayConfig) -> None:
    console = build_console(config)
    try:
        await console.load_all()
        for entity, controller in console.lists.items():
            logger.info("loaded entity=%s count=%s", entity, len(controller.items))
        report = await console.reports()
        logger.info("dashboard %s", report["dashboard"])
    finally:
        await console.aclose()


def main() -> None:
    config = load_config()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    anyio.run(_run, config)


if __name__ == "__main__":
    main()
