"""In-memory record store used when no hosted backend is configured."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List

from registrar.schemas import SCHEMAS

from app.gateway import RecordGateway


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _same(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is right
    return str(left).strip().lower() == str(right).strip().lower()


def default_unique_fields() -> Dict[str, List[str]]:
    return {schema.table: schema.unique_storage_fields() for schema in SCHEMAS.values() if schema.unique}


class MemoryRecordGateway(RecordGateway):
    """Array-backed tables answering with the hosted store's response envelopes."""

    def __init__(
        self,
        seed: Dict[str, List[dict]] | None = None,
        unique_fields: Dict[str, List[str]] | None = None,
    ) -> None:
        self._tables: Dict[str, Dict[int, dict]] = {}
        self._last_id: Dict[str, int] = {}
        self._unique = default_unique_fields() if unique_fields is None else unique_fields
        for table, rows in (seed or {}).items():
            for row in rows:
                self._insert(table, row)

    def _bucket(self, table: str) -> Dict[int, dict]:
        return self._tables.setdefault(table, {})

    def _insert(self, table: str, values: dict) -> dict:
        record = copy.deepcopy(values)
        given = record.get("Id")
        if isinstance(given, int) and not isinstance(given, bool) and given > 0:
            record_id = given
            self._last_id[table] = max(self._last_id.get(table, 0), given)
        else:
            record_id = self._last_id.get(table, 0) + 1
            self._last_id[table] = record_id
        now = _now()
        record["Id"] = record_id
        record.setdefault("CreatedOn", now)
        record.setdefault("ModifiedOn", now)
        self._bucket(table)[record_id] = record
        return copy.deepcopy(record)

    def _unique_errors(self, table: str, values: dict, exclude_id: int | None = None) -> list[dict]:
        errors = []
        for field in self._unique.get(table, []):
            value = values.get(field)
            if value in (None, ""):
                continue
            for record_id, existing in self._bucket(table).items():
                if record_id != exclude_id and _same(existing.get(field), value):
                    errors.append({"fieldLabel": field, "message": f"{value} already exists"})
                    break
        return errors

    def _matches(self, record: dict, where: List[dict]) -> bool:
        for cond in where:
            field = cond.get("FieldName")
            values = cond.get("Values") or []
            if cond.get("Operator", "EqualTo") != "EqualTo":
                raise ValueError(f"Unsupported operator: {cond.get('Operator')}")
            if not any(_same(record.get(field), v) for v in values):
                return False
        return True

    @staticmethod
    def _project(record: dict, fields: List[dict]) -> dict:
        names = [f.get("field", {}).get("Name") for f in fields if isinstance(f, dict)]
        if not names:
            return copy.deepcopy(record)
        out = {name: copy.deepcopy(record[name]) for name in names if name in record}
        out["Id"] = record["Id"]
        return out

    async def _fetch(self, table: str, params: dict) -> dict:
        items = list(self._bucket(table).values())
        try:
            items = [r for r in items if self._matches(r, params.get("where") or [])]
        except ValueError as exc:
            return {"success": False, "message": str(exc)}
        for order in reversed(params.get("orderBy") or []):
            name = order.get("fieldName")
            descending = str(order.get("sorttype", "ASC")).upper() == "DESC"
            items.sort(key=lambda r: (str(r.get(name) or ""), r["Id"]), reverse=descending)
        paging = params.get("pagingInfo") or {}
        offset = int(paging.get("offset") or 0)
        limit = int(paging.get("limit") or len(items))
        page = items[offset : offset + limit]
        return {"success": True, "data": [self._project(r, params.get("fields") or []) for r in page]}

    async def _get(self, table: str, record_id: int, params: dict) -> dict:
        record = self._bucket(table).get(record_id)
        if record is None:
            return {"success": True, "data": None}
        return {"success": True, "data": self._project(record, params.get("fields") or [])}

    async def _create(self, table: str, params: dict) -> dict:
        results = []
        for values in params.get("records") or []:
            values = {k: v for k, v in values.items() if k != "Id"}
            errors = self._unique_errors(table, values)
            if errors:
                results.append({"success": False, "errors": errors})
                continue
            results.append({"success": True, "data": self._insert(table, values)})
        return {"success": True, "results": results}

    async def _update(self, table: str, params: dict) -> dict:
        results = []
        for values in params.get("records") or []:
            record_id = values.get("Id")
            existing = self._bucket(table).get(record_id)
            if existing is None:
                results.append({"success": False, "message": f"Record {record_id} not found"})
                continue
            errors = self._unique_errors(table, values, exclude_id=record_id)
            if errors:
                results.append({"success": False, "errors": errors})
                continue
            existing.update(copy.deepcopy({k: v for k, v in values.items() if k != "Id"}))
            existing["ModifiedOn"] = _now()
            results.append({"success": True, "data": copy.deepcopy(existing)})
        return {"success": True, "results": results}

    async def _delete(self, table: str, params: dict) -> dict:
        bucket = self._bucket(table)
        results = []
        for record_id in params.get("RecordIds") or []:
            if bucket.pop(record_id, None) is None:
                results.append({"success": False, "message": f"Record {record_id} not found"})
            else:
                results.append({"success": True})
        return {"success": True, "results": results}
