"""Record gateway: async CRUD against one named record-store table.

Subclasses supply the five wire primitives (``_fetch``, ``_get``, ``_create``,
``_update``, ``_delete``) and return the record store's response envelopes;
this base class owns identity coercion and response normalization so the
memory and remote implementations behave the same way.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from registrar.errors import NotFound, RemoteFailure, field_failure
from registrar.field_adapter import coerce_record_id

logger = logging.getLogger("registrar.gateway")

DEFAULT_ORDER = [{"fieldName": "CreatedOn", "sorttype": "DESC"}]
DEFAULT_LIMIT = 1000


def fields_param(fields: List[str] | None) -> list[dict]:
    return [{"field": {"Name": name}} for name in fields or []]


def where_equals(field: str, value: Any) -> dict:
    return {"FieldName": field, "Operator": "EqualTo", "Values": [value]}


def _check_response(response: Any, op: str, table: str) -> dict:
    if not isinstance(response, dict):
        logger.error("record_%s_failed table=%s reason=malformed_response", op, table)
        raise RemoteFailure(f"Malformed response from record store ({op} {table})", table)
    if not response.get("success"):
        message = response.get("message") or f"Failed to {op} records in {table}"
        logger.error("record_%s_failed table=%s message=%s", op, table, message)
        raise RemoteFailure(message, table)
    return response


def _raise_failed(failed: List[dict], op: str, table: str) -> None:
    field_errors: List[dict] = []
    for result in failed:
        for err in result.get("errors") or []:
            if not isinstance(err, dict):
                continue
            field_errors.append(
                {
                    "field": err.get("fieldLabel") or err.get("fieldName"),
                    "message": err.get("message") or "Invalid value",
                }
            )
    logger.error("record_%s_rejected table=%s failed=%s", op, table, len(failed))
    if field_errors:
        first = field_errors[0]
        for extra in field_errors[1:]:
            logger.warning(
                "record_%s_field_error table=%s field=%s message=%s", op, table, extra["field"], extra["message"]
            )
        raise field_failure(first["field"], first["message"], field_errors)
    message = next((r.get("message") for r in failed if r.get("message")), None)
    raise RemoteFailure(message or f"Failed to {op} record in {table}", table)


def _single_result(response: dict, op: str, table: str) -> dict:
    results = response.get("results")
    if not isinstance(results, list) or not results:
        logger.error("record_%s_failed table=%s reason=empty_results", op, table)
        raise RemoteFailure(f"Record store returned no results ({op} {table})", table)
    failed = [r for r in results if not (isinstance(r, dict) and r.get("success"))]
    if failed:
        _raise_failed([r for r in failed if isinstance(r, dict)], op, table)
    data = results[0].get("data")
    if not isinstance(data, dict):
        raise RemoteFailure(f"Record store returned no data ({op} {table})", table)
    return data


class RecordGateway:
    fetch_limit = DEFAULT_LIMIT

    async def list(
        self,
        table: str,
        *,
        order_by: List[dict] | None = None,
        limit: int | None = None,
        offset: int = 0,
        where: List[dict] | None = None,
        fields: List[str] | None = None,
    ) -> list[dict]:
        params: Dict[str, Any] = {
            "fields": fields_param(fields),
            "orderBy": order_by or DEFAULT_ORDER,
            "pagingInfo": {"limit": limit or self.fetch_limit, "offset": max(0, int(offset))},
        }
        if where:
            params["where"] = where
        response = _check_response(await self._fetch(table, params), "list", table)
        data = response.get("data") or []
        return [dict(row) for row in data if isinstance(row, dict)]

    async def get_by_id(self, table: str, record_id: Any, *, fields: List[str] | None = None) -> dict:
        rid = coerce_record_id(record_id)
        response = _check_response(await self._get(table, rid, {"fields": fields_param(fields)}), "get", table)
        data = response.get("data")
        if not isinstance(data, dict) or not data:
            raise NotFound(f"Record {rid} not found in {table}", table)
        return dict(data)

    async def create(self, table: str, record: dict) -> dict:
        payload = {k: v for k, v in record.items() if k != "Id"}
        response = _check_response(await self._create(table, {"records": [payload]}), "create", table)
        return _single_result(response, "create", table)

    async def update(self, table: str, record_id: Any, record: dict) -> dict:
        rid = coerce_record_id(record_id)
        payload = dict(record)
        payload["Id"] = rid
        response = _check_response(await self._update(table, {"records": [payload]}), "update", table)
        return _single_result(response, "update", table)

    async def delete(self, table: str, record_id: Any) -> bool:
        rid = coerce_record_id(record_id)
        response = _check_response(await self._delete(table, {"RecordIds": [rid]}), "delete", table)
        results = response.get("results") or []
        deleted = [r for r in results if isinstance(r, dict) and r.get("success")]
        for result in results:
            if isinstance(result, dict) and not result.get("success"):
                logger.info("record_delete_skipped table=%s id=%s message=%s", table, rid, result.get("message"))
        return len(deleted) > 0

    async def aclose(self) -> None:
        return None

    async def _fetch(self, table: str, params: dict) -> dict:
        raise NotImplementedError

    async def _get(self, table: str, record_id: int, params: dict) -> dict:
        raise NotImplementedError

    async def _create(self, table: str, params: dict) -> dict:
        raise NotImplementedError

    async def _update(self, table: str, params: dict) -> dict:
        raise NotImplementedError

    async def _delete(self, table: str, params: dict) -> dict:
        raise NotImplementedError
