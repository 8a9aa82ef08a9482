"""Hosted record store gateway over HTTPS (httpx)."""

from __future__ import annotations

import logging
import time
from urllib.parse import quote

import httpx

from registrar.errors import RemoteFailure

from app.config import GatewayConfig
from app.gateway import RecordGateway

logger = logging.getLogger("registrar.gateway.remote")


def _error_message(res: httpx.Response) -> str:
    try:
        body = res.json()
    except ValueError:
        return res.text[:200]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return res.text[:200]


class RemoteRecordGateway(RecordGateway):
    def __init__(self, config: GatewayConfig, client: httpx.AsyncClient | None = None) -> None:
        if not config.api_url:
            raise RuntimeError("REGISTRAR_API_URL is required for the remote record store")
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout)
        self._owns_client = client is None
        self.fetch_limit = config.fetch_limit

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._config.public_key}",
            "X-Apper-Project-Id": self._config.project_id,
            "Accept": "application/json",
        }

    def _url(self, table: str, suffix: str = "") -> str:
        return f"{self._config.api_url}/tables/{quote(table, safe='')}/records{suffix}"

    async def _send(self, method: str, url: str, body: dict, op: str, table: str) -> dict:
        start = time.perf_counter()
        try:
            res = await self._client.request(method, url, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error("record_store_transport_error op=%s table=%s error=%s", op, table, exc)
            raise RemoteFailure(f"Record store unreachable ({op} {table}): {exc}", table) from exc
        elapsed_ms = (time.perf_counter() - start) * 1000
        if elapsed_ms >= self._config.slow_ms:
            logger.warning("record_store_slow op=%s table=%s ms=%.2f status=%s", op, table, elapsed_ms, res.status_code)
        else:
            logger.debug("record_store_call op=%s table=%s ms=%.2f status=%s", op, table, elapsed_ms, res.status_code)
        if op == "get" and res.status_code == 404:
            return {"success": True, "data": None}
        if res.status_code >= 400:
            message = _error_message(res)
            logger.error("record_store_http_error op=%s table=%s status=%s message=%s", op, table, res.status_code, message)
            raise RemoteFailure(f"Record store error {res.status_code}: {message}", table)
        try:
            data = res.json()
        except ValueError as exc:
            raise RemoteFailure(f"Record store returned invalid JSON ({op} {table})", table) from exc
        if not isinstance(data, dict):
            raise RemoteFailure(f"Malformed response from record store ({op} {table})", table)
        return data

    async def _fetch(self, table: str, params: dict) -> dict:
        return await self._send("POST", self._url(table, "/query"), params, "list", table)

    async def _get(self, table: str, record_id: int, params: dict) -> dict:
        return await self._send("POST", self._url(table, f"/{record_id}"), params, "get", table)

    async def _create(self, table: str, params: dict) -> dict:
        return await self._send("POST", self._url(table), params, "create", table)

    async def _update(self, table: str, params: dict) -> dict:
        return await self._send("PATCH", self._url(table), params, "update", table)

    async def _delete(self, table: str, params: dict) -> dict:
        return await self._send("DELETE", self._url(table), params, "delete", table)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
