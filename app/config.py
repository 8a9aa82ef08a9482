"""Environment-driven gateway configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

BACKENDS = ("memory", "remote")


@dataclass(frozen=True)
class GatewayConfig:
    backend: str = "memory"
    api_url: str = ""
    project_id: str = ""
    public_key: str = ""
    timeout: float = 30.0
    fetch_limit: int = 1000
    page_size: int = 10
    slow_ms: float = 200.0
    log_level: str = "INFO"

    @property
    def remote_ready(self) -> bool:
        return bool(self.api_url and self.project_id and self.public_key)


def load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _get(env: Mapping[str, str], key: str, default: str = "") -> str:
    return (env.get(key) or default).strip()


def _number(env: Mapping[str, str], key: str, default: float, cast=float):
    raw = _get(env, key)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid {key}: {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{key} must be positive")
    return value


def load_config(env: Mapping[str, str] | None = None) -> GatewayConfig:
    env = os.environ if env is None else env
    api_url = _get(env, "REGISTRAR_API_URL").rstrip("/")
    project_id = _get(env, "APPER_PROJECT_ID")
    public_key = _get(env, "APPER_PUBLIC_KEY")
    backend = _get(env, "REGISTRAR_BACKEND").lower()
    if not backend:
        backend = "remote" if api_url and project_id and public_key else "memory"
    if backend not in BACKENDS:
        raise RuntimeError(f"REGISTRAR_BACKEND must be one of {list(BACKENDS)}")
    config = GatewayConfig(
        backend=backend,
        api_url=api_url,
        project_id=project_id,
        public_key=public_key,
        timeout=_number(env, "REGISTRAR_HTTP_TIMEOUT", 30.0),
        fetch_limit=_number(env, "REGISTRAR_FETCH_LIMIT", 1000, int),
        page_size=_number(env, "REGISTRAR_PAGE_SIZE", 10, int),
        slow_ms=_number(env, "REGISTRAR_SLOW_MS", 200.0),
        log_level=_get(env, "REGISTRAR_LOG_LEVEL", "INFO").upper(),
    )
    if config.backend == "remote" and not config.remote_ready:
        raise RuntimeError("REGISTRAR_API_URL, APPER_PROJECT_ID and APPER_PUBLIC_KEY are required when REGISTRAR_BACKEND=remote")
    return config
