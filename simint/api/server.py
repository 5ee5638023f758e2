from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import Response

from simint.api.forwarder import FORWARDED_METHODS, forward
from simint.api.middleware import AccessLogMiddleware, RequestIdMiddleware
from simint.api.models import HealthOut
from simint.client.environment import DEFAULT_PROXY_PATH, resolve_upstream_url

log = logging.getLogger("simint.api")


@dataclass(frozen=True, slots=True)
class ProxyConfig:
    """Configuration for the forwarder service.

    The upstream base URL is resolved once per process and never changes for
    the lifetime of the app.

    """

    upstream_base_url: str
    mount_path: str = DEFAULT_PROXY_PATH
    timeout_sec: Optional[float] = 30.0
    follow_redirects: bool = True


def _env_float(name: str, default: float) -> float:
    """Read a float environment variable.

    Security notes:
    - Env vars are treated as trusted server configuration.

    """

    raw = os.environ.get(name, "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except Exception:
        return float(default)


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean environment variable (1/0, true/false, yes/no, on/off).

    Unrecognized values fall back to the default, like _env_float.
    """

    raw = os.environ.get(name, "").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


def config_from_env() -> ProxyConfig:
    """Build a ProxyConfig from environment variables.

    - SIMINT_API_URL / SIMINT_ENV: upstream base URL
    - SIMINT_PROXY_PATH: mount path (default /api/proxy)
    - SIMINT_PROXY_TIMEOUT_SEC: upstream timeout, 0 disables (default 30)
    - SIMINT_PROXY_FOLLOW_REDIRECTS: 1/0 or true/false (default on)

    """

    timeout = _env_float("SIMINT_PROXY_TIMEOUT_SEC", 30.0)
    return ProxyConfig(
        upstream_base_url=resolve_upstream_url(),
        mount_path=os.environ.get("SIMINT_PROXY_PATH", "").strip() or DEFAULT_PROXY_PATH,
        timeout_sec=timeout if timeout > 0 else None,
        follow_redirects=_env_bool("SIMINT_PROXY_FOLLOW_REDIRECTS", True),
    )


def create_app(
    config: Optional[ProxyConfig] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create the forwarder app.

    `transport` replaces the network for the upstream leg (tests pass an
    httpx.MockTransport).
    """

    cfg = config or config_from_env()
    mount = "/" + cfg.mount_path.strip("/")

    log.setLevel(os.environ.get("SIMINT_LOG_LEVEL", "INFO").upper())

    app = FastAPI(title="SIMINT admin proxy", version="0.1")
    app.state.cfg = cfg

    # Request correlation + basic access logs.
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(AccessLogMiddleware)

    @app.get("/health", response_model=HealthOut)
    def health() -> HealthOut:
        return HealthOut(ok=True, upstream=cfg.upstream_base_url, mount_path=mount)

    @app.api_route(
        mount + "/{path:path}", methods=FORWARDED_METHODS, include_in_schema=False
    )
    async def proxy(path: str, request: Request) -> Response:
        return await forward(
            request,
            path,
            upstream_base_url=cfg.upstream_base_url,
            timeout=cfg.timeout_sec,
            follow_redirects=cfg.follow_redirects,
            transport=transport,
        )

    log.info("proxy_ready", extra={"upstream": cfg.upstream_base_url, "mount_path": mount})
    return app


def app_from_env() -> FastAPI:
    """Factory used by Uvicorn entrypoints (`uvicorn --factory`)."""

    return create_app(config_from_env())
