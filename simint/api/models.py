from __future__ import annotations

from pydantic import BaseModel


class ProxyErrorOut(BaseModel):
    """Proxy-internal failure payload (never used for upstream errors)."""

    error: str = "Proxy Error"
    details: str


class HealthOut(BaseModel):
    """Forwarder health summary."""

    ok: bool
    upstream: str
    mount_path: str
