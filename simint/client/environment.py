from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Union

from .session import SessionExpired

log = logging.getLogger("simint.client")

PRODUCTION_API_URL = "https://api.simint-bot.com/api/v1"
DEVELOPMENT_API_URL = "https://devapi.simint-bot.com/api/v1"

DEFAULT_DASHBOARD_URL = "http://127.0.0.1:8080"
DEFAULT_PROXY_PATH = "/api/proxy"
DEFAULT_LOGIN_PATH = "/login"
MAX_RECORDED_REDIRECTS = 16

Navigator = Callable[[str], None]


def _normalize_base(url: str) -> str:
    """Return a base URL without trailing slash; reject empty values."""

    url = (url or "").strip()
    if not url:
        raise ValueError("base URL must not be empty")
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"base URL must be absolute http(s): {url!r}")
    return url.rstrip("/")


def resolve_upstream_url(env: Optional[Mapping[str, str]] = None) -> str:
    """Resolve the upstream API base URL.

    Order:
    - SIMINT_API_URL, if set
    - the production literal when SIMINT_ENV=production
    - the development literal otherwise

    """

    env = os.environ if env is None else env
    explicit = (env.get("SIMINT_API_URL") or "").strip()
    if explicit:
        return _normalize_base(explicit)
    if (env.get("SIMINT_ENV") or "").strip().lower() == "production":
        return PRODUCTION_API_URL
    return DEVELOPMENT_API_URL


@dataclass(frozen=True, slots=True)
class ServerEnvironment:
    """Server-side hosting context: talk to the upstream API directly.

    Session expiry is reported to Session subscribers only; there is no
    login surface to navigate to.
    """

    base_url: str
    login_path: str = DEFAULT_LOGIN_PATH

    @property
    def interactive(self) -> bool:
        return False

    def on_session_expired(self, event: SessionExpired) -> None:
        return None


@dataclass(frozen=True, slots=True)
class BrowserEnvironment:
    """Interactive hosting context: calls go through the same-origin forwarder.

    `navigator` receives the login URL when the session expires. Redirects are
    also recorded in `redirects` (useful for headless hosts), keeping only the
    last MAX_RECORDED_REDIRECTS.
    """

    origin: str = DEFAULT_DASHBOARD_URL
    proxy_path: str = DEFAULT_PROXY_PATH
    login_path: str = DEFAULT_LOGIN_PATH
    navigator: Optional[Navigator] = None
    redirects: List[str] = field(default_factory=list, compare=False)

    @property
    def base_url(self) -> str:
        return _normalize_base(self.origin) + "/" + self.proxy_path.strip("/")

    @property
    def login_url(self) -> str:
        return _normalize_base(self.origin) + "/" + self.login_path.lstrip("/")

    @property
    def interactive(self) -> bool:
        return True

    def on_session_expired(self, event: SessionExpired) -> None:
        target = self.login_url
        self.redirects.append(target)
        del self.redirects[:-MAX_RECORDED_REDIRECTS]
        log.info("redirect_to_login", extra={"target": target})
        if self.navigator is not None:
            self.navigator(target)


Environment = Union[BrowserEnvironment, ServerEnvironment]


def resolve_environment(
    *,
    browser: bool,
    env: Optional[Mapping[str, str]] = None,
    navigator: Optional[Navigator] = None,
) -> Environment:
    """Resolve the hosting environment once at startup.

    Reads:
    - SIMINT_DASHBOARD_URL, SIMINT_PROXY_PATH (browser)
    - SIMINT_API_URL, SIMINT_ENV (server)
    - SIMINT_LOGIN_PATH (both)

    """

    env = os.environ if env is None else env
    login_path = (env.get("SIMINT_LOGIN_PATH") or "").strip() or DEFAULT_LOGIN_PATH
    if browser:
        return BrowserEnvironment(
            origin=(env.get("SIMINT_DASHBOARD_URL") or "").strip() or DEFAULT_DASHBOARD_URL,
            proxy_path=(env.get("SIMINT_PROXY_PATH") or "").strip() or DEFAULT_PROXY_PATH,
            login_path=login_path,
            navigator=navigator,
        )
    return ServerEnvironment(base_url=resolve_upstream_url(env), login_path=login_path)
