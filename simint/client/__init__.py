"""Typed HTTP client for the SIMINT admin API."""

from .environment import (  # noqa: F401
    BrowserEnvironment,
    ServerEnvironment,
    resolve_environment,
    resolve_upstream_url,
)
from .errors import ApiClientError, ApiError, NetworkError  # noqa: F401
from .http import ApiClient, create_client  # noqa: F401
from .session import Session, SessionExpired  # noqa: F401
from .storage import JsonFileTokenStore, MemoryTokenStore  # noqa: F401
