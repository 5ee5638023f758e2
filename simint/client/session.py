from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Callable, List, Optional

from .storage import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, MemoryTokenStore, TokenStore

log = logging.getLogger("simint.client")


@dataclass(frozen=True, slots=True)
class SessionExpired:
    """Emitted when the backend answers 401 for an authenticated session."""

    method: str
    url: str
    status: int = 401
    message: Optional[str] = None


SessionListener = Callable[[SessionExpired], None]


class Session:
    """
    Owner of the bearer-token slot shared by every call of an ApiClient.

    Responsibilities
    - Hold the in-memory access token (authoritative) and the UI locale
    - Mirror credentials into a durable TokenStore on login/logout
    - Wipe credentials and notify subscribers when the session expires

    Invariants
    - The token slot only changes through set_token/establish/clear/expire
    - expire() wipes the slot and the store before any listener runs

    """

    def __init__(self, store: Optional[TokenStore] = None, *, locale: Optional[str] = None):
        self.store: TokenStore = store if store is not None else MemoryTokenStore()
        self.locale = locale
        self._token: Optional[str] = None
        self._listeners: List[SessionListener] = []
        self._lock = Lock()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    def set_token(self, token: Optional[str]) -> None:
        """Set or clear the in-memory token only (storage untouched)."""

        with self._lock:
            self._token = token or None

    def restore(self) -> bool:
        """Re-hydrate the token slot from durable storage.

        Returns True if a stored access token was found.
        """

        token = self.store.get(ACCESS_TOKEN_KEY)
        self.set_token(token)
        return token is not None

    def establish(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        """Store credentials after a successful login."""

        if not access_token:
            raise ValueError("access_token must be a non-empty string")
        self.set_token(access_token)
        self.store.set(ACCESS_TOKEN_KEY, access_token)
        if refresh_token:
            self.store.set(REFRESH_TOKEN_KEY, refresh_token)

    def clear(self) -> None:
        """Explicit logout: wipe the slot and the durable entries."""

        self.set_token(None)
        self.store.remove(ACCESS_TOKEN_KEY)
        self.store.remove(REFRESH_TOKEN_KEY)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a SessionExpired listener. Returns an unsubscribe callable."""

        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def expire(self, event: SessionExpired) -> None:
        """Terminate the session after an unauthorized response.

        A failing listener is logged and does not stop the others; the caller
        still receives the ApiError for the 401.
        """

        self.clear()
        log.info("session_expired", extra={"method": event.method, "url": event.url})
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                log.exception("session_listener_failed")
