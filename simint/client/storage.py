from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Protocol

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"

DEFAULT_CREDENTIALS_PATH = Path.home() / ".simint" / "credentials.json"


class TokenStore(Protocol):
    """Durable key/value mirror of the session credentials.

    The in-memory token slot on `Session` is authoritative; a store is only
    read when a session is restored and written on login/logout/expiry.
    Absence of `access_token` means logged out.
    """

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryTokenStore:
    """Process-local store. Used by tests and short-lived server contexts."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = str(value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._data)


class JsonFileTokenStore:
    """Credentials persisted as a small JSON object on disk.

    Security notes:
    - The file is created with mode 0600.
    - Writes go through a temp file + os.replace so a crash never leaves a
      half-written credentials file behind.
    - A corrupt file is treated as empty (logged out), never as an error.

    """

    def __init__(self, path: Optional[os.PathLike] = None):
        self.path = Path(path) if path else DEFAULT_CREDENTIALS_PATH
        self._lock = Lock()

    @staticmethod
    def from_env() -> "JsonFileTokenStore":
        """Create a store at SIMINT_CREDENTIALS_PATH (or the default path)."""

        raw = os.environ.get("SIMINT_CREDENTIALS_PATH", "").strip()
        return JsonFileTokenStore(Path(raw).expanduser() if raw else None)

    def _load(self) -> Dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".credentials-", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, sort_keys=True)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = str(value)
            self._save(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key not in data:
                return
            del data[key]
            self._save(data)
