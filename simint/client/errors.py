from __future__ import annotations

from typing import Any, Optional


class ApiClientError(Exception):
    """
    Base exception for all client-side API failures.
    """

    pass


class NetworkError(ApiClientError):
    """
    Raised when the request never produced an HTTP response
    (DNS failure, connection refused, timeout).
    """

    pass


class ApiError(ApiClientError):
    """Non-2xx HTTP response converted into a typed failure.

    Attributes:
      status: HTTP status code
      body: parsed JSON payload, or the raw response text when it is not JSON
      message: body["message"] when present, else the HTTP reason phrase,
        else a generic fallback

    Security notes:
    - `body` comes from the server and must be treated as untrusted.

    """

    def __init__(self, status: int, body: Any = None, message: Optional[str] = None):
        self.status = int(status)
        self.body = body
        self.message = message or f"Request failed with status {self.status}"
        super().__init__(self.message)

    @property
    def detail(self) -> Any:
        """FastAPI-style `detail` field of the error payload, if any."""

        if isinstance(self.body, dict):
            return self.body.get("detail")
        return None

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, message={self.message!r})"


def error_message(body: Any, reason_phrase: Optional[str]) -> str:
    """Pick the human-readable message for an error response.

    Precedence: payload `message` field, HTTP reason phrase, generic fallback.
    """

    if isinstance(body, dict):
        msg = body.get("message")
        if isinstance(msg, str) and msg:
            return msg
    if reason_phrase:
        return reason_phrase
    return "An unexpected error occurred"
