from __future__ import annotations

from typing import Any, Optional

from simint.client.errors import ApiClientError

from .base import Service, unwrap_data
from .models import LoginResponse


class LoginFailed(ApiClientError):
    """The login call succeeded at HTTP level but returned no access token."""

    def __init__(self, message: str, body: Any = None):
        super().__init__(message)
        self.message = message
        self.body = body


class AuthService(Service):
    """Login/logout against `/auth/login`; credentials land in the client's Session."""

    def login(self, email: str, password: str) -> LoginResponse:
        """Authenticate and store the returned tokens.

        Raises:
          ApiError: the backend rejected the credentials
          LoginFailed: the response carried no access token

        """

        res = self.client.post("/auth/login", {"email": email, "password": password})
        payload = unwrap_data(res)
        if not isinstance(payload, dict) or not payload.get("access_token"):
            message = None
            if isinstance(res, dict):
                message = res.get("message")
            raise LoginFailed(message or "login failed", body=res)

        out = LoginResponse.model_validate(payload)
        self.client.session.establish(out.access_token, out.refresh_token)
        return out

    def logout(self) -> None:
        self.client.session.clear()

    clear_auth = logout

    def is_authenticated(self) -> bool:
        return self.client.session.authenticated

    def reset_password(self) -> Optional[Any]:
        """Trigger the admin password reset flow."""

        res = self.client.post("/admin/reset-password")
        if isinstance(res, dict) and res.get("message"):
            return res
        return unwrap_data(res)
