from __future__ import annotations

from typing import Any, Dict, List, Optional

from .base import Service, unwrap_data, unwrap_list
from .models import AgendaEvent, Page, User

BASE_PATH = "/users"


class UserService(Service):
    """Platform users, their CVs, interview sessions and agenda."""

    def list(self, page: Optional[int] = None, size: Optional[int] = None) -> Page[User]:
        res = self.client.get(BASE_PATH, params={"page": page or None, "size": size or None})
        return Page[User].model_validate(unwrap_data(res) or {})

    def get(self, user_id: str) -> User:
        return User.model_validate(unwrap_data(self.client.get(f"{BASE_PATH}/{user_id}")))

    def me(self) -> User:
        return User.model_validate(unwrap_data(self.client.get(f"{BASE_PATH}/me")))

    def set_active(self, user_id: str, is_active: bool) -> User:
        res = self.client.patch(f"{BASE_PATH}/{user_id}", {"is_active": is_active})
        return User.model_validate(unwrap_data(res))

    def cv(self, user_id: str) -> Dict[str, Any]:
        return unwrap_data(self.client.get(f"/cv/user/{user_id}"))

    def interviews(
        self, user_id: str, page: Optional[int] = None, size: Optional[int] = None
    ) -> Page[Dict[str, Any]]:
        res = self.client.get(
            "/interviews/sessions",
            params={"user_id": user_id, "page": page or None, "size": size or None},
        )
        return Page[Dict[str, Any]].model_validate(unwrap_data(res) or {})

    def interview_session(self, session_id: str) -> Dict[str, Any]:
        return unwrap_data(self.client.get(f"/interviews/session/{session_id}"))

    def agenda_events(self, user_id: str, start_date: str, end_date: str) -> List[AgendaEvent]:
        res = self.client.get(
            "/agenda/events",
            params={"user_id": user_id, "start_date": start_date, "end_date": end_date},
        )
        return [AgendaEvent.model_validate(e) for e in unwrap_list(res)]
