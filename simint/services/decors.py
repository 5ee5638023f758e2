from __future__ import annotations

from typing import Any, Dict, List, Optional

from simint.client.http import FileInput

from .base import Service, unwrap_data, unwrap_list
from .models import Decor

BASE_PATH = "/decors"


class DecorService(Service):
    def list(
        self,
        search: Optional[str] = None,
        country: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[Decor]:
        # "all" is the UI's no-filter value
        if country == "all":
            country = None
        res = self.client.get(
            BASE_PATH, params={"search": search, "country": country, "isActive": is_active}
        )
        return [Decor.model_validate(d) for d in unwrap_list(res)]

    def get(self, decor_id: str) -> Decor:
        return Decor.model_validate(unwrap_data(self.client.get(f"{BASE_PATH}/{decor_id}")))

    def create(self, data: Dict[str, Any]) -> Decor:
        return Decor.model_validate(unwrap_data(self.client.post(BASE_PATH, data)))

    def update(self, decor_id: str, data: Dict[str, Any]) -> Decor:
        return Decor.model_validate(unwrap_data(self.client.put(f"{BASE_PATH}/{decor_id}", data)))

    def toggle_status(self, decor_id: str) -> Decor:
        res = self.client.patch(f"{BASE_PATH}/{decor_id}/toggle-status")
        return Decor.model_validate(unwrap_data(res))

    def delete(self, decor_id: str) -> None:
        self.client.delete(f"{BASE_PATH}/{decor_id}")

    def upload_image(self, file: FileInput) -> str:
        """Upload a decor image and return its public URL."""

        res = unwrap_data(self.client.upload(f"{BASE_PATH}/upload", file, "image"))
        return res["url"]
