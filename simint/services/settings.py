from __future__ import annotations

from typing import List

from .base import Service, unwrap_data, unwrap_list
from .models import SettingItem

BASE_PATH = "/settings"


class SettingsService(Service):
    """Dynamic key/value platform settings."""

    def get_all(self) -> List[SettingItem]:
        return [SettingItem.model_validate(s) for s in unwrap_list(self.client.get(BASE_PATH))]

    def update(self, key: str, value: str) -> SettingItem:
        res = self.client.patch(f"{BASE_PATH}/{key}", {"value": value})
        return SettingItem.model_validate(unwrap_data(res))

    def create(self, key: str, value: str, description: str = "") -> SettingItem:
        res = self.client.post(BASE_PATH, {"key": key, "value": value, "description": description})
        return SettingItem.model_validate(unwrap_data(res))
