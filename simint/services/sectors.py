from __future__ import annotations

from typing import List, Optional

from .base import Service, unwrap_data, unwrap_list
from .models import Sector

BASE_PATH = "/sectors"


class SectorService(Service):
    """Business sectors (job-sheet categories)."""

    def list(self, skip: int = 0, limit: int = 100) -> List[Sector]:
        res = self.client.get(BASE_PATH, params={"skip": skip, "limit": limit})
        return [Sector.model_validate(s) for s in unwrap_list(res)]

    def create(
        self, name: str, description: Optional[str] = None, is_active: bool = True
    ) -> Sector:
        res = self.client.post(
            BASE_PATH, {"name": name, "description": description, "is_active": is_active}
        )
        return Sector.model_validate(unwrap_data(res))

    def update(
        self, sector_id: str, name: str, description: Optional[str] = None, is_active: bool = True
    ) -> Sector:
        res = self.client.put(
            f"{BASE_PATH}/{sector_id}",
            {"name": name, "description": description, "is_active": is_active},
        )
        return Sector.model_validate(unwrap_data(res))

    def toggle_status(self, sector: Sector) -> Sector:
        return self.update(
            sector.id, sector.name, description=sector.description, is_active=not sector.is_active
        )

    def delete(self, sector_id: str) -> None:
        self.client.delete(f"{BASE_PATH}/{sector_id}")
