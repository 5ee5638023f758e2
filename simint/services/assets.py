from __future__ import annotations

from typing import List, Optional

from simint.client.http import FileInput

from .base import Service, unwrap_data, unwrap_list
from .models import InterviewAsset

BASE_PATH = "/interviews/assets"


class AssetService(Service):
    """Interview scene assets (backgrounds, avatars) uploaded as images."""

    def create(
        self,
        type: str,
        name: str,
        country_code: str,
        image: FileInput,
        is_active: bool = True,
    ) -> InterviewAsset:
        res = self.client.upload(
            BASE_PATH,
            image,
            "image",
            {
                "type": type,
                "name": name,
                "country_code": country_code,
                "is_active": is_active,
            },
        )
        return InterviewAsset.model_validate(unwrap_data(res))

    def list(
        self,
        asset_type: Optional[str] = None,
        country_code: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[InterviewAsset]:
        params = {
            "asset_type": asset_type,
            "country_code": country_code,
            "is_active": is_active,
            "search": search,
        }
        res = self.client.get(BASE_PATH, params=params)
        return [InterviewAsset.model_validate(a) for a in unwrap_list(res)]
