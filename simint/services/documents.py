from __future__ import annotations

from typing import Any, Dict

from .base import Service, unwrap_data
from .models import LegalDocument

BASE_PATH = "/documents"


class DocumentService(Service):
    """Legal documents (terms, privacy policy), one translation per locale."""

    def get_by_slug(self, slug: str, locale: str) -> LegalDocument:
        res = self.client.get(f"{BASE_PATH}/{slug}", params={"locale": locale})
        return LegalDocument.model_validate(unwrap_data(res))

    def create(self, data: Dict[str, Any]) -> LegalDocument:
        return LegalDocument.model_validate(unwrap_data(self.client.post(BASE_PATH, data)))

    def update(self, slug: str, data: Dict[str, Any]) -> LegalDocument:
        # The backend picks the translation from ?locale=, not from the body.
        res = self.client.put(f"{BASE_PATH}/{slug}", data, params={"locale": data.get("locale")})
        return LegalDocument.model_validate(unwrap_data(res))
