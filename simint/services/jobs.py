from __future__ import annotations

from typing import Any, Dict, List, Optional

from .base import Service, unwrap_data, unwrap_list
from .models import JobSheet

BASE_PATH = "/jobs"


class JobService(Service):
    """Job sheets used to configure interview simulations."""

    def list(self, search: Optional[str] = None, sector: Optional[str] = None) -> List[JobSheet]:
        res = self.client.get(BASE_PATH, params={"search": search, "sector": sector})
        return [JobSheet.model_validate(j) for j in unwrap_list(res)]

    def get(self, job_id: str) -> JobSheet:
        return JobSheet.model_validate(unwrap_data(self.client.get(f"{BASE_PATH}/{job_id}")))

    def create(self, job: JobSheet) -> JobSheet:
        body = job.model_dump(mode="json", exclude={"id"})
        return JobSheet.model_validate(unwrap_data(self.client.post(BASE_PATH, body)))

    def update(self, job_id: str, changes: Dict[str, Any]) -> JobSheet:
        res = self.client.put(f"{BASE_PATH}/{job_id}", changes)
        return JobSheet.model_validate(unwrap_data(res))

    def delete(self, job_id: str) -> None:
        self.client.delete(f"{BASE_PATH}/{job_id}")
