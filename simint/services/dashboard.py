from __future__ import annotations

from .base import Service, unwrap_data
from .models import DashboardData


class DashboardService(Service):
    def get_stats(self) -> DashboardData:
        """KPIs, 30-day activity and sector shares for the admin home page."""

        return DashboardData.model_validate(unwrap_data(self.client.get("/dashboard/admin")) or {})
