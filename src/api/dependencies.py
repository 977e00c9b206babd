"""FastAPI dependency injection factories.

Endpoints obtain the dashboard service via ``Depends(get_dashboard_service)``;
tests replace it through ``app.dependency_overrides``.
"""

from fastapi import Depends

from src.config.settings import Settings, get_settings
from src.dashboard.service import DashboardService

# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def get_dashboard_service(
    settings: Settings = Depends(get_settings),
) -> DashboardService:
    return DashboardService(settings)
