"""FastAPI dashboard endpoints.

GET /v1/dashboard/receptionist  front-desk summary
GET /v1/dashboard/administrator  workshop-wide summary
GET /v1/dashboard/mechanic/{user_id}  one mechanic's summary

Summaries always come back 200 with their full shape; data that could not
be fetched shows up as zero/empty fields. An incoming Authorization header
is forwarded to the workshop backend unchanged.
"""

from fastapi import APIRouter, Depends, Header, Path

from src.api.dependencies import get_dashboard_service
from src.dashboard.service import DashboardService
from src.models.summary import AdministratorSummary, MechanicSummary, ReceptionistSummary

router = APIRouter(prefix="/v1/dashboard", tags=["dashboard"])


@router.get("/receptionist", response_model=ReceptionistSummary, response_model_by_alias=True)
async def receptionist_dashboard(
    authorization: str | None = Header(default=None),
    service: DashboardService = Depends(get_dashboard_service),
) -> ReceptionistSummary:
    return await service.receptionist_summary(authorization=authorization)


@router.get("/administrator", response_model=AdministratorSummary, response_model_by_alias=True)
async def administrator_dashboard(
    authorization: str | None = Header(default=None),
    service: DashboardService = Depends(get_dashboard_service),
) -> AdministratorSummary:
    return await service.administrator_summary(authorization=authorization)


@router.get("/mechanic/{user_id}", response_model=MechanicSummary, response_model_by_alias=True)
async def mechanic_dashboard(
    user_id: str = Path(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$"),
    authorization: str | None = Header(default=None),
    service: DashboardService = Depends(get_dashboard_service),
) -> MechanicSummary:
    return await service.mechanic_summary(user_id, authorization=authorization)
