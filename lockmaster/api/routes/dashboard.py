# =======================================================================================
# lockmaster/api/routes/dashboard.py - Dashboard Endpoint
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import DashboardResponse
from ...services.dashboard_service import DashboardService
from ...services.entity_client import Entities
from ..dependencies import get_entities

router = APIRouter()
dashboard_service = DashboardService()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(entities: Entities = Depends(get_entities)):
    return dashboard_service.get_dashboard(entities)
