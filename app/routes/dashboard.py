from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from app.clients.identity import Identity
from app.dependencies.services import get_dashboard_service, require_identity
from app.services import DashboardService
from app.views.admin import admin_response, dashboard_body

router = APIRouter()


@router.get("", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    identity: Identity = Depends(require_identity),
    service: DashboardService = Depends(get_dashboard_service),
):
    # Individual counts degrade to zero, so the overview always renders.
    snapshot = await service.snapshot()
    return admin_response(request, identity, "Dashboard", dashboard_body(snapshot), active="dashboard")
