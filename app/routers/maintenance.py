# routers/maintenance.py
from typing import Annotated

from fastapi import APIRouter, Depends

from app.schemas.maintenance import (MaintenanceStatusResponse,
                                     MaintenanceUpdateRequest)
from app.services.maintenance import MaintenanceService, get_maintenance_service
from app.services.permissions import require_permission
from app.services.rate_limit import rate_limited

router = APIRouter(prefix="/api", tags=["maintenance"])


@router.get("/maintenance", response_model=MaintenanceStatusResponse)
async def get_maintenance_status(
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
):
    """
    공개 점검 상태 조회
    """
    return MaintenanceStatusResponse(maintenance_mode=service.is_enabled())


@router.post(
    "/admin/maintenance",
    response_model=MaintenanceStatusResponse,
    dependencies=[Depends(rate_limited("ADMIN")), Depends(require_permission("maintenance.manage"))],
)
async def update_maintenance(
    req: MaintenanceUpdateRequest,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
):
    """
    - **enabled**: true / false, 생략 시 toggle
    """
    if req.enabled is None:
        # 저장 실패 시 MaintenanceUpdateError → 500
        enabled = await service.toggle()
    elif req.enabled:
        enabled = await service.enable()
    else:
        enabled = await service.disable()
    return MaintenanceStatusResponse(maintenance_mode=enabled)
