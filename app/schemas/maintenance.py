from typing import Optional

from pydantic import BaseModel, Field


class MaintenanceUpdateRequest(BaseModel):
    """
    enabled 를 생략하면 현재 상태를 반전(toggle)
    """
    enabled: Optional[bool] = None


class MaintenanceStatusResponse(BaseModel):
    success: bool = True
    maintenance_mode: bool = Field(..., serialization_alias="maintenanceMode")
