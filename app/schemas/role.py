from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RoleCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    permissions: List[str] = Field(default_factory=list)


class RoleUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    permissions: Optional[List[str]] = None


class RoleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
    is_system: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PermissionResponse(BaseModel):
    id: str
    name: str
    description: str
    category: str


class AssignRolesRequest(BaseModel):
    roles: List[str] = Field(..., min_length=1)


class PermissionCheckResponse(BaseModel):
    permission: str
    has_permission: bool = Field(..., alias="hasPermission")

    class Config:
        populate_by_name = True


class UserPermissionsResponse(BaseModel):
    role: str
    permissions: List[str]
