from datetime import datetime
from pydantic import BaseModel, Field
from bizdesk.models.role import PageName, CrudOperation


class RoleCreate(BaseModel):
    """Schema for provisioning a new role"""

    name: str = Field(..., min_length=1, max_length=50)
    description: str | None = None
    allowed: dict[PageName, list[CrudOperation]] | None = None


class RoleResponse(BaseModel):
    """Schema for role response"""

    id: int
    name: str
    description: str | None
    is_superuser: bool
    created_at: datetime

    class Config:
        from_attributes = True


class RoleListResponse(BaseModel):
    """Schema for list of roles"""

    roles: list[RoleResponse]
    total: int


class UserRoleAssign(BaseModel):
    """Schema for assigning a role to a user"""

    role: str = Field(..., min_length=1, max_length=50)


class UserRoleResponse(BaseModel):
    user_id: int
    role: str
