from datetime import datetime
from pydantic import BaseModel, Field
from bizdesk.models.role import PageName, CrudOperation


class PrivilegeResponse(BaseModel):
    """Schema for one cell of the privilege matrix"""

    id: int
    role: str
    page_name: PageName
    operation: CrudOperation
    allowed: bool
    updated_at: datetime

    class Config:
        from_attributes = True


class PrivilegeListResponse(BaseModel):
    """Schema for a list of privilege rows"""

    privileges: list[PrivilegeResponse]
    total: int


class PrivilegeUpdate(BaseModel):
    """Schema for toggling one cell"""

    allowed: bool


class PrivilegeChange(BaseModel):
    page_name: PageName
    operation: CrudOperation
    allowed: bool


class RolePrivilegesUpdate(BaseModel):
    """Schema for saving several cells of one role at once"""

    changes: list[PrivilegeChange] = Field(..., min_length=1)
