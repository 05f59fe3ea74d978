from datetime import datetime
from pydantic import BaseModel, Field


class InvitationCreate(BaseModel):
    """Schema for inviting an employee or a client user"""

    email: str = Field(..., min_length=3, max_length=255)
    role: str = Field(..., min_length=1, max_length=50)
    client_id: int | None = None
    employee_data: dict | None = None


class InvitationResponse(BaseModel):
    """Schema for invitation response"""

    id: int
    email: str
    role: str
    invited_by: int
    client_id: int | None
    employee_data: dict | None
    status: str
    expires_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class InvitationListResponse(BaseModel):
    invitations: list[InvitationResponse]
    total: int
