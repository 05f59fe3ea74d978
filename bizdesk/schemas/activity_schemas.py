from datetime import datetime
from pydantic import BaseModel


class ActivityResponse(BaseModel):
    """Schema for one activity feed entry"""

    id: int
    user_id: int | None
    action_type: str
    entity_type: str
    entity_id: str | None
    entity_name: str
    description: str
    comment: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityListResponse(BaseModel):
    activities: list[ActivityResponse]
    total: int
