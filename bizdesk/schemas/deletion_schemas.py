from pydantic import BaseModel


class DeletionResponse(BaseModel):
    """Schema for the outcome of a cascade deletion"""

    entity_type: str
    entity_id: int
    entity_name: str
    steps: dict[str, int]
    already_deleted: bool
    invalidates: list[str]

    class Config:
        from_attributes = True


class ResumedDeletion(BaseModel):
    entity_type: str
    entity_id: int
    error: str | None = None


class ResumeDeletionsResponse(BaseModel):
    """Schema for the recovery pass over interrupted deletions"""

    completed: list[ResumedDeletion]
    failed: list[ResumedDeletion]
