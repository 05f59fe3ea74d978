from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bizdesk.database import get_db
from bizdesk.dependencies import require_capability
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.session_context import SessionContext
from bizdesk.repositories.activity_repository import ActivityRepository
from bizdesk.schemas.activity_schemas import ActivityListResponse

router = APIRouter()


@router.get("/", response_model=ActivityListResponse)
async def list_activity(
    limit: int = Query(50, ge=1, le=500),
    entity_type: str | None = Query(None),
    context: SessionContext = Depends(require_capability(PageName.DASHBOARD, CrudOperation.READ)),
    db: Session = Depends(get_db),
):
    """Most recent activity first"""
    activities = ActivityRepository(db).get_recent(limit, entity_type)
    return ActivityListResponse(activities=activities, total=len(activities))
