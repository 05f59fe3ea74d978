from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bizdesk.database import get_db
from bizdesk.dependencies import require_capability, require_superuser
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.session_context import SessionContext
from bizdesk.schemas.deletion_schemas import (
    DeletionResponse,
    ResumeDeletionsResponse,
    ResumedDeletion,
)
from bizdesk.services.cascade_deletion import CascadeDeletionService

router = APIRouter()
maintenance_router = APIRouter()


@router.delete("/projects/{project_id}", response_model=DeletionResponse)
async def delete_project(
    project_id: int,
    context: SessionContext = Depends(require_capability(PageName.PROJECTS, CrudOperation.DELETE)),
    db: Session = Depends(get_db),
):
    """Delete a project and everything that depends on it"""
    return CascadeDeletionService(db).delete_project(project_id, context.user)


@router.delete("/clients/{client_id}", response_model=DeletionResponse)
async def delete_client(
    client_id: int,
    context: SessionContext = Depends(require_capability(PageName.CLIENTS, CrudOperation.DELETE)),
    db: Session = Depends(get_db),
):
    """Delete a client, its projects and everything that depends on them"""
    return CascadeDeletionService(db).delete_client(client_id, context.user)


@router.delete("/tasks/{task_id}", response_model=DeletionResponse)
async def delete_task(
    task_id: int,
    context: SessionContext = Depends(require_capability(PageName.TASKS, CrudOperation.DELETE)),
    db: Session = Depends(get_db),
):
    return CascadeDeletionService(db).delete_task(task_id, context.user)


# Sprints are managed from the project page
@router.delete("/sprints/{sprint_id}", response_model=DeletionResponse)
async def delete_sprint(
    sprint_id: int,
    context: SessionContext = Depends(require_capability(PageName.PROJECTS, CrudOperation.DELETE)),
    db: Session = Depends(get_db),
):
    return CascadeDeletionService(db).delete_sprint(sprint_id, context.user)


@maintenance_router.post("/resume-deletions", response_model=ResumeDeletionsResponse)
async def resume_deletions(
    context: SessionContext = Depends(require_superuser), db: Session = Depends(get_db)
):
    """Finish deletions interrupted in stepwise mode"""
    report = CascadeDeletionService(db).resume_pending_deletions(context.user)
    return ResumeDeletionsResponse(
        completed=[
            ResumedDeletion(entity_type=entity_type, entity_id=entity_id)
            for entity_type, entity_id in report.completed
        ],
        failed=[
            ResumedDeletion(entity_type=entity_type, entity_id=entity_id, error=error)
            for entity_type, entity_id, error in report.failed
        ],
    )
