from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from bizdesk.database import get_db
from bizdesk.dependencies import require_capability
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.session_context import SessionContext
from bizdesk.schemas.invitation_schemas import (
    InvitationCreate,
    InvitationResponse,
    InvitationListResponse,
)
from bizdesk.services.email_notifier import EmailNotifier
from bizdesk.services.invitation_service import InvitationService

router = APIRouter()


@router.get("/", response_model=InvitationListResponse)
async def list_invitations(
    context: SessionContext = Depends(require_capability(PageName.EMPLOYEES, CrudOperation.READ)),
    db: Session = Depends(get_db),
):
    invitations = InvitationService(db).list_invitations()
    return InvitationListResponse(invitations=invitations, total=len(invitations))


@router.post("/", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
async def send_invitation(
    data: InvitationCreate,
    background_tasks: BackgroundTasks,
    context: SessionContext = Depends(
        require_capability(PageName.EMPLOYEES, CrudOperation.CREATE)
    ),
    db: Session = Depends(get_db),
):
    """
    Create an invitation and email it after the response is sent.

    A failed email does not fail the invitation; the outcome is logged.
    """
    invitation = InvitationService(db).send_invitation(data, context)
    background_tasks.add_task(
        EmailNotifier().send_invitation_email,
        invitation.email,
        invitation.role,
        invitation.id,
        context.user.full_name or context.email,
    )
    return invitation


@router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invitation(
    invitation_id: int,
    context: SessionContext = Depends(
        require_capability(PageName.EMPLOYEES, CrudOperation.DELETE)
    ),
    db: Session = Depends(get_db),
):
    InvitationService(db).delete_invitation(invitation_id)
    return None
