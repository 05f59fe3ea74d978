import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizdesk.config import settings
from bizdesk.core.exceptions import NotFoundException, OperationFailedException, ValidationException
from bizdesk.models.base import utcnow
from bizdesk.models.invitation import Invitation
from bizdesk.models.session_context import SessionContext
from bizdesk.repositories.invitation_repository import InvitationRepository
from bizdesk.repositories.role_repository import RoleRepository
from bizdesk.schemas.invitation_schemas import InvitationCreate
from bizdesk.services.activity_logger import ActivityLogger
from bizdesk.services.privilege_service import normalize_role_name

logger = logging.getLogger(__name__)

CLIENT_ROLE = "client"


class InvitationService:
    """Service layer for invitations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = InvitationRepository(db)
        self.role_repo = RoleRepository(db)
        self.activity = ActivityLogger(db)

    def send_invitation(self, data: InvitationCreate, context: SessionContext) -> Invitation:
        """
        Create a pending invitation.

        The email itself is sent by the caller once the invitation is stored.

        Raises:
            ValidationException: If the role is unknown, or a client
                invitation does not name an existing client
        """
        email = data.email.strip().lower()
        role = normalize_role_name(data.role)
        if not email or not role:
            raise ValidationException("Email and role are required")

        if role == CLIENT_ROLE:
            if data.client_id is None:
                raise ValidationException("client_id is required for client invitations")
            if not self.repo.client_exists(data.client_id):
                raise ValidationException(f"Client {data.client_id} does not exist")
        elif self.role_repo.get_role(role) is None:
            raise ValidationException(f"Role '{role}' is not provisioned")

        invitation = Invitation(
            email=email,
            role=role,
            invited_by=context.user.id,
            client_id=data.client_id if role == CLIENT_ROLE else None,
            employee_data=data.employee_data,
            status="pending",
            expires_at=utcnow() + timedelta(days=settings.INVITATION_TTL_DAYS),
        )
        try:
            invitation = self.repo.create(invitation)
        except SQLAlchemyError as e:
            self.db.rollback()
            cause = getattr(e, "orig", None) or e
            raise OperationFailedException("create invitation", cause) from e

        logger.info("Invitation %s created for %s as %s", invitation.id, email, role)
        self.activity.log_invitation_sent(context.user, invitation.id, email, role)
        return invitation

    def list_invitations(self) -> list[Invitation]:
        return self.repo.get_all()

    def delete_invitation(self, invitation_id: int) -> None:
        invitation = self.repo.get_by_id(invitation_id)
        if invitation is None:
            raise NotFoundException(f"Invitation {invitation_id} not found")
        try:
            self.repo.delete(invitation)
        except SQLAlchemyError as e:
            self.db.rollback()
            cause = getattr(e, "orig", None) or e
            raise OperationFailedException("delete invitation", cause) from e
        logger.info("Invitation %s deleted", invitation_id)
