from sqlalchemy.orm import Session
from bizdesk.models.client import Client
from bizdesk.models.invitation import Invitation


class InvitationRepository:
    """Repository for Invitation model operations"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, invitation: Invitation) -> Invitation:
        self.db.add(invitation)
        self.db.commit()
        self.db.refresh(invitation)
        return invitation

    def get_by_id(self, invitation_id: int) -> Invitation | None:
        return self.db.query(Invitation).filter(Invitation.id == invitation_id).first()

    def get_all(self) -> list[Invitation]:
        """All invitations, newest first"""
        return (
            self.db.query(Invitation)
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
            .all()
        )

    def delete(self, invitation: Invitation) -> None:
        self.db.delete(invitation)
        self.db.commit()

    def client_exists(self, client_id: int) -> bool:
        return self.db.query(Client.id).filter(Client.id == client_id).first() is not None
