"""
Activity feed writer.

Recording an activity never fails the business operation that triggered
it: store errors are logged and swallowed here.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizdesk.models.activity import ActivityFeed
from bizdesk.models.user import User
from bizdesk.repositories.activity_repository import ActivityRepository

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Appends entries to the activity feed"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ActivityRepository(db)

    def log(
        self,
        actor: User | None,
        action_type: str,
        entity_type: str,
        entity_name: str,
        description: str,
        entity_id: int | str | None = None,
        comment: str | None = None,
    ) -> ActivityFeed | None:
        """
        Append one activity entry.

        Returns:
            The stored entry, or None if it could not be written
        """
        entry = ActivityFeed(
            user_id=actor.id if actor is not None else None,
            action_type=action_type,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            entity_name=entity_name,
            description=description,
            comment=comment,
        )
        try:
            return self.repo.create(entry)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Failed to record activity %s on %s %s", action_type, entity_type, entity_id
            )
            return None

    def log_deleted(
        self,
        actor: User | None,
        entity_type: str,
        entity_id: int,
        entity_name: str,
        comment: str | None = None,
        with_dependents: bool = True,
    ) -> ActivityFeed | None:
        suffix = " and all related data" if with_dependents else ""
        return self.log(
            actor,
            action_type="deleted",
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            description=f"Deleted {entity_type}: {entity_name}{suffix}",
            comment=comment,
        )

    def log_sign_in(self, user: User) -> ActivityFeed | None:
        email = user.email or "Unknown user"
        return self.log(
            user,
            action_type="logged_in",
            entity_type="user",
            entity_name=email,
            description=f"User {email} logged in",
        )

    def log_role_provisioned(self, actor: User | None, role: str) -> ActivityFeed | None:
        return self.log(
            actor,
            action_type="created",
            entity_type="role",
            entity_name=role,
            description=f"Created role: {role}",
        )

    def log_role_removed(self, actor: User | None, role: str) -> ActivityFeed | None:
        return self.log(
            actor,
            action_type="deleted",
            entity_type="role",
            entity_name=role,
            description=f"Deleted role: {role}",
        )

    def log_invitation_sent(
        self, actor: User | None, invitation_id: int, email: str, role: str
    ) -> ActivityFeed | None:
        return self.log(
            actor,
            action_type="invited",
            entity_type="invitation",
            entity_id=invitation_id,
            entity_name=email,
            description=f"Invited {email} as {role}",
        )

    def log_privilege_changed(
        self, actor: User | None, role: str, page: str, operation: str, allowed: bool
    ) -> ActivityFeed | None:
        verb = "Granted" if allowed else "Revoked"
        return self.log(
            actor,
            action_type="updated",
            entity_type="privilege",
            entity_name=role,
            description=f"{verb} {page}/{operation} for role {role}",
        )
