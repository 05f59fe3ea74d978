from sqlalchemy.orm import Session

from bizdesk.models.role import ROLE_PRIORITY
from bizdesk.models.session_context import SessionContext
from bizdesk.models.user import User
from bizdesk.repositories.role_repository import RoleRepository
from bizdesk.repositories.user_repository import UserRepository
from bizdesk.services.access_control import AccessControlPolicy
from bizdesk.services.activity_logger import ActivityLogger


class SessionService:
    """Resolves the session role and records the sign-in lifecycle"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.role_repo = RoleRepository(db)
        self.policy = AccessControlPolicy(db)
        self.activity = ActivityLogger(db)

    def resolve_role(self, user: User) -> tuple[str | None, bool]:
        """
        Pick the session role among the user's assignments.

        Superuser roles win, then built-in priority
        (manager > teamlead > accountant > associate > custom roles),
        then the most recently assigned.

        Returns:
            (role name or None, whether that role is a superuser role)
        """
        assignments = self.user_repo.get_roles(user.id)
        if not assignments:
            return None, False

        superuser = {}
        for assignment in assignments:
            record = self.role_repo.get_role(assignment.role)
            superuser[assignment.role] = bool(record and record.is_superuser)

        # max() keeps the first of equal keys; assignments are newest first
        chosen = max(
            assignments, key=lambda a: (superuser[a.role], ROLE_PRIORITY.get(a.role, 0))
        )
        return chosen.role, superuser[chosen.role]

    def build_context(self, user: User) -> SessionContext:
        role, is_superuser = self.resolve_role(user)
        return SessionContext(
            user=user,
            role=role,
            is_superuser=is_superuser,
            break_glass=self.policy.is_break_glass(user.email),
        )

    def record_sign_in(self, context: SessionContext) -> None:
        self.activity.log_sign_in(context.user)
