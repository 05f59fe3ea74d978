"""
Access control policy.

Every permission decision in the application goes through
AccessControlPolicy: route guards (require_capability) and the
capability map the frontend uses to show or hide action buttons.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizdesk.config import settings
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.session_context import SessionContext
from bizdesk.repositories.role_repository import RoleRepository

logger = logging.getLogger(__name__)


class AccessControlPolicy:
    """Decides whether a (role, page, operation) is permitted"""

    def __init__(self, db: Session):
        self.db = db
        self.role_repo = RoleRepository(db)

    def is_allowed(self, role: str | None, page: PageName, operation: CrudOperation) -> bool:
        """
        Look up the privilege matrix for a role.

        Superuser roles are granted everything without consulting their
        rows. For any other role the unique (role, page, operation) row
        decides; a missing row or a failing store means deny.

        Args:
            role: Role name, None when the caller holds no role
            page: Resource area
            operation: CRUD operation

        Returns:
            True if the operation is permitted
        """
        if role is None:
            return False

        try:
            role_record = self.role_repo.get_role(role)
            if role_record is not None and role_record.is_superuser:
                return True
            privilege = self.role_repo.get_privilege(role, page, operation)
        except SQLAlchemyError:
            logger.exception(
                "Privilege lookup failed for role=%s page=%s operation=%s, denying",
                role,
                page.value,
                operation.value,
            )
            return False

        if privilege is None:
            logger.debug(
                "No privilege row for role=%s page=%s operation=%s",
                role,
                page.value,
                operation.value,
            )
            return False
        return bool(privilege.allowed)

    def is_break_glass(self, email: str | None) -> bool:
        """True when the email is configured for break-glass access"""
        return bool(email) and email.lower() in settings.break_glass_emails_list

    def has_capability(
        self, context: SessionContext, page: PageName, operation: CrudOperation
    ) -> bool:
        """
        Decide for an authenticated session.

        Break-glass identities (BREAK_GLASS_EMAILS) are granted everything
        and every such grant is logged at WARNING.
        """
        if context.break_glass:
            logger.warning(
                "Break-glass access used by %s for %s/%s",
                context.email,
                page.value,
                operation.value,
            )
            return True
        return self.is_allowed(context.role, page, operation)

    def capability_map(self, context: SessionContext) -> dict[str, list[str]]:
        """
        Evaluate every page and operation for the session.

        Returns:
            Mapping page -> permitted operations (pages with none are included, empty)
        """
        if context.break_glass:
            logger.warning("Break-glass capability map issued to %s", context.email)
            return {page.value: [op.value for op in CrudOperation] for page in PageName}

        return {
            page.value: [
                op.value for op in CrudOperation if self.is_allowed(context.role, page, op)
            ]
            for page in PageName
        }
