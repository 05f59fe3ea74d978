import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bizdesk.core.exceptions import (
    ConflictException,
    NotFoundException,
    OperationFailedException,
    ValidationException,
)
from bizdesk.models.base import utcnow
from bizdesk.models.role import AppRole, PageName, CrudOperation
from bizdesk.models.role_privilege import Role, RolePrivilege
from bizdesk.models.user import User
from bizdesk.repositories.role_repository import RoleRepository
from bizdesk.repositories.user_repository import UserRepository
from bizdesk.services.activity_logger import ActivityLogger

logger = logging.getLogger(__name__)


def normalize_role_name(name: str) -> str:
    """Canonical form of a role name (trimmed, lower-case)"""
    return name.strip().lower()


def dense_privileges(
    role: str,
    allowed: dict[PageName, list[CrudOperation]] | None = None,
    default: bool = False,
) -> list[RolePrivilege]:
    """
    Build one RolePrivilege per page x operation for a role.

    Args:
        role: Role name
        allowed: Cells to set to True regardless of default
        default: Value of every other cell
    """
    allowed = allowed or {}
    return [
        RolePrivilege(
            role=role,
            page_name=page,
            operation=operation,
            allowed=default or operation in allowed.get(page, []),
        )
        for page in PageName
        for operation in CrudOperation
    ]


class PrivilegeService:
    """Service layer for roles and the privilege matrix"""

    def __init__(self, db: Session):
        self.db = db
        self.role_repo = RoleRepository(db)
        self.user_repo = UserRepository(db)
        self.activity = ActivityLogger(db)

    def ensure_builtin_roles(self) -> list[str]:
        """
        Provision the built-in roles if missing and fill gaps in their matrix.

        admin is provisioned as the superuser role with every cell allowed.
        Existing rows are never modified.

        Returns:
            Names of the roles that were created
        """
        created = []
        for app_role in AppRole:
            is_superuser = app_role == AppRole.ADMIN
            existing = self.role_repo.get_role(app_role.value)
            if existing is None:
                self.role_repo.create_role(
                    Role(
                        name=app_role.value,
                        description=f"Built-in {app_role.value} role",
                        is_superuser=is_superuser,
                    ),
                    dense_privileges(app_role.value, default=is_superuser),
                )
                created.append(app_role.value)
                continue

            present = {
                (p.page_name, p.operation) for p in self.role_repo.get_privileges(app_role.value)
            }
            missing = [
                p
                for p in dense_privileges(app_role.value, default=existing.is_superuser)
                if (p.page_name, p.operation) not in present
            ]
            if missing:
                self.role_repo.add_privileges(missing)
                logger.info(
                    "Filled %d missing privilege rows for role %s", len(missing), app_role.value
                )

        if created:
            logger.info("Provisioned built-in roles: %s", ", ".join(created))
        return created

    def list_roles(self) -> list[Role]:
        return self.role_repo.list_roles()

    def get_matrix(self) -> list[RolePrivilege]:
        """All privilege rows ordered by role, page and operation"""
        return self.role_repo.get_privileges()

    def get_role_privileges(self, role: str) -> list[RolePrivilege]:
        """
        Privilege rows of one role.

        Raises:
            NotFoundException: If the role has no rows and no role record
        """
        role = normalize_role_name(role)
        privileges = self.role_repo.get_privileges(role)
        if not privileges and self.role_repo.get_role(role) is None:
            raise NotFoundException(f"Role '{role}' not found")
        return privileges

    def provision_role(
        self,
        name: str,
        description: str | None = None,
        allowed: dict[PageName, list[CrudOperation]] | None = None,
        actor: User | None = None,
    ) -> Role:
        """
        Create a role with a full, denied-by-default privilege matrix.

        Args:
            name: Role name (normalised to lower case)
            description: Optional description
            allowed: Cells to allow right away
            actor: User performing the change (for the activity feed)

        Returns:
            The created Role

        Raises:
            ValidationException: If the name is empty
            ConflictException: If the role or any privilege row for it already exists
        """
        role_name = normalize_role_name(name)
        if not role_name:
            raise ValidationException("Role name is required")

        if self.role_repo.get_role(role_name) or self.role_repo.count_privileges(role_name):
            raise ConflictException(
                f'Role "{role_name}" already exists. Edit the existing role instead.'
            )

        try:
            role = self.role_repo.create_role(
                Role(name=role_name, description=description, is_superuser=False),
                dense_privileges(role_name, allowed),
            )
        except IntegrityError as e:
            # Lost a race with a concurrent provisioning of the same name
            self.db.rollback()
            raise ConflictException(f'Role "{role_name}" already exists.') from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise OperationFailedException("create role", getattr(e, "orig", None) or e) from e

        logger.info("Provisioned role %s", role_name)
        self.activity.log_role_provisioned(actor, role_name)
        return role

    def set_privilege(
        self,
        role: str,
        page: PageName,
        operation: CrudOperation,
        allowed: bool,
        actor: User | None = None,
    ) -> RolePrivilege:
        """
        Toggle one cell of the matrix.

        Only the addressed row changes (allowed and updated_at).

        Raises:
            NotFoundException: If no row exists for the triple
        """
        role = normalize_role_name(role)
        privilege = self.role_repo.get_privilege(role, page, operation)
        if privilege is None:
            raise NotFoundException(
                f"No privilege for role '{role}' on {page.value}/{operation.value}"
            )

        privilege.allowed = allowed
        privilege.updated_at = utcnow()
        try:
            privilege = self.role_repo.update_privilege(privilege)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise OperationFailedException("update privilege", getattr(e, "orig", None) or e) from e

        logger.info(
            "Privilege %s %s/%s set to %s", role, page.value, operation.value, allowed
        )
        self.activity.log_privilege_changed(actor, role, page.value, operation.value, allowed)
        return privilege

    def set_role_privileges(
        self,
        role: str,
        changes: list[tuple[PageName, CrudOperation, bool]],
        actor: User | None = None,
    ) -> list[RolePrivilege]:
        """
        Apply several cell changes to one role.

        Each change is an independent row update; a failure leaves the
        earlier changes in place.
        """
        self.get_role_privileges(role)
        return [
            self.set_privilege(role, page, op, allowed, actor) for page, op, allowed in changes
        ]

    def remove_role(self, name: str, actor: User | None = None) -> int:
        """
        Remove a role and all of its privilege rows.

        Returns:
            Number of privilege rows removed

        Raises:
            NotFoundException: If the role does not exist
            ValidationException: If it is a superuser role or still assigned to users
        """
        role_name = normalize_role_name(name)
        role = self.role_repo.get_role(role_name)
        if role is None:
            raise NotFoundException(f"Role '{role_name}' not found")
        if role.is_superuser:
            raise ValidationException("Superuser roles cannot be removed")

        holders = self.user_repo.count_role_holders(role_name)
        if holders:
            raise ValidationException(
                f"Role '{role_name}' is still assigned to {holders} user(s)"
            )

        try:
            removed = self.role_repo.delete_role(role)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise OperationFailedException("delete role", getattr(e, "orig", None) or e) from e

        logger.info("Removed role %s (%d privilege rows)", role_name, removed)
        self.activity.log_role_removed(actor, role_name)
        return removed

    def assign_role(self, user_id: int, role: str) -> None:
        """
        Assign a provisioned role to a user.

        Raises:
            NotFoundException: If the user or role does not exist
            ConflictException: If the user already holds the role
        """
        role_name = normalize_role_name(role)
        if self.user_repo.get_by_id(user_id) is None:
            raise NotFoundException(f"User {user_id} not found")
        if self.role_repo.get_role(role_name) is None:
            raise NotFoundException(f"Role '{role_name}' not found")
        if self.user_repo.get_role_assignment(user_id, role_name):
            raise ConflictException(f"User {user_id} already has role '{role_name}'")
        self.user_repo.assign_role(user_id, role_name)

    def unassign_role(self, user_id: int, role: str) -> None:
        role_name = normalize_role_name(role)
        assignment = self.user_repo.get_role_assignment(user_id, role_name)
        if assignment is None:
            raise NotFoundException(f"User {user_id} does not have role '{role_name}'")
        self.user_repo.remove_role(assignment)
