"""Repository for roles and the privilege matrix."""

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.role_privilege import Role, RolePrivilege


class RoleRepository:
    """Repository for Role and RolePrivilege operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_role(self, name: str) -> Role | None:
        """
        Get a role record by name.

        Args:
            name: Role name

        Returns:
            Role object or None if not provisioned
        """
        return self.db.query(Role).filter(Role.name == name).first()

    def list_roles(self) -> list[Role]:
        return self.db.query(Role).order_by(Role.name).all()

    def get_privilege(
        self, role: str, page: PageName, operation: CrudOperation
    ) -> RolePrivilege | None:
        """
        Get the single matrix cell for (role, page, operation).

        Returns:
            RolePrivilege or None when no row exists
        """
        return (
            self.db.query(RolePrivilege)
            .filter(
                RolePrivilege.role == role,
                RolePrivilege.page_name == page,
                RolePrivilege.operation == operation,
            )
            .first()
        )

    def get_privileges(self, role: str | None = None) -> list[RolePrivilege]:
        """
        Get matrix rows ordered by role, page and operation.

        Args:
            role: Restrict to one role when given
        """
        query = self.db.query(RolePrivilege)
        if role is not None:
            query = query.filter(RolePrivilege.role == role)
        return query.order_by(
            RolePrivilege.role, RolePrivilege.page_name, RolePrivilege.operation
        ).all()

    def count_privileges(self, role: str) -> int:
        return self.db.query(RolePrivilege).filter(RolePrivilege.role == role).count()

    def create_role(self, role: Role, privileges: list[RolePrivilege]) -> Role:
        """
        Create a role together with its privilege rows in one commit.

        Raises:
            IntegrityError: If the role name or any (role, page, operation) exists
        """
        self.db.add(role)
        self.db.add_all(privileges)
        self.db.commit()
        self.db.refresh(role)
        return role

    def add_privileges(self, privileges: list[RolePrivilege]) -> None:
        """Insert missing matrix rows for an existing role"""
        self.db.add_all(privileges)
        self.db.commit()

    def update_privilege(self, privilege: RolePrivilege) -> RolePrivilege:
        """Commit a change to one matrix row"""
        self.db.commit()
        self.db.refresh(privilege)
        return privilege

    def delete_role(self, role: Role) -> int:
        """
        Delete a role and all of its privilege rows.

        Returns:
            Number of privilege rows removed
        """
        result = self.db.execute(delete(RolePrivilege).where(RolePrivilege.role == role.name))
        self.db.delete(role)
        self.db.commit()
        return result.rowcount
