"""Role records and the privilege matrix."""

from sqlalchemy import String, Integer, Boolean, Enum, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bizdesk.models.base import Base, TimestampMixin
from bizdesk.models.role import PageName, CrudOperation


class Role(Base, TimestampMixin):
    """
    A provisioned role.

    is_superuser marks a role that is granted every page and operation
    without consulting its privilege rows. The built-in admin role is
    provisioned with it set.
    """

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_superuser: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Role(name='{self.name}', is_superuser={self.is_superuser})>"


class RolePrivilege(Base, TimestampMixin):
    """
    One cell of the privilege matrix: (role, page, operation) -> allowed.

    The matrix is dense: provisioning a role creates one row for every
    page x operation combination, all denied. Rows are only removed when
    the role itself is removed.

    Constraints:
    - Unique(role, page_name, operation)
    """

    __tablename__ = "role_privileges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    page_name: Mapped[PageName] = mapped_column(
        Enum(PageName, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    operation: Mapped[CrudOperation] = mapped_column(
        Enum(CrudOperation, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("role", "page_name", "operation", name="uq_role_page_operation"),
    )

    def __repr__(self) -> str:
        return (
            f"<RolePrivilege(role='{self.role}', page={self.page_name.value}, "
            f"operation={self.operation.value}, allowed={self.allowed})>"
        )
