"""Role, page and operation enums for role-based access control."""

from enum import Enum as PyEnum


class AppRole(str, PyEnum):
    """
    Built-in roles provisioned at startup.

    Further roles can be provisioned at runtime; they are stored by name
    in the roles table and need not appear here.

    Priority when a user holds several roles (highest first):
    ADMIN > MANAGER > TEAMLEAD > ACCOUNTANT > ASSOCIATE > custom roles.
    ADMIN is provisioned as the superuser role.
    """

    ADMIN = "admin"
    MANAGER = "manager"
    TEAMLEAD = "teamlead"
    ASSOCIATE = "associate"
    ACCOUNTANT = "accountant"


ROLE_PRIORITY: dict[str, int] = {
    AppRole.ADMIN.value: 5,
    AppRole.MANAGER.value: 4,
    AppRole.TEAMLEAD.value: 3,
    AppRole.ACCOUNTANT.value: 2,
    AppRole.ASSOCIATE.value: 1,
}


class PageName(str, PyEnum):
    """Logical resource areas gated by the privilege matrix"""

    DASHBOARD = "dashboard"
    CLIENTS = "clients"
    EMPLOYEES = "employees"
    PROJECTS = "projects"
    TASKS = "tasks"
    INVOICES = "invoices"
    PAYMENTS = "payments"
    SERVICES = "services"
    WAGES = "wages"


class CrudOperation(str, PyEnum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
