"""ORM models. Importing this package registers every table on Base.metadata."""

from bizdesk.models.base import Base
from bizdesk.models.user import User
from bizdesk.models.user_role import UserRole
from bizdesk.models.role_privilege import Role, RolePrivilege
from bizdesk.models.client import Client
from bizdesk.models.employee import Employee, Service, EmployeeService
from bizdesk.models.project import Project
from bizdesk.models.task import Task, TimeEntry, TaskComment
from bizdesk.models.sprint import Sprint, SprintTask
from bizdesk.models.invoice import Invoice, InvoiceTask
from bizdesk.models.payment import Payment
from bizdesk.models.activity import ActivityFeed
from bizdesk.models.invitation import Invitation

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Role",
    "RolePrivilege",
    "Client",
    "Employee",
    "Service",
    "EmployeeService",
    "Project",
    "Task",
    "TimeEntry",
    "TaskComment",
    "Sprint",
    "SprintTask",
    "Invoice",
    "InvoiceTask",
    "Payment",
    "ActivityFeed",
    "Invitation",
]
