"""
Data access for the project and client aggregates.

The delete methods issue one delete-by-predicate statement each and do
NOT commit: the cascade deletion service decides where the transaction
boundaries are. Every delete is idempotent (an empty match deletes
nothing) and returns the number of rows removed.
"""

from collections.abc import Collection
from datetime import datetime

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from bizdesk.models.client import Client
from bizdesk.models.invitation import Invitation
from bizdesk.models.invoice import Invoice, InvoiceTask
from bizdesk.models.payment import Payment
from bizdesk.models.project import Project
from bizdesk.models.sprint import Sprint, SprintTask
from bizdesk.models.task import Task, TimeEntry, TaskComment


class AggregateRepository:
    """Reads and deletes across a project or client aggregate"""

    def __init__(self, db: Session):
        self.db = db

    # Roots

    def get_project(self, project_id: int) -> Project | None:
        return self.db.query(Project).filter(Project.id == project_id).first()

    def get_client(self, client_id: int) -> Client | None:
        return self.db.query(Client).filter(Client.id == client_id).first()

    def get_task(self, task_id: int) -> Task | None:
        return self.db.query(Task).filter(Task.id == task_id).first()

    def get_sprint(self, sprint_id: int) -> Sprint | None:
        return self.db.query(Sprint).filter(Sprint.id == sprint_id).first()

    def projects_marked_for_deletion(self) -> list[Project]:
        return (
            self.db.query(Project)
            .filter(Project.deleting_at.is_not(None))
            .order_by(Project.deleting_at)
            .all()
        )

    def clients_marked_for_deletion(self) -> list[Client]:
        return (
            self.db.query(Client)
            .filter(Client.deleting_at.is_not(None))
            .order_by(Client.deleting_at)
            .all()
        )

    def mark_for_deletion(
        self, model: type[Project] | type[Client], root_id: int, when: datetime
    ) -> int:
        """Stamp the deletion-in-progress marker (not committed). Returns rows marked."""
        return self._execute(
            update(model).where(model.id == root_id).values(deleting_at=when)
        )

    # Dependent id sets

    def project_ids_for_client(self, client_id: int) -> list[int]:
        return list(self.db.scalars(select(Project.id).where(Project.client_id == client_id)))

    def task_ids_for_projects(self, project_ids: Collection[int]) -> list[int]:
        return list(self.db.scalars(select(Task.id).where(Task.project_id.in_(project_ids))))

    def sprint_ids_for_projects(self, project_ids: Collection[int]) -> list[int]:
        return list(self.db.scalars(select(Sprint.id).where(Sprint.project_id.in_(project_ids))))

    def invoice_ids_for_projects(self, project_ids: Collection[int]) -> list[int]:
        return list(
            self.db.scalars(select(Invoice.id).where(Invoice.project_id.in_(project_ids)))
        )

    def invoice_ids_for_client(self, client_id: int) -> list[int]:
        return list(self.db.scalars(select(Invoice.id).where(Invoice.client_id == client_id)))

    # Deletes (leaf first)

    def _execute(self, statement) -> int:
        result = self.db.execute(statement.execution_options(synchronize_session=False))
        return result.rowcount or 0

    def delete_time_entries(self, task_ids: Collection[int]) -> int:
        return self._execute(delete(TimeEntry).where(TimeEntry.task_id.in_(task_ids)))

    def delete_task_comments(self, task_ids: Collection[int]) -> int:
        return self._execute(delete(TaskComment).where(TaskComment.task_id.in_(task_ids)))

    def delete_sprint_tasks(
        self, task_ids: Collection[int], sprint_ids: Collection[int] = ()
    ) -> int:
        """Remove junction rows pointing at any of the tasks or sprints"""
        return self._execute(
            delete(SprintTask).where(
                or_(SprintTask.task_id.in_(task_ids), SprintTask.sprint_id.in_(sprint_ids))
            )
        )

    def delete_invoice_tasks(
        self, task_ids: Collection[int], invoice_ids: Collection[int] = ()
    ) -> int:
        """Remove junction rows pointing at any of the tasks or invoices"""
        return self._execute(
            delete(InvoiceTask).where(
                or_(InvoiceTask.task_id.in_(task_ids), InvoiceTask.invoice_id.in_(invoice_ids))
            )
        )

    def delete_tasks(self, project_ids: Collection[int]) -> int:
        return self._execute(delete(Task).where(Task.project_id.in_(project_ids)))

    def delete_tasks_by_id(self, task_ids: Collection[int]) -> int:
        return self._execute(delete(Task).where(Task.id.in_(task_ids)))

    def delete_sprints(self, project_ids: Collection[int]) -> int:
        return self._execute(delete(Sprint).where(Sprint.project_id.in_(project_ids)))

    def delete_sprints_by_id(self, sprint_ids: Collection[int]) -> int:
        return self._execute(delete(Sprint).where(Sprint.id.in_(sprint_ids)))

    def delete_invoices(self, project_ids: Collection[int]) -> int:
        return self._execute(delete(Invoice).where(Invoice.project_id.in_(project_ids)))

    def delete_client_invoices(self, client_id: int) -> int:
        return self._execute(delete(Invoice).where(Invoice.client_id == client_id))

    def delete_payments(self, project_ids: Collection[int]) -> int:
        return self._execute(delete(Payment).where(Payment.project_id.in_(project_ids)))

    def delete_client_payments(self, client_id: int) -> int:
        return self._execute(delete(Payment).where(Payment.client_id == client_id))

    def delete_client_invitations(self, client_id: int) -> int:
        return self._execute(delete(Invitation).where(Invitation.client_id == client_id))

    def delete_projects(self, project_ids: Collection[int]) -> int:
        return self._execute(delete(Project).where(Project.id.in_(project_ids)))

    def delete_client(self, client_id: int) -> int:
        return self._execute(delete(Client).where(Client.id == client_id))
