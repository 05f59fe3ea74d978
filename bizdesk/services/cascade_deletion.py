"""
Cascade deletion of aggregate roots (projects and clients).

Foreign keys carry no database-level cascade, so dependents are removed
leaf first, one delete-by-predicate per step:

    time_entries -> task_comments -> sprint_tasks -> invoice_tasks
    -> tasks -> sprints -> invoices -> payments -> projects

Two execution modes (CASCADE_MODE):

- "transaction": every step runs in one database transaction, committed
  at the end. A failure rolls everything back.
- "stepwise": the root is stamped with deleting_at first, then each step
  is committed on its own. A failure leaves the earlier steps committed
  and the marker set; resume_pending_deletions() finishes the job.

Re-running a deletion is safe in both modes because deleting an empty
match is a no-op.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizdesk.config import settings
from bizdesk.core.exceptions import CascadeDeletionError, NotFoundException
from bizdesk.models.base import utcnow
from bizdesk.models.client import Client
from bizdesk.models.project import Project
from bizdesk.models.user import User
from bizdesk.repositories.aggregate_repository import AggregateRepository
from bizdesk.services.activity_logger import ActivityLogger

logger = logging.getLogger(__name__)

CASCADE_MODES = ("transaction", "stepwise")

Step = tuple[str, Callable[[], int]]

PROJECT_CACHE_KEYS = ["projects", "tasks", "sprints", "invoices", "payments", "time-entries"]
CLIENT_CACHE_KEYS = ["clients", "invitations", *PROJECT_CACHE_KEYS]


@dataclass
class DeletionResult:
    """Outcome of a successful cascade deletion"""

    entity_type: str
    entity_id: int
    entity_name: str
    steps: dict[str, int] = field(default_factory=dict)  # step -> rows removed, in order
    already_deleted: bool = False
    invalidates: list[str] = field(default_factory=list)


@dataclass
class ResumeReport:
    completed: list[tuple[str, int]] = field(default_factory=list)
    failed: list[tuple[str, int, str]] = field(default_factory=list)


class CascadeDeletionService:
    """Deletes aggregate roots together with everything that depends on them"""

    def __init__(self, db: Session, mode: str | None = None):
        self.db = db
        self.repo = AggregateRepository(db)
        self.activity = ActivityLogger(db)
        self.mode = mode or settings.CASCADE_MODE
        if self.mode not in CASCADE_MODES:
            raise ValueError(f"Unknown cascade mode '{self.mode}', expected one of {CASCADE_MODES}")

    @property
    def stepwise(self) -> bool:
        return self.mode == "stepwise"

    def _project_chain(
        self, project_ids: list[int], extra_invoice_ids: list[int] | None = None
    ) -> list[Step]:
        """
        Steps removing everything below the given projects, projects excluded.

        Dependent id sets are read once, up front.
        """
        task_ids = self.repo.task_ids_for_projects(project_ids)
        sprint_ids = self.repo.sprint_ids_for_projects(project_ids)
        invoice_ids = self.repo.invoice_ids_for_projects(project_ids)
        if extra_invoice_ids:
            invoice_ids = sorted(set(invoice_ids) | set(extra_invoice_ids))

        return [
            ("time_entries", lambda: self.repo.delete_time_entries(task_ids)),
            ("task_comments", lambda: self.repo.delete_task_comments(task_ids)),
            ("sprint_tasks", lambda: self.repo.delete_sprint_tasks(task_ids, sprint_ids)),
            ("invoice_tasks", lambda: self.repo.delete_invoice_tasks(task_ids, invoice_ids)),
            ("tasks", lambda: self.repo.delete_tasks(project_ids)),
            ("sprints", lambda: self.repo.delete_sprints(project_ids)),
            ("invoices", lambda: self.repo.delete_invoices(project_ids)),
            ("payments", lambda: self.repo.delete_payments(project_ids)),
        ]

    def _run(
        self,
        entity_type: str,
        entity_id: int,
        root_model: type[Project] | type[Client] | None,
        build_steps: Callable[[], list[Step]],
    ) -> dict[str, int]:
        """
        Execute the steps in order under the configured mode.

        In stepwise mode the root is marked first; a root that is already
        gone at that point ends the run with no steps executed.

        Returns:
            Rows removed per step

        Raises:
            CascadeDeletionError: On the first failing step
        """
        counts: dict[str, int] = {}
        committed: list[str] = []
        current = "resolve"
        try:
            if self.stepwise and root_model is not None:
                current = "mark"
                marked = self.repo.mark_for_deletion(root_model, entity_id, utcnow())
                self.db.commit()
                if not marked:
                    return counts

            current = "resolve"
            steps = build_steps()

            for name, action in steps:
                current = name
                counts[name] = action()
                logger.debug(
                    "Cascade %s %s: step %s removed %d rows",
                    entity_type,
                    entity_id,
                    name,
                    counts[name],
                )
                if self.stepwise:
                    self.db.commit()
                    committed.append(name)

            if not self.stepwise:
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            cause = getattr(e, "orig", None) or e
            logger.error(
                "Cascade deletion of %s %s failed at step %s (committed: %s): %s",
                entity_type,
                entity_id,
                current,
                ", ".join(committed) or "none",
                cause,
            )
            raise CascadeDeletionError(entity_type, entity_id, current, committed, cause) from e

        return counts

    def delete_project(self, project_id: int, operator: User | None = None) -> DeletionResult:
        """
        Delete a project and all of its dependents.

        Args:
            project_id: Root project ID
            operator: User performing the deletion (for the activity feed)

        Returns:
            DeletionResult with per-step row counts

        Raises:
            NotFoundException: If the project does not exist
            CascadeDeletionError: If a step fails
        """
        project = self.repo.get_project(project_id)
        if project is None:
            raise NotFoundException(f"Project {project_id} not found")

        project_name = project.name
        client_name = project.client.name if project.client else "Unknown Client"
        logger.info(
            "Deleting project %s (%s) in %s mode, operator=%s",
            project_id,
            project_name,
            self.mode,
            operator.id if operator else None,
        )

        def build_steps() -> list[Step]:
            return self._project_chain([project_id]) + [
                ("projects", lambda: self.repo.delete_projects([project_id])),
            ]

        counts = self._run("project", project_id, Project, build_steps)
        result = DeletionResult(
            entity_type="project",
            entity_id=project_id,
            entity_name=project_name,
            steps=counts,
            already_deleted=counts.get("projects", 0) == 0,
            invalidates=list(PROJECT_CACHE_KEYS),
        )
        if result.already_deleted:
            logger.info("Project %s was already deleted by a concurrent request", project_id)
            return result

        logger.info("Project %s deleted: %s", project_id, counts)
        self.activity.log_deleted(
            operator, "project", project_id, project_name, comment=f"Client: {client_name}"
        )
        return result

    def delete_client(self, client_id: int, operator: User | None = None) -> DeletionResult:
        """
        Delete a client, all of its projects (with their dependents) and
        the client-only associations: leftover invoices and payments billed
        to the client, and pending invitations.

        Raises:
            NotFoundException: If the client does not exist
            CascadeDeletionError: If a step fails
        """
        client = self.repo.get_client(client_id)
        if client is None:
            raise NotFoundException(f"Client {client_id} not found")

        client_name = client.name
        resolved: dict[str, list[int]] = {}
        logger.info(
            "Deleting client %s (%s) in %s mode, operator=%s",
            client_id,
            client_name,
            self.mode,
            operator.id if operator else None,
        )

        def build_steps() -> list[Step]:
            project_ids = self.repo.project_ids_for_client(client_id)
            client_invoice_ids = self.repo.invoice_ids_for_client(client_id)
            resolved["projects"] = project_ids
            return self._project_chain(project_ids, client_invoice_ids) + [
                ("projects", lambda: self.repo.delete_projects(project_ids)),
                ("client_invoices", lambda: self.repo.delete_client_invoices(client_id)),
                ("client_payments", lambda: self.repo.delete_client_payments(client_id)),
                ("invitations", lambda: self.repo.delete_client_invitations(client_id)),
                ("clients", lambda: self.repo.delete_client(client_id)),
            ]

        counts = self._run("client", client_id, Client, build_steps)
        result = DeletionResult(
            entity_type="client",
            entity_id=client_id,
            entity_name=client_name,
            steps=counts,
            already_deleted=counts.get("clients", 0) == 0,
            invalidates=list(CLIENT_CACHE_KEYS),
        )
        if result.already_deleted:
            logger.info("Client %s was already deleted by a concurrent request", client_id)
            return result

        logger.info("Client %s deleted: %s", client_id, counts)

        self.activity.log_deleted(
            operator,
            "client",
            client_id,
            client_name,
            comment=f"Projects removed: {len(resolved.get('projects', []))}",
        )
        return result

    def delete_task(self, task_id: int, operator: User | None = None) -> DeletionResult:
        """
        Delete a single task with its time entries, comments and junction rows.

        Raises:
            NotFoundException: If the task does not exist
            CascadeDeletionError: If a step fails
        """
        task = self.repo.get_task(task_id)
        if task is None:
            raise NotFoundException(f"Task {task_id} not found")
        task_name = task.name

        def build_steps() -> list[Step]:
            ids = [task_id]
            return [
                ("time_entries", lambda: self.repo.delete_time_entries(ids)),
                ("task_comments", lambda: self.repo.delete_task_comments(ids)),
                ("sprint_tasks", lambda: self.repo.delete_sprint_tasks(ids)),
                ("invoice_tasks", lambda: self.repo.delete_invoice_tasks(ids)),
                ("tasks", lambda: self.repo.delete_tasks_by_id(ids)),
            ]

        counts = self._run("task", task_id, None, build_steps)
        result = DeletionResult(
            entity_type="task",
            entity_id=task_id,
            entity_name=task_name,
            steps=counts,
            already_deleted=counts["tasks"] == 0,
            invalidates=["tasks", "time-entries"],
        )
        if not result.already_deleted:
            self.activity.log_deleted(operator, "task", task_id, task_name, with_dependents=False)
        return result

    def delete_sprint(self, sprint_id: int, operator: User | None = None) -> DeletionResult:
        """
        Delete a sprint and its task links (the tasks themselves stay).

        Raises:
            NotFoundException: If the sprint does not exist
            CascadeDeletionError: If a step fails
        """
        sprint = self.repo.get_sprint(sprint_id)
        if sprint is None:
            raise NotFoundException(f"Sprint {sprint_id} not found")
        sprint_title = sprint.title

        def build_steps() -> list[Step]:
            ids = [sprint_id]
            return [
                ("sprint_tasks", lambda: self.repo.delete_sprint_tasks([], ids)),
                ("sprints", lambda: self.repo.delete_sprints_by_id(ids)),
            ]

        counts = self._run("sprint", sprint_id, None, build_steps)
        result = DeletionResult(
            entity_type="sprint",
            entity_id=sprint_id,
            entity_name=sprint_title,
            steps=counts,
            already_deleted=counts["sprints"] == 0,
            invalidates=["sprints"],
        )
        if not result.already_deleted:
            self.activity.log_deleted(
                operator, "sprint", sprint_id, sprint_title, with_dependents=False
            )
        return result

    def resume_pending_deletions(self, operator: User | None = None) -> ResumeReport:
        """
        Finish every deletion whose deletion-in-progress marker is still set.

        Failures are logged and reported, never raised.
        """
        report = ResumeReport()

        pending: list[tuple[str, int]] = [
            ("project", p.id) for p in self.repo.projects_marked_for_deletion()
        ] + [("client", c.id) for c in self.repo.clients_marked_for_deletion()]

        if pending:
            logger.info("Resuming %d interrupted deletion(s)", len(pending))

        for entity_type, entity_id in pending:
            delete = self.delete_project if entity_type == "project" else self.delete_client
            try:
                delete(entity_id, operator)
                report.completed.append((entity_type, entity_id))
            except NotFoundException:
                # Finished by an earlier pass or a concurrent request
                report.completed.append((entity_type, entity_id))
            except CascadeDeletionError as e:
                logger.error("Could not resume deletion of %s %s: %s", entity_type, entity_id, e)
                report.failed.append((entity_type, entity_id, str(e)))

        return report
