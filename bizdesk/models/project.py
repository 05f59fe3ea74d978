from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Numeric, ForeignKey, Enum, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from bizdesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from bizdesk.models.client import Client


class ProjectStatus(str, PyEnum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class ProjectType(str, PyEnum):
    DEVOPS = "DevOps"
    MARKETING = "Marketing"
    CONSULTING = "Consulting"
    STRATEGY = "Strategy"
    TECHNICAL_WRITING = "Technical Writing"


class Project(Base, TimestampMixin):
    """
    Aggregate root for tasks, sprints, invoices and payments.

    Dependents are removed by the cascade deletion service, not by
    database cascades. deleting_at marks an unfinished stepwise deletion.
    """

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[ProjectType] = mapped_column(
        Enum(ProjectType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ProjectType.CONSULTING,
    )
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )
    hourly_rate: Mapped[float] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=0.00
    )
    total_hours: Mapped[float] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False, default=0.00
    )
    brd_file_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    deleting_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    client: Mapped["Client"] = relationship("Client", back_populates="projects")

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}')>"
