from datetime import datetime
from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from bizdesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from bizdesk.models.project import Project


class Client(Base, TimestampMixin):
    """
    A customer of the agency. Aggregate root for its projects.

    deleting_at is set while a stepwise cascade deletion is in progress
    so an interrupted deletion can be found and finished.
    """

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    deleting_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    projects: Mapped[list["Project"]] = relationship("Project", back_populates="client")

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name='{self.name}')>"
