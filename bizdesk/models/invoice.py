import datetime as dt
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Numeric, ForeignKey, Enum, Date, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from bizdesk.models.base import Base, TimestampMixin, utcnow


class InvoiceStatus(str, PyEnum):
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"


class Invoice(Base, TimestampMixin):
    """
    Invoice billed to a client for a project.

    amount = hours x rate over the invoiced tasks.
    """

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id"), nullable=False, index=True
    )
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id"), nullable=False, index=True
    )
    amount: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    hours: Mapped[float] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    rate: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        Enum(InvoiceStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=InvoiceStatus.DRAFT,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, default=lambda: utcnow().date())
    due_date: Mapped[dt.date] = mapped_column(Date, nullable=False)


class InvoiceTask(Base):
    """Junction between invoices and the tasks they bill"""

    __tablename__ = "invoice_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("invoices.id"), nullable=False, index=True
    )
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id"), nullable=False, index=True
    )

    __table_args__ = (UniqueConstraint("invoice_id", "task_id", name="uq_invoice_task"),)
