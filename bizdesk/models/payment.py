from datetime import date
from sqlalchemy import String, Integer, Numeric, ForeignKey, Date, Index
from sqlalchemy.orm import Mapped, mapped_column
from bizdesk.models.base import Base, TimestampMixin


class Payment(Base, TimestampMixin):
    """
    Money received from a client against a project.

    invoice_number is a plain reference, not a foreign key: invoices are
    removed before payments during a cascade deletion.
    """

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id"), nullable=False, index=True
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id"), nullable=False, index=True
    )
    invoice_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)

    __table_args__ = (Index("ix_payments_client_date", "client_id", "payment_date"),)
