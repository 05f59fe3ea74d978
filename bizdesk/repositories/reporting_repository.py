from datetime import date, datetime
from typing import Optional
from sqlalchemy.orm import Session, joinedload

from bizdesk.models.employee import EmployeeService
from bizdesk.models.invoice import Invoice
from bizdesk.models.payment import Payment
from bizdesk.models.task import Task, TimeEntry


class ReportingRepository:
    """Read-only queries feeding the revenue and wage reports"""

    def __init__(self, db: Session):
        self.db = db

    def get_payments(
        self,
        client_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Payment]:
        """
        Get payments matching the filters.

        Args:
            client_id: Optional client filter
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)

        Returns:
            Payments ordered by payment date, newest first
        """
        query = self.db.query(Payment)

        if client_id is not None:
            query = query.filter(Payment.client_id == client_id)

        if start_date is not None:
            query = query.filter(Payment.payment_date >= start_date)

        if end_date is not None:
            query = query.filter(Payment.payment_date <= end_date)

        return query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()

    def get_time_entries(
        self,
        start: datetime,
        end: datetime,
        employee_id: Optional[int] = None,
    ) -> list[TimeEntry]:
        """
        Get time entries started within [start, end], with task and project loaded.
        """
        query = (
            self.db.query(TimeEntry)
            .options(joinedload(TimeEntry.task).joinedload(Task.project))
            .filter(TimeEntry.start_time >= start, TimeEntry.start_time <= end)
        )
        if employee_id is not None:
            query = query.filter(TimeEntry.employee_id == employee_id)
        return query.order_by(TimeEntry.start_time.desc()).all()

    def get_services_by_employee(self) -> dict[int, set[int]]:
        """Map employee id -> ids of the services they deliver"""
        mapping: dict[int, set[int]] = {}
        for link in self.db.query(EmployeeService).all():
            mapping.setdefault(link.employee_id, set()).add(link.service_id)
        return mapping

    def get_invoices(self, client_id: Optional[int] = None) -> list[Invoice]:
        query = self.db.query(Invoice)
        if client_id is not None:
            query = query.filter(Invoice.client_id == client_id)
        return query.all()
