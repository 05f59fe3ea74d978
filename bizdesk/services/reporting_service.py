import calendar
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizdesk.core.exceptions import OperationFailedException, ValidationException
from bizdesk.models.base import utcnow
from bizdesk.repositories.reporting_repository import ReportingRepository
from bizdesk.services.aggregation import (
    PaymentFilter,
    filter_payments,
    filter_wage_records,
    invoice_revenue,
    monthly_revenue,
    total_revenue,
    wage_records,
    wage_totals,
)


class ReportingService:
    """Revenue, wage and invoice summaries computed from filtered rows"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReportingRepository(db)

    def revenue_summary(
        self,
        client_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> dict:
        """
        Total revenue over the filtered payments and this month's share of it.

        Raises:
            ValidationException: If start_date is after end_date
        """
        if start_date and end_date and start_date > end_date:
            raise ValidationException("start_date must not be after end_date")

        flt = PaymentFilter(client_id=client_id, start_date=start_date, end_date=end_date)
        try:
            payments = self.repo.get_payments(client_id, start_date, end_date)
        except SQLAlchemyError as e:
            raise OperationFailedException("load payments", getattr(e, "orig", None) or e) from e

        matching = filter_payments(payments, flt)
        today = today or utcnow().date()
        return {
            "client_id": client_id,
            "start_date": start_date,
            "end_date": end_date,
            "payment_count": len(matching),
            "total_revenue": total_revenue(matching),
            "monthly_revenue": monthly_revenue(matching, today.year, today.month),
        }

    def wage_summary(
        self,
        year: int,
        month: int,
        employee_id: Optional[int] = None,
        service_id: Optional[int] = None,
    ) -> dict:
        """
        Wage records for one calendar month with hour and wage totals.

        Raises:
            ValidationException: If month is not 1-12
        """
        if not 1 <= month <= 12:
            raise ValidationException("month must be between 1 and 12")

        last_day = calendar.monthrange(year, month)[1]
        start = datetime(year, month, 1)
        end = datetime(year, month, last_day, 23, 59, 59, 999999)

        try:
            entries = self.repo.get_time_entries(start, end, employee_id)
            services = self.repo.get_services_by_employee() if service_id is not None else {}
        except SQLAlchemyError as e:
            cause = getattr(e, "orig", None) or e
            raise OperationFailedException("load time entries", cause) from e

        records = filter_wage_records(
            wage_records(entries),
            employee_id=employee_id,
            service_id=service_id,
            services_by_employee=services,
        )
        total_hours, total_wages = wage_totals(records)
        return {
            "year": year,
            "month": month,
            "records": records,
            "total_hours": total_hours,
            "total_wages": total_wages,
        }

    def invoice_revenue_summary(self, client_id: Optional[int] = None) -> dict:
        try:
            invoices = self.repo.get_invoices(client_id)
        except SQLAlchemyError as e:
            raise OperationFailedException("load invoices", getattr(e, "orig", None) or e) from e
        paid, pending = invoice_revenue(invoices)
        return {"client_id": client_id, "paid_revenue": paid, "pending_revenue": pending}
