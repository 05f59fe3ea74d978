from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel


class RevenueSummaryResponse(BaseModel):
    """Schema for revenue over filtered payments"""

    client_id: int | None
    start_date: date | None
    end_date: date | None
    payment_count: int
    total_revenue: Decimal
    monthly_revenue: Decimal


class WageRecordResponse(BaseModel):
    entry_id: int | None
    employee_id: int
    task_id: int
    worked_at: datetime
    hours_worked: Decimal
    hourly_rate: Decimal
    wage_amount: Decimal
    task_name: str | None = None
    project_name: str | None = None

    class Config:
        from_attributes = True


class WageSummaryResponse(BaseModel):
    """Schema for one month of wages"""

    year: int
    month: int
    records: list[WageRecordResponse]
    total_hours: Decimal
    total_wages: Decimal


class InvoiceRevenueResponse(BaseModel):
    client_id: int | None
    paid_revenue: Decimal
    pending_revenue: Decimal
