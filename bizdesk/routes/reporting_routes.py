from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bizdesk.database import get_db
from bizdesk.dependencies import require_capability
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.session_context import SessionContext
from bizdesk.schemas.reporting_schemas import (
    InvoiceRevenueResponse,
    RevenueSummaryResponse,
    WageSummaryResponse,
)
from bizdesk.services.reporting_service import ReportingService

router = APIRouter()


@router.get("/payments/revenue", response_model=RevenueSummaryResponse)
async def get_revenue(
    client_id: int | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    context: SessionContext = Depends(require_capability(PageName.PAYMENTS, CrudOperation.READ)),
    db: Session = Depends(get_db),
):
    """Total and current-month revenue over payments matching the filters"""
    return ReportingService(db).revenue_summary(client_id, start_date, end_date)


@router.get("/wages/summary", response_model=WageSummaryResponse)
async def get_wage_summary(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    employee_id: int | None = Query(None),
    service_id: int | None = Query(None),
    context: SessionContext = Depends(require_capability(PageName.WAGES, CrudOperation.READ)),
    db: Session = Depends(get_db),
):
    """Wages earned from time entries in one calendar month"""
    return ReportingService(db).wage_summary(year, month, employee_id, service_id)


@router.get("/invoices/revenue", response_model=InvoiceRevenueResponse)
async def get_invoice_revenue(
    client_id: int | None = Query(None),
    context: SessionContext = Depends(require_capability(PageName.INVOICES, CrudOperation.READ)),
    db: Session = Depends(get_db),
):
    """Paid and pending (sent) invoice totals"""
    return ReportingService(db).invoice_revenue_summary(client_id)
