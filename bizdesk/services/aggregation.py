"""
Pure aggregation functions for revenue, wages and invoices.

They take plain sequences of objects exposing the relevant attributes
(ORM rows or anything duck-typed like them) and never touch the database,
so filters and sums can be tested in isolation from persistence.
Money is summed as Decimal.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert a numeric column value (Decimal, float, int or None) to Decimal"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


@dataclass(frozen=True)
class PaymentFilter:
    """Client and inclusive date-range predicate over payments"""

    client_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def matches(self, payment: Any) -> bool:
        if self.client_id is not None and payment.client_id != self.client_id:
            return False
        paid_on = _as_date(payment.payment_date)
        if self.start_date is not None and paid_on < self.start_date:
            return False
        if self.end_date is not None and paid_on > self.end_date:
            return False
        return True


def _unique(rows: Iterable[Any]) -> list[Any]:
    """Drop repeated rows (same id, or same object when unsaved), keeping order"""
    seen: set = set()
    unique = []
    for row in rows:
        key = getattr(row, "id", None)
        key = ("id", key) if key is not None else ("obj", id(row))
        if key in seen:
            continue
        seen.add(key)
        unique.append(row)
    return unique


def filter_payments(payments: Iterable[Any], flt: Optional[PaymentFilter] = None) -> list[Any]:
    """Payments matching the filter, each row at most once"""
    rows = _unique(payments)
    if flt is None:
        return rows
    return [p for p in rows if flt.matches(p)]


def total_revenue(payments: Iterable[Any], flt: Optional[PaymentFilter] = None) -> Decimal:
    """Sum of amount over exactly the payments matching the filter"""
    return sum((to_decimal(p.amount) for p in filter_payments(payments, flt)), ZERO)


def monthly_revenue(payments: Iterable[Any], year: int, month: int) -> Decimal:
    """Revenue of the payments dated in the given calendar month"""
    return sum(
        (
            to_decimal(p.amount)
            for p in filter_payments(payments)
            if _as_date(p.payment_date).year == year and _as_date(p.payment_date).month == month
        ),
        ZERO,
    )


@dataclass(frozen=True)
class WageRecord:
    entry_id: Optional[int]
    employee_id: int
    task_id: int
    worked_at: datetime
    hours_worked: Decimal
    hourly_rate: Decimal
    wage_amount: Decimal
    task_name: Optional[str] = None
    project_name: Optional[str] = None


def project_rate(entry: Any) -> Decimal:
    """Hourly rate of the project the entry's task belongs to (0 if unknown)"""
    task = getattr(entry, "task", None)
    project = getattr(task, "project", None) if task is not None else None
    return to_decimal(getattr(project, "hourly_rate", None))


def wage_record(entry: Any, rate_for: Callable[[Any], Decimal] = project_rate) -> WageRecord:
    """
    Wage earned by one time entry.

    hours = duration_minutes / 60 and wage = hours x rate, both rounded to
    cents; an entry without duration or rate earns nothing.
    """
    minutes = to_decimal(entry.duration_minutes)
    rate = to_decimal(rate_for(entry))
    task = getattr(entry, "task", None)
    project = getattr(task, "project", None) if task is not None else None
    return WageRecord(
        entry_id=getattr(entry, "id", None),
        employee_id=entry.employee_id,
        task_id=entry.task_id,
        worked_at=entry.start_time,
        hours_worked=(minutes / 60).quantize(CENT),
        hourly_rate=rate,
        wage_amount=(minutes * rate / 60).quantize(CENT),
        task_name=getattr(task, "name", None),
        project_name=getattr(project, "name", None),
    )


def wage_records(
    entries: Iterable[Any], rate_for: Callable[[Any], Decimal] = project_rate
) -> list[WageRecord]:
    return [wage_record(entry, rate_for) for entry in _unique(entries)]


def filter_wage_records(
    records: Iterable[WageRecord],
    employee_id: Optional[int] = None,
    service_id: Optional[int] = None,
    services_by_employee: Optional[Mapping[int, set[int]]] = None,
) -> list[WageRecord]:
    """
    Keep records of one employee and/or of employees delivering one service.
    """
    services_by_employee = services_by_employee or {}
    result = []
    for record in records:
        if employee_id is not None and record.employee_id != employee_id:
            continue
        if service_id is not None and service_id not in services_by_employee.get(
            record.employee_id, set()
        ):
            continue
        result.append(record)
    return result


def wage_totals(records: Iterable[WageRecord]) -> tuple[Decimal, Decimal]:
    """(total hours, total wages)"""
    records = list(records)
    hours = sum((r.hours_worked for r in records), ZERO)
    wages = sum((r.wage_amount for r in records), ZERO)
    return hours, wages


def invoice_totals(tasks: Iterable[Any]) -> tuple[Decimal, Decimal]:
    """
    Hours and amount of an invoice over the selected tasks.

    Each task exposes hours and rate; amount = sum(hours x rate).
    """
    tasks = _unique(tasks)
    hours = sum((to_decimal(t.hours) for t in tasks), ZERO)
    amount = sum((to_decimal(t.hours) * to_decimal(t.rate) for t in tasks), ZERO)
    return hours, amount


def invoice_revenue(invoices: Iterable[Any]) -> tuple[Decimal, Decimal]:
    """(paid total, pending total) where pending means status Sent"""
    paid = ZERO
    pending = ZERO
    for invoice in _unique(invoices):
        status = getattr(invoice.status, "value", invoice.status)
        if status == "Paid":
            paid += to_decimal(invoice.amount)
        elif status == "Sent":
            pending += to_decimal(invoice.amount)
    return paid, pending
