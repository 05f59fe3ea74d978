from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from bizdesk.core.exceptions import ValidationException
from bizdesk.models import (
    Client,
    Employee,
    EmployeeService,
    Payment,
    Project,
    Service,
    Task,
    TimeEntry,
)
from bizdesk.models.invoice import InvoiceStatus
from bizdesk.services.aggregation import (
    PaymentFilter,
    filter_payments,
    filter_wage_records,
    invoice_revenue,
    invoice_totals,
    monthly_revenue,
    total_revenue,
    wage_records,
    wage_totals,
)
from bizdesk.services.reporting_service import ReportingService


def payment(id, amount, paid_on, client_id=1):
    return SimpleNamespace(id=id, amount=amount, payment_date=paid_on, client_id=client_id)


def entry(id, minutes, rate, employee_id=1, task_id=1):
    project = SimpleNamespace(name="Website", hourly_rate=rate)
    task = SimpleNamespace(name="Build", project=project)
    return SimpleNamespace(
        id=id,
        employee_id=employee_id,
        task_id=task_id,
        task=task,
        start_time=datetime(2026, 1, 5, 9),
        duration_minutes=minutes,
    )


PAYMENTS = [
    payment(1, Decimal("100.00"), date(2026, 1, 1), client_id=1),
    payment(2, Decimal("250.50"), date(2026, 1, 31), client_id=1),
    payment(3, Decimal("75.25"), date(2026, 2, 1), client_id=2),
    payment(4, 40, date(2025, 12, 31), client_id=2),
]


class TestRevenue:
    def test_total_over_all_payments(self):
        assert total_revenue(PAYMENTS) == Decimal("465.75")

    def test_date_bounds_are_inclusive(self):
        flt = PaymentFilter(start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
        assert [p.id for p in filter_payments(PAYMENTS, flt)] == [1, 2]
        assert total_revenue(PAYMENTS, flt) == Decimal("350.50")

    def test_client_filter(self):
        assert total_revenue(PAYMENTS, PaymentFilter(client_id=2)) == Decimal("115.25")

    def test_combined_filters(self):
        flt = PaymentFilter(client_id=2, start_date=date(2026, 1, 1))
        assert total_revenue(PAYMENTS, flt) == Decimal("75.25")

    def test_each_payment_counted_once(self):
        assert total_revenue(PAYMENTS + PAYMENTS[:2]) == Decimal("465.75")

    def test_empty(self):
        assert total_revenue([]) == Decimal("0")

    def test_datetime_payment_dates(self):
        rows = [payment(1, 10, datetime(2026, 1, 31, 23, 59))]
        assert total_revenue(rows, PaymentFilter(end_date=date(2026, 1, 31))) == Decimal("10")

    def test_monthly(self):
        assert monthly_revenue(PAYMENTS, 2026, 1) == Decimal("350.50")
        assert monthly_revenue(PAYMENTS, 2026, 3) == Decimal("0")


class TestWages:
    def test_wage_is_hours_times_project_rate(self):
        (record,) = wage_records([entry(1, 90, Decimal("40.00"))])

        assert record.hours_worked == Decimal("1.50")
        assert record.hourly_rate == Decimal("40.00")
        assert record.wage_amount == Decimal("60.00")
        assert record.project_name == "Website"

    def test_missing_duration_or_rate_earns_nothing(self):
        records = wage_records([entry(1, None, Decimal("40")), entry(2, 60, None)])
        assert [r.wage_amount for r in records] == [Decimal("0.00"), Decimal("0.00")]

    def test_custom_rate_lookup(self):
        (record,) = wage_records([entry(1, 30, 100)], rate_for=lambda e: Decimal("20"))
        assert record.wage_amount == Decimal("10.00")

    def test_filters_and_totals(self):
        records = wage_records(
            [
                entry(1, 60, 50, employee_id=1),
                entry(2, 120, 50, employee_id=2),
                entry(3, 30, 50, employee_id=2),
            ]
        )

        by_employee = filter_wage_records(records, employee_id=2)
        assert wage_totals(by_employee) == (Decimal("2.50"), Decimal("125.00"))

        by_service = filter_wage_records(
            records, service_id=7, services_by_employee={1: {7}, 2: {8}}
        )
        assert [r.entry_id for r in by_service] == [1]

        assert wage_totals(records) == (Decimal("3.50"), Decimal("175.00"))


class TestInvoices:
    def test_invoice_totals(self):
        tasks = [
            SimpleNamespace(id=1, hours=Decimal("2.5"), rate=Decimal("100")),
            SimpleNamespace(id=2, hours=4, rate=80),
        ]
        assert invoice_totals(tasks) == (Decimal("6.5"), Decimal("570.0"))

    def test_invoice_revenue(self):
        invoices = [
            SimpleNamespace(id=1, amount=100, status=InvoiceStatus.PAID),
            SimpleNamespace(id=2, amount=50, status=InvoiceStatus.SENT),
            SimpleNamespace(id=3, amount=20, status=InvoiceStatus.DRAFT),
            SimpleNamespace(id=4, amount=10, status="Paid"),
        ]
        assert invoice_revenue(invoices) == (Decimal("110"), Decimal("50"))


@pytest.fixture
def billing(db_session):
    """Two clients with payments, one employee with time entries"""
    acme = Client(name="Acme", email="acme@example.com")
    globex = Client(name="Globex", email="globex@example.com")
    dana = Employee(name="Dana", email="dana@example.com")
    devops = Service(name="DevOps", hourly_rate=60)
    db_session.add_all([acme, globex, dana, devops])
    db_session.flush()

    site = Project(client_id=acme.id, name="Site", hourly_rate=80)
    app = Project(client_id=globex.id, name="App", hourly_rate=120)
    db_session.add_all([site, app])
    db_session.flush()

    task = Task(project_id=site.id, name="Build")
    db_session.add(task)
    db_session.flush()

    db_session.add_all(
        [
            EmployeeService(employee_id=dana.id, service_id=devops.id),
            Payment(
                project_id=site.id, client_id=acme.id, amount=500, payment_date=date(2026, 3, 1)
            ),
            Payment(
                project_id=site.id, client_id=acme.id, amount=300, payment_date=date(2026, 3, 31)
            ),
            Payment(
                project_id=app.id, client_id=globex.id, amount=900, payment_date=date(2026, 4, 1)
            ),
            TimeEntry(
                task_id=task.id,
                employee_id=dana.id,
                start_time=datetime(2026, 3, 10, 9),
                duration_minutes=45,
            ),
            TimeEntry(
                task_id=task.id,
                employee_id=dana.id,
                start_time=datetime(2026, 4, 1, 9),
                duration_minutes=60,
            ),
        ]
    )
    db_session.commit()
    return {"acme": acme.id, "globex": globex.id, "dana": dana.id, "devops": devops.id}


def test_revenue_summary(db_session, billing):
    summary = ReportingService(db_session).revenue_summary(
        client_id=billing["acme"], today=date(2026, 3, 15)
    )

    assert summary["payment_count"] == 2
    assert summary["total_revenue"] == Decimal("800")
    assert summary["monthly_revenue"] == Decimal("800")


def test_revenue_summary_rejects_inverted_range(db_session):
    with pytest.raises(ValidationException):
        ReportingService(db_session).revenue_summary(
            start_date=date(2026, 2, 1), end_date=date(2026, 1, 1)
        )


def test_wage_summary_covers_one_month(db_session, billing):
    summary = ReportingService(db_session).wage_summary(2026, 3)

    assert len(summary["records"]) == 1
    assert summary["total_hours"] == Decimal("0.75")
    assert summary["total_wages"] == Decimal("60.00")


def test_wage_summary_service_filter(db_session, billing):
    service = ReportingService(db_session)

    assert len(service.wage_summary(2026, 3, service_id=billing["devops"])["records"]) == 1
    assert service.wage_summary(2026, 3, service_id=billing["devops"] + 1)["records"] == []


def test_revenue_endpoint(client, admin_headers, billing):
    response = client.get(
        "/api/payments/revenue",
        params={"start_date": "2026-03-01", "end_date": "2026-03-31"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert Decimal(response.json()["total_revenue"]) == Decimal("800")
    assert response.json()["payment_count"] == 2


def test_wage_endpoint(client, admin_headers, billing):
    response = client.get(
        "/api/wages/summary", params={"year": 2026, "month": 4}, headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["total_wages"]) == Decimal("80.00")
    assert data["records"][0]["project_name"] == "Site"


def test_reporting_requires_read_privilege(client, associate_headers):
    response = client.get(
        "/api/wages/summary", params={"year": 2026, "month": 4}, headers=associate_headers
    )
    assert response.status_code == 403
