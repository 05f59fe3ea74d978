import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from datetime import date, datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from jose import jwt

import bizdesk.main as main_module
from bizdesk.database import get_db, enable_sqlite_foreign_keys
from bizdesk.models.base import Base
from bizdesk.config import settings
# Import all model classes to ensure they're registered with SQLAlchemy
from bizdesk.models import (
    Client,
    Employee,
    Invoice,
    InvoiceTask,
    Payment,
    Project,
    Sprint,
    SprintTask,
    Task,
    TaskComment,
    TimeEntry,
    User,
)
from bizdesk.models.invoice import InvoiceStatus
from bizdesk.repositories.user_repository import UserRepository
from bizdesk.services.privilege_service import PrivilegeService
# Import FastAPI app AFTER model imports
from bizdesk.main import app

# Test database (SQLite in-memory for speed)
# Use StaticPool to ensure all connections share the same in-memory database
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session, monkeypatch):
    """FastAPI test client with test database"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Startup seeding runs against the test database too
    monkeypatch.setattr(main_module, "SessionLocal", TestingSessionLocal)
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def builtin_roles(db_session):
    """Seed the built-in roles for tests that do not start the app"""
    PrivilegeService(db_session).ensure_builtin_roles()


def create_test_token(
    user_id: str = "test-user-123", email: str | None = None, expired: bool = False
) -> str:
    """
    Generate valid JWT token for testing.

    Args:
        user_id: User ID to embed in 'sub' claim
        email: Optional 'email' claim
        expired: If True, create expired token

    Returns:
        Encoded JWT token
    """
    if expired:
        exp = datetime.now(UTC) - timedelta(minutes=5)
    else:
        exp = datetime.now(UTC) + timedelta(minutes=15)

    payload = {"sub": user_id, "exp": exp, "iat": datetime.now(UTC)}
    if email is not None:
        payload["email"] = email

    token = jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")
    return token


def headers_for(user_id: str, email: str | None = None) -> dict:
    return {"Authorization": f"Bearer {create_test_token(user_id, email)}"}


def create_user(db, auth_user_id: str, *roles: str, email: str | None = None) -> User:
    """Create a user holding the given roles (in assignment order)"""
    repo = UserRepository(db)
    user = repo.get_or_create_by_auth_id(auth_user_id, email or f"{auth_user_id}@example.com")
    for role in roles:
        repo.assign_role(user.id, role)
    return user


@pytest.fixture
def mock_jwt_token():
    """Generate valid JWT token"""
    return create_test_token()


@pytest.fixture
def auth_headers(mock_jwt_token):
    """Authorization headers for authenticated requests"""
    return {"Authorization": f"Bearer {mock_jwt_token}"}


@pytest.fixture
def admin_user(db_session, client):
    return create_user(db_session, "admin-1", "admin")


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user.auth_user_id, admin_user.email)


@pytest.fixture
def associate_user(db_session, client):
    return create_user(db_session, "associate-1", "associate")


@pytest.fixture
def associate_headers(associate_user):
    return headers_for(associate_user.auth_user_id, associate_user.email)


def build_project_graph(db, client_name: str = "Acme", project_name: str = "Website") -> dict:
    """
    Create a client with one project carrying every kind of dependent.

    Returns:
        Dict of the created ids
    """
    employee = Employee(name="Dana", email="dana@example.com")
    customer = Client(name=client_name, email=f"{client_name.lower()}@example.com")
    db.add_all([employee, customer])
    db.flush()

    project = Project(client_id=customer.id, name=project_name, hourly_rate=100)
    db.add(project)
    db.flush()

    tasks = [
        Task(project_id=project.id, name="Design", hours=3, assignee_id=employee.id),
        Task(project_id=project.id, name="Build", hours=5, assignee_id=employee.id),
    ]
    sprint = Sprint(project_id=project.id, title="Sprint 1")
    invoice = Invoice(
        invoice_number=f"INV-{client_name}-001",
        client_id=customer.id,
        project_id=project.id,
        amount=800,
        hours=8,
        rate=100,
        status=InvoiceStatus.SENT,
        due_date=date(2026, 2, 1),
    )
    db.add_all([*tasks, sprint, invoice])
    db.flush()

    start = datetime(2026, 1, 5, 9, 0)
    db.add_all(
        [
            TimeEntry(
                task_id=tasks[0].id,
                employee_id=employee.id,
                start_time=start,
                end_time=start + timedelta(minutes=90),
                duration_minutes=90,
            ),
            TimeEntry(
                task_id=tasks[1].id,
                employee_id=employee.id,
                start_time=start + timedelta(days=1),
                duration_minutes=120,
            ),
            TaskComment(task_id=tasks[0].id, comment="Looks good"),
            SprintTask(sprint_id=sprint.id, task_id=tasks[0].id),
            SprintTask(sprint_id=sprint.id, task_id=tasks[1].id),
            InvoiceTask(invoice_id=invoice.id, task_id=tasks[0].id),
            InvoiceTask(invoice_id=invoice.id, task_id=tasks[1].id),
            Payment(
                project_id=project.id,
                client_id=customer.id,
                invoice_number=invoice.invoice_number,
                amount=800,
                payment_date=date(2026, 1, 20),
            ),
        ]
    )
    db.commit()

    return {
        "client_id": customer.id,
        "project_id": project.id,
        "task_ids": [t.id for t in tasks],
        "sprint_id": sprint.id,
        "invoice_id": invoice.id,
        "employee_id": employee.id,
    }


@pytest.fixture
def project_graph(db_session):
    return build_project_graph(db_session)


def count_rows(db, model, *criteria) -> int:
    return db.query(model).filter(*criteria).count()


def aggregate_row_counts(db, graph: dict) -> dict:
    """Rows still present anywhere in the project aggregate"""
    task_ids = graph["task_ids"]
    return {
        "time_entries": count_rows(db, TimeEntry, TimeEntry.task_id.in_(task_ids)),
        "task_comments": count_rows(db, TaskComment, TaskComment.task_id.in_(task_ids)),
        "sprint_tasks": count_rows(db, SprintTask, SprintTask.task_id.in_(task_ids)),
        "invoice_tasks": count_rows(db, InvoiceTask, InvoiceTask.task_id.in_(task_ids)),
        "tasks": count_rows(db, Task, Task.project_id == graph["project_id"]),
        "sprints": count_rows(db, Sprint, Sprint.project_id == graph["project_id"]),
        "invoices": count_rows(db, Invoice, Invoice.project_id == graph["project_id"]),
        "payments": count_rows(db, Payment, Payment.project_id == graph["project_id"]),
        "projects": count_rows(db, Project, Project.id == graph["project_id"]),
    }

