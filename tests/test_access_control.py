from unittest import mock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from bizdesk.config import settings
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.role_privilege import RolePrivilege
from bizdesk.models.session_context import SessionContext
from bizdesk.repositories.role_repository import RoleRepository
from bizdesk.services.access_control import AccessControlPolicy
from bizdesk.services.privilege_service import PrivilegeService
from bizdesk.services.session_service import SessionService
from tests.conftest import create_user, headers_for


@pytest.fixture
def policy(db_session, builtin_roles):
    return AccessControlPolicy(db_session)


def test_no_role_is_denied_everywhere(policy):
    for page in PageName:
        for operation in CrudOperation:
            assert policy.is_allowed(None, page, operation) is False


def test_admin_allowed_everywhere(policy):
    for page in PageName:
        for operation in CrudOperation:
            assert policy.is_allowed("admin", page, operation) is True


def test_admin_allowed_even_if_rows_revoked(db_session, policy):
    """The superuser flag wins over the admin's own matrix rows"""
    db_session.query(RolePrivilege).filter(RolePrivilege.role == "admin").update(
        {RolePrivilege.allowed: False}
    )
    db_session.commit()

    assert policy.is_allowed("admin", PageName.PROJECTS, CrudOperation.DELETE) is True


def test_new_role_denied_by_default(db_session, policy):
    PrivilegeService(db_session).provision_role("auditor")

    for page in PageName:
        for operation in CrudOperation:
            assert policy.is_allowed("auditor", page, operation) is False


def test_missing_row_denies(db_session, policy):
    """A role without a matching row is denied, not an error"""
    assert policy.is_allowed("never-provisioned", PageName.CLIENTS, CrudOperation.READ) is False


def test_allowed_row_grants(db_session, policy):
    service = PrivilegeService(db_session)
    service.provision_role("auditor")
    service.set_privilege("auditor", PageName.PAYMENTS, CrudOperation.READ, True)

    assert policy.is_allowed("auditor", PageName.PAYMENTS, CrudOperation.READ) is True
    assert policy.is_allowed("auditor", PageName.PAYMENTS, CrudOperation.UPDATE) is False


def test_store_failure_fails_closed(policy):
    with mock.patch.object(RoleRepository, "get_role", side_effect=SQLAlchemyError("down")):
        assert policy.is_allowed("admin", PageName.CLIENTS, CrudOperation.READ) is False


def test_break_glass_grants_and_warns(db_session, policy, monkeypatch, caplog):
    monkeypatch.setattr(settings, "BREAK_GLASS_EMAILS", "Ops@Example.com, other@example.com")
    user = create_user(db_session, "ops", email="ops@example.com")
    context = SessionService(db_session).build_context(user)

    assert context.break_glass is True
    with caplog.at_level("WARNING", logger="bizdesk.services.access_control"):
        assert policy.has_capability(context, PageName.CLIENTS, CrudOperation.DELETE) is True

    assert any("Break-glass" in record.message for record in caplog.records)


def test_break_glass_disabled_when_unset(db_session, policy, monkeypatch):
    monkeypatch.setattr(settings, "BREAK_GLASS_EMAILS", "")
    user = create_user(db_session, "ops", email="ops@example.com")
    context = SessionService(db_session).build_context(user)

    assert context.break_glass is False
    assert policy.has_capability(context, PageName.CLIENTS, CrudOperation.DELETE) is False


def test_break_glass_follows_session_flag(db_session, policy, monkeypatch):
    """The flag on the session decides, not the email alone"""
    monkeypatch.setattr(settings, "BREAK_GLASS_EMAILS", "ops@example.com")
    user = create_user(db_session, "ops", email="ops@example.com")

    assert policy.has_capability(
        SessionContext(user=user, role=None), PageName.CLIENTS, CrudOperation.DELETE
    ) is False
    assert policy.has_capability(
        SessionContext(user=user, role=None, break_glass=True),
        PageName.CLIENTS,
        CrudOperation.DELETE,
    ) is True


def test_capability_map_matches_policy(db_session, policy):
    service = PrivilegeService(db_session)
    service.provision_role("auditor")
    service.set_privilege("auditor", PageName.INVOICES, CrudOperation.READ, True)
    user = create_user(db_session, "aud", "auditor")

    capabilities = policy.capability_map(SessionContext(user=user, role="auditor"))

    assert set(capabilities) == {page.value for page in PageName}
    assert capabilities["invoices"] == ["read"]
    assert all(ops == [] for page, ops in capabilities.items() if page != "invoices")


def test_denied_request_is_forbidden(client, associate_headers, project_graph):
    """The UI guard and the server agree: a denied delete is a 403"""
    response = client.delete(
        f"/api/projects/{project_graph['project_id']}", headers=associate_headers
    )
    assert response.status_code == 403


def test_route_guard_follows_matrix(client, db_session, associate_headers, project_graph):
    PrivilegeService(db_session).set_privilege(
        "associate", PageName.PAYMENTS, CrudOperation.READ, True
    )

    response = client.get("/api/payments/revenue", headers=associate_headers)
    assert response.status_code == 200


def test_break_glass_request(client, db_session, monkeypatch, project_graph):
    monkeypatch.setattr(settings, "BREAK_GLASS_EMAILS", "ops@example.com")

    response = client.get("/api/payments/revenue", headers=headers_for("ops", "ops@example.com"))
    assert response.status_code == 200


def test_break_glass_admits_role_administration(client, monkeypatch):
    monkeypatch.setattr(settings, "BREAK_GLASS_EMAILS", "ops@example.com")

    response = client.get("/api/roles/", headers=headers_for("ops", "ops@example.com"))
    assert response.status_code == 200

    response = client.get("/api/roles/", headers=headers_for("dev", "dev@example.com"))
    assert response.status_code == 403
