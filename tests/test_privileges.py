import pytest

from bizdesk.core.exceptions import ConflictException, NotFoundException, ValidationException
from bizdesk.models.activity import ActivityFeed
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.role_privilege import Role, RolePrivilege
from bizdesk.services.privilege_service import PrivilegeService
from tests.conftest import create_user

MATRIX_SIZE = len(PageName) * len(CrudOperation)


@pytest.fixture
def service(db_session, builtin_roles):
    return PrivilegeService(db_session)


def test_builtin_roles_seeded(db_session, service):
    roles = {role.name: role for role in service.list_roles()}

    assert set(roles) == {"admin", "manager", "teamlead", "associate", "accountant"}
    assert roles["admin"].is_superuser is True
    assert not any(role.is_superuser for name, role in roles.items() if name != "admin")
    for name in roles:
        assert len(service.get_role_privileges(name)) == MATRIX_SIZE


def test_seeding_is_idempotent(db_session, service):
    service.set_privilege("manager", PageName.CLIENTS, CrudOperation.READ, True)

    assert service.ensure_builtin_roles() == []
    assert db_session.query(RolePrivilege).count() == 5 * MATRIX_SIZE
    # Existing rows are left alone
    privilege = service.role_repo.get_privilege("manager", PageName.CLIENTS, CrudOperation.READ)
    assert privilege.allowed is True


def test_seeding_fills_missing_rows(db_session, service):
    db_session.query(RolePrivilege).filter(
        RolePrivilege.role == "teamlead", RolePrivilege.page_name == PageName.WAGES
    ).delete()
    db_session.commit()

    service.ensure_builtin_roles()

    assert len(service.get_role_privileges("teamlead")) == MATRIX_SIZE


def test_provision_role_creates_dense_denied_matrix(db_session, service):
    role = service.provision_role("  Auditor ", description="Reads the books")

    assert role.name == "auditor"
    privileges = service.get_role_privileges("auditor")
    assert len(privileges) == MATRIX_SIZE
    assert all(p.allowed is False for p in privileges)
    assert {(p.page_name, p.operation) for p in privileges} == {
        (page, op) for page in PageName for op in CrudOperation
    }


def test_provision_role_with_initial_cells(service):
    service.provision_role(
        "auditor", allowed={PageName.PAYMENTS: [CrudOperation.READ, CrudOperation.UPDATE]}
    )

    privileges = service.get_role_privileges("auditor")
    allowed = {(p.page_name, p.operation) for p in privileges if p.allowed}
    assert allowed == {
        (PageName.PAYMENTS, CrudOperation.READ),
        (PageName.PAYMENTS, CrudOperation.UPDATE),
    }


def test_provision_existing_role_conflicts(db_session, service):
    before = db_session.query(RolePrivilege).filter(RolePrivilege.role == "manager").count()

    with pytest.raises(ConflictException):
        service.provision_role("Manager")

    after = db_session.query(RolePrivilege).filter(RolePrivilege.role == "manager").count()
    assert before == after == MATRIX_SIZE


def test_provision_conflicts_with_orphan_rows(db_session, service):
    """Leftover privilege rows without a role record still block the name"""
    db_session.add(
        RolePrivilege(
            role="ghost", page_name=PageName.CLIENTS, operation=CrudOperation.READ, allowed=True
        )
    )
    db_session.commit()

    with pytest.raises(ConflictException):
        service.provision_role("ghost")

    assert db_session.query(RolePrivilege).filter(RolePrivilege.role == "ghost").count() == 1
    assert db_session.query(Role).filter(Role.name == "ghost").count() == 0


def test_provision_empty_name_rejected(service):
    with pytest.raises(ValidationException):
        service.provision_role("   ")


def test_toggle_changes_exactly_one_row(db_session, service):
    before = {
        (p.role, p.page_name, p.operation): p.allowed for p in service.get_matrix()
    }

    service.set_privilege("associate", PageName.TASKS, CrudOperation.UPDATE, True)

    db_session.expire_all()
    after = {(p.role, p.page_name, p.operation): p.allowed for p in service.get_matrix()}
    changed = [key for key in before if before[key] != after[key]]
    assert changed == [("associate", PageName.TASKS, CrudOperation.UPDATE)]


def test_toggle_records_activity(db_session, service):
    service.set_privilege("associate", PageName.TASKS, CrudOperation.UPDATE, True)

    entry = db_session.query(ActivityFeed).filter(ActivityFeed.entity_type == "privilege").one()
    assert entry.description == "Granted tasks/update for role associate"


def test_toggle_without_row_is_not_found(service):
    with pytest.raises(NotFoundException):
        service.set_privilege("nobody", PageName.TASKS, CrudOperation.UPDATE, True)


def test_bulk_update(service):
    service.set_role_privileges(
        "accountant",
        [
            (PageName.INVOICES, CrudOperation.READ, True),
            (PageName.PAYMENTS, CrudOperation.READ, True),
        ],
    )

    allowed = [p for p in service.get_role_privileges("accountant") if p.allowed]
    assert {(p.page_name, p.operation) for p in allowed} == {
        (PageName.INVOICES, CrudOperation.READ),
        (PageName.PAYMENTS, CrudOperation.READ),
    }


def test_unknown_role_privileges_not_found(service):
    with pytest.raises(NotFoundException):
        service.get_role_privileges("nobody")


def test_remove_role(db_session, service):
    service.provision_role("auditor")

    assert service.remove_role("auditor") == MATRIX_SIZE
    assert db_session.query(RolePrivilege).filter(RolePrivilege.role == "auditor").count() == 0
    assert db_session.query(Role).filter(Role.name == "auditor").count() == 0


def test_remove_superuser_role_refused(service):
    with pytest.raises(ValidationException):
        service.remove_role("admin")


def test_remove_assigned_role_refused(db_session, service):
    service.provision_role("auditor")
    create_user(db_session, "aud", "auditor")

    with pytest.raises(ValidationException):
        service.remove_role("auditor")


def test_assign_unknown_role_not_found(db_session, service):
    user = create_user(db_session, "someone")
    with pytest.raises(NotFoundException):
        service.assign_role(user.id, "nobody")


def test_assign_twice_conflicts(db_session, service):
    user = create_user(db_session, "someone", "manager")
    with pytest.raises(ConflictException):
        service.assign_role(user.id, "manager")


# HTTP surface


def test_create_role_endpoint(client, admin_headers):
    response = client.post("/api/roles/", json={"name": "Auditor"}, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["name"] == "auditor"

    response = client.post("/api/roles/", json={"name": "auditor"}, headers=admin_headers)
    assert response.status_code == 409


def test_role_admin_requires_superuser(client, associate_headers):
    response = client.post("/api/roles/", json={"name": "auditor"}, headers=associate_headers)
    assert response.status_code == 403


def test_patch_privilege_endpoint(client, admin_headers):
    response = client.patch(
        "/api/privileges/associate/clients/read", json={"allowed": True}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["allowed"] is True

    response = client.patch(
        "/api/privileges/nobody/clients/read", json={"allowed": True}, headers=admin_headers
    )
    assert response.status_code == 404


def test_put_role_privileges_endpoint(client, admin_headers):
    response = client.put(
        "/api/privileges/teamlead",
        json={"changes": [{"page_name": "tasks", "operation": "delete", "allowed": True}]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    allowed = [p for p in response.json()["privileges"] if p["allowed"]]
    assert [(p["page_name"], p["operation"]) for p in allowed] == [("tasks", "delete")]


def test_get_matrix_endpoint(client, admin_headers):
    response = client.get("/api/privileges/", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total"] == 5 * MATRIX_SIZE


def test_assign_role_endpoint(client, db_session, admin_headers):
    user = create_user(db_session, "new-hire")

    response = client.post(
        f"/api/users/{user.id}/roles", json={"role": "Manager"}, headers=admin_headers
    )
    assert response.status_code == 201
    assert response.json() == {"user_id": user.id, "role": "manager"}

    response = client.delete(f"/api/users/{user.id}/roles/manager", headers=admin_headers)
    assert response.status_code == 204
