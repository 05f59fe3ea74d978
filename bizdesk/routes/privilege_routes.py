from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bizdesk.database import get_db
from bizdesk.dependencies import require_superuser
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.session_context import SessionContext
from bizdesk.schemas.privilege_schemas import (
    PrivilegeResponse,
    PrivilegeListResponse,
    PrivilegeUpdate,
    RolePrivilegesUpdate,
)
from bizdesk.services.privilege_service import PrivilegeService

router = APIRouter()


@router.get("/", response_model=PrivilegeListResponse)
async def get_matrix(
    context: SessionContext = Depends(require_superuser), db: Session = Depends(get_db)
):
    """The whole privilege matrix ordered by role, page and operation"""
    privileges = PrivilegeService(db).get_matrix()
    return PrivilegeListResponse(privileges=privileges, total=len(privileges))


@router.get("/{role}", response_model=PrivilegeListResponse)
async def get_role_privileges(
    role: str, context: SessionContext = Depends(require_superuser), db: Session = Depends(get_db)
):
    privileges = PrivilegeService(db).get_role_privileges(role)
    return PrivilegeListResponse(privileges=privileges, total=len(privileges))


@router.patch("/{role}/{page}/{operation}", response_model=PrivilegeResponse)
async def set_privilege(
    role: str,
    page: PageName,
    operation: CrudOperation,
    data: PrivilegeUpdate,
    context: SessionContext = Depends(require_superuser),
    db: Session = Depends(get_db),
):
    """Toggle one cell of the matrix"""
    service = PrivilegeService(db)
    return service.set_privilege(role, page, operation, data.allowed, actor=context.user)


@router.put("/{role}", response_model=PrivilegeListResponse)
async def set_role_privileges(
    role: str,
    data: RolePrivilegesUpdate,
    context: SessionContext = Depends(require_superuser),
    db: Session = Depends(get_db),
):
    """Save several cells of one role"""
    service = PrivilegeService(db)
    service.set_role_privileges(
        role,
        [(change.page_name, change.operation, change.allowed) for change in data.changes],
        actor=context.user,
    )
    privileges = service.get_role_privileges(role)
    return PrivilegeListResponse(privileges=privileges, total=len(privileges))
