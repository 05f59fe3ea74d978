from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from bizdesk.database import get_db
from bizdesk.dependencies import require_superuser
from bizdesk.models.session_context import SessionContext
from bizdesk.schemas.role_schemas import (
    RoleCreate,
    RoleResponse,
    RoleListResponse,
    UserRoleAssign,
    UserRoleResponse,
)
from bizdesk.services.privilege_service import PrivilegeService, normalize_role_name

router = APIRouter()
user_router = APIRouter()


@router.get("/", response_model=RoleListResponse)
async def list_roles(
    context: SessionContext = Depends(require_superuser), db: Session = Depends(get_db)
):
    """List provisioned roles"""
    roles = PrivilegeService(db).list_roles()
    return RoleListResponse(roles=roles, total=len(roles))


@router.post("/", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    data: RoleCreate,
    context: SessionContext = Depends(require_superuser),
    db: Session = Depends(get_db),
):
    """Provision a role with a full matrix of denied privileges"""
    service = PrivilegeService(db)
    return service.provision_role(data.name, data.description, data.allowed, actor=context.user)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    name: str, context: SessionContext = Depends(require_superuser), db: Session = Depends(get_db)
):
    """Remove a role and its privilege rows"""
    PrivilegeService(db).remove_role(name, actor=context.user)
    return None


@user_router.post(
    "/{user_id}/roles", response_model=UserRoleResponse, status_code=status.HTTP_201_CREATED
)
async def assign_user_role(
    user_id: int,
    data: UserRoleAssign,
    context: SessionContext = Depends(require_superuser),
    db: Session = Depends(get_db),
):
    """Assign a provisioned role to a user"""
    PrivilegeService(db).assign_role(user_id, data.role)
    return UserRoleResponse(user_id=user_id, role=normalize_role_name(data.role))


@user_router.delete("/{user_id}/roles/{role}", status_code=status.HTTP_204_NO_CONTENT)
async def unassign_user_role(
    user_id: int,
    role: str,
    context: SessionContext = Depends(require_superuser),
    db: Session = Depends(get_db),
):
    """Remove a role from a user"""
    PrivilegeService(db).unassign_role(user_id, role)
    return None
