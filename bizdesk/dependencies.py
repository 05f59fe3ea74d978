import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from bizdesk.core.security import extract_identity
from bizdesk.core.exceptions import ForbiddenException, UnauthorizedException
from bizdesk.database import get_db
from bizdesk.models.role import PageName, CrudOperation
from bizdesk.models.session_context import SessionContext
from bizdesk.models.user import User
from bizdesk.repositories.user_repository import UserRepository
from bizdesk.services.access_control import AccessControlPolicy
from bizdesk.services.session_service import SessionService

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security), db: Session = Depends(get_db)
) -> User:
    """
    FastAPI dependency to validate JWT and get/create user.

    Flow:
    1. Extract token from Authorization: Bearer <token>
    2. Validate JWT using shared SECRET_KEY
    3. Extract auth_user_id from 'sub' and email from 'email'
    4. Get or auto-create the User record, keeping its email in sync
    5. Return User object for use in endpoints

    Raises:
        HTTPException 401: If token invalid or expired
    """
    try:
        token = credentials.credentials
        auth_user_id, email = extract_identity(token)

        user_repo = UserRepository(db)
        user = user_repo.get_or_create_by_auth_id(auth_user_id, email)

        return user

    except UnauthorizedException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_session_context(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> SessionContext:
    """Resolve the caller's session role once per request"""
    return SessionService(db).build_context(user)


def require_capability(page: PageName, operation: CrudOperation):
    """
    Build a dependency that admits the caller only if the access control
    policy grants (page, operation) to their session.

    Usage:
        @router.delete("/{id}")
        async def delete(..., context: SessionContext = Depends(
            require_capability(PageName.PROJECTS, CrudOperation.DELETE))):

    Raises:
        ForbiddenException: If the policy denies the operation
    """

    async def dependency(
        context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)
    ) -> SessionContext:
        if not AccessControlPolicy(db).has_capability(context, page, operation):
            logger.info(
                "Denied %s/%s to user %s (role=%s)",
                page.value,
                operation.value,
                context.user.id,
                context.role,
            )
            raise ForbiddenException(
                f"You don't have permission to {operation.value} {page.value}"
            )
        return context

    return dependency


async def require_superuser(
    context: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """
    Admit superuser sessions and break-glass identities only.

    Guards role and privilege administration.
    """
    if context.is_superuser:
        return context
    if context.break_glass:
        logger.warning("Break-glass administration access used by %s", context.email)
        return context
    logger.info("Denied administration to user %s (role=%s)", context.user.id, context.role)
    raise ForbiddenException("Administrator access required")
