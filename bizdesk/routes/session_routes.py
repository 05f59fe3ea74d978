from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bizdesk.database import get_db
from bizdesk.dependencies import get_session_context
from bizdesk.models.session_context import SessionContext
from bizdesk.schemas.session_schemas import SessionResponse, SignOutResponse
from bizdesk.services.access_control import AccessControlPolicy
from bizdesk.services.session_service import SessionService

router = APIRouter()


def _session_response(context: SessionContext, db: Session) -> SessionResponse:
    return SessionResponse(
        user_id=context.user.id,
        auth_user_id=context.user.auth_user_id,
        email=context.email,
        full_name=context.user.full_name,
        role=context.role,
        is_superuser=context.is_superuser,
        capabilities=AccessControlPolicy(db).capability_map(context),
    )


@router.get("/me", response_model=SessionResponse)
async def get_me(
    context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)
):
    """Identity, resolved role and capability map of the caller"""
    return _session_response(context, db)


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(
    context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)
):
    """Record a sign-in and return the session"""
    SessionService(db).record_sign_in(context)
    return _session_response(context, db)


@router.post("/sign-out", response_model=SignOutResponse)
async def sign_out(context: SessionContext = Depends(get_session_context)):
    """Acknowledge sign-out; tokens are held and revoked by the auth provider"""
    return SignOutResponse()
