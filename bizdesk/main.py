import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from bizdesk.config import settings
from bizdesk.core.exceptions import (
    UnauthorizedException,
    NotFoundException,
    ForbiddenException,
    ValidationException,
    ConflictException,
    OperationFailedException,
)
from bizdesk.core.logging_config import configure_logging
from bizdesk.database import SessionLocal
from bizdesk.routes import (
    activity_routes,
    deletion_routes,
    invitation_routes,
    privilege_routes,
    reporting_routes,
    role_routes,
    session_routes,
)
from bizdesk.services.cascade_deletion import CascadeDeletionService
from bizdesk.services.privilege_service import PrivilegeService

logger = logging.getLogger(__name__)


def bootstrap() -> None:
    """Seed the built-in roles and finish interrupted deletions"""
    db = SessionLocal()
    try:
        PrivilegeService(db).ensure_builtin_roles()
        if settings.RESUME_DELETIONS_ON_STARTUP:
            report = CascadeDeletionService(db).resume_pending_deletions()
            if report.completed or report.failed:
                logger.info(
                    "Startup recovery: %d deletion(s) completed, %d failed",
                    len(report.completed),
                    len(report.failed),
                )
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    bootstrap()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,  # Disable in production
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS middleware
cors_origins = settings.cors_origins_list
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# Exception handlers
@app.exception_handler(UnauthorizedException)
async def unauthorized_exception_handler(request: Request, exc: UnauthorizedException):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ForbiddenException)
async def forbidden_exception_handler(request: Request, exc: ForbiddenException):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(ValidationException)
async def validation_exception_handler(request: Request, exc: ValidationException):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(ConflictException)
async def conflict_exception_handler(request: Request, exc: ConflictException):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(OperationFailedException)
async def operation_failed_exception_handler(request: Request, exc: OperationFailedException):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)}
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


# Root endpoint
@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
    }


# Include routers
app.include_router(session_routes.router, prefix="/api/session", tags=["Session"])
app.include_router(role_routes.router, prefix="/api/roles", tags=["Roles"])
app.include_router(role_routes.user_router, prefix="/api/users", tags=["Roles"])
app.include_router(privilege_routes.router, prefix="/api/privileges", tags=["Privileges"])
app.include_router(deletion_routes.router, prefix="/api", tags=["Deletion"])
app.include_router(
    deletion_routes.maintenance_router, prefix="/api/maintenance", tags=["Maintenance"]
)
app.include_router(reporting_routes.router, prefix="/api", tags=["Reporting"])
app.include_router(invitation_routes.router, prefix="/api/invitations", tags=["Invitations"])
app.include_router(activity_routes.router, prefix="/api/activity", tags=["Activity"])
