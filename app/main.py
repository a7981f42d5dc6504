"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from app.core.config import get_settings
from app.core.database import SessionLocal, close_engine, ping_database
from app.core.metrics import build_metrics_response, instrument_http_request
from app.modules.admin.router import router as admin_router
from app.modules.ads.router import router as ads_router
from app.modules.audit.repository import AuditRepository
from app.modules.audit.router import router as audit_router
from app.modules.categories.router import router as categories_router
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.router import router as identity_router
from app.modules.identity.service import IdentityService
from app.modules.notifications.router import router as notifications_router
from app.modules.permissions.repository import PermissionsRepository
from app.modules.permissions.router import router as permissions_router
from app.modules.permissions.service import PermissionsService
from app.modules.reports.router import router as reports_router
from app.shared.exceptions import register_exception_handlers
from app.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application startup and shutdown hooks."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("Starting %s", settings.app_name)

    async with SessionLocal() as session:
        try:
            identity_repository = IdentityRepository(session)
            permissions_repository = PermissionsRepository(session)
            audit_repository = AuditRepository(session)

            identity_service = IdentityService(identity_repository, permissions_repository, audit_repository)
            await identity_service.ensure_default_roles()
            logger.info("Default roles ensured")

            permissions_service = PermissionsService(permissions_repository, identity_repository, audit_repository)
            await permissions_service.ensure_catalog()

            if settings.super_admin_email and settings.super_admin_password:
                await identity_service.ensure_super_admin(settings.super_admin_email, settings.super_admin_password)
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Failed during startup initialization")
            raise

    yield

    logger.info("Shutting down %s", settings.app_name)
    await close_engine()


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)
app.middleware("http")(instrument_http_request)

register_exception_handlers(app)

app.include_router(identity_router, prefix=settings.api_prefix)
app.include_router(permissions_router, prefix=settings.api_prefix)
app.include_router(categories_router, prefix=settings.api_prefix)
app.include_router(ads_router, prefix=settings.api_prefix)
app.include_router(reports_router, prefix=settings.api_prefix)
app.include_router(notifications_router, prefix=settings.api_prefix)
app.include_router(admin_router, prefix=settings.api_prefix)
app.include_router(audit_router, prefix=settings.api_prefix)


@app.get("/health")
async def healthcheck() -> dict[str, str]:
    """Liveness probe endpoint."""
    return {"status": "ok"}


async def _is_database_ready() -> bool:
    try:
        await ping_database()
    except Exception:
        logger.exception("Database readiness check failed")
        return False
    return True


@app.get("/ready")
async def readiness_check() -> dict[str, str]:
    """Ready once the database answers; 503 in the error envelope otherwise."""
    if not await _is_database_ready():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not ready",
        )
    return {
        "status": "ready",
        "service": settings.app_name,
        "database": "ok",
        "timestamp": utc_now().isoformat(),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint(_: Request) -> Response:
    """Prometheus metrics endpoint."""
    return build_metrics_response()
