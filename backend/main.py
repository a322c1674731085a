"""
FastAPI application entry point for Greenfleet.

Tenant isolation is enforced below the HTTP layer: every operation resolves
its tenant from the session and reads tenant data only through a
tenant-scoped session.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from greenfleet.api.routes import admin_tenants
from greenfleet.api.routes import audit_log
from greenfleet.api.routes import employees
from greenfleet.api.routes import fuel_type_mappings
from greenfleet.api.routes import health
from greenfleet.api.routes import organizations
from greenfleet.api.routes import session
from greenfleet.config.features import get_feature_config_loader
from greenfleet.config.settings import get_log_level
from greenfleet.platform.tenant_context import (
    NotAuthenticatedError,
    TenantDeactivatedError,
    TenantNotFoundError,
    TenantResolutionError,
)

# Configure structured logging
logging.basicConfig(
    level=get_log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

_TENANT_FAULT_STATUS = {
    NotAuthenticatedError: status.HTTP_401_UNAUTHORIZED,
    TenantNotFoundError: status.HTTP_409_CONFLICT,
    TenantDeactivatedError: status.HTTP_403_FORBIDDEN,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Greenfleet API")

    # Database connectivity check - surface misconfigurations in deploy logs
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL is not set. Database-backed endpoints will return 503.")
        app.state.database_configured = False
    else:
        # Mask credentials for safe logging
        masked = database_url.split("@")[-1] if "@" in database_url else "(no @ found, URL may be malformed)"
        logger.info("DATABASE_URL configured", extra={"host_db": masked})
        app.state.database_configured = True

    features = get_feature_config_loader()
    logger.info(
        "Feature catalogue loaded",
        extra={"feature_count": len(features.feature_keys), "defaults": features.default_features()},
    )

    yield

    logger.info("Shutting down Greenfleet API")


# Create FastAPI app
app = FastAPI(
    title="Greenfleet API",
    description="Multi-tenant fleet management with strict tenant isolation",
    version="1.0.0",
    lifespan=lifespan
)

cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health route (no authentication)
app.include_router(health.router)

app.include_router(session.router)
app.include_router(employees.router)
app.include_router(fuel_type_mappings.router)
app.include_router(audit_log.router)

# Cross-tenant administration (admin / platform admin only)
app.include_router(admin_tenants.router)
app.include_router(organizations.router)


@app.exception_handler(TenantResolutionError)
async def tenant_resolution_exception_handler(request: Request, exc: TenantResolutionError):
    """Session and tenant store disagree: render the fault without a stack trace."""
    status_code = _TENANT_FAULT_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning(
        "Tenant resolution failed",
        extra={
            "tenant_id": exc.tenant_id,
            "error_type": type(exc).__name__,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": str(exc), "code": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions with proper logging."""
    logger.error(
        "Unhandled exception",
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV") == "development"
    )
