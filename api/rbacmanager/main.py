"""RBAC Manager API."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from rbacmanager.api.middleware.context import RequestContextMiddleware
from rbacmanager.api.middleware.logging import LoggingMiddleware
from rbacmanager.api.v1.endpoints import health
from rbacmanager.api.v1.router import api_router
from rbacmanager.config.settings import Environment, settings
from rbacmanager.core.exceptions import CollaboratorError, ValidationError
from rbacmanager.core.logging import get_logger, setup_logging
from rbacmanager.db.kubernetes import close_api_client
from rbacmanager.db.redis import close_redis_connection

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version}",
        extra={"environment": settings.environment.value},
    )

    yield

    logger.info("Shutting down")
    close_redis_connection()
    close_api_client()


app = FastAPI(
    title=f"{settings.app_name} API",
    version=settings.app_version,
    description="Kubernetes RBAC effective permissions, role activity and simulation",
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc",
    openapi_url=f"{settings.api_prefix}/openapi.json",
    lifespan=lifespan,
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info(
        f"Rejected request: {exc.message}",
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict())


@app.exception_handler(CollaboratorError)
async def collaborator_error_handler(request: Request, exc: CollaboratorError):
    logger.error(
        f"Collaborator failure: {exc}",
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=exc.to_dict())


# Configure middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

if settings.environment == Environment.PRODUCTION:
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

# Register routes
app.include_router(health.router, tags=["health"])
app.include_router(api_router, prefix=settings.api_prefix)

if __name__ == "__main__":
    uvicorn.run(
        "rbacmanager.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.value.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
