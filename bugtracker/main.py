"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Annotated, AsyncGenerator

import redis.asyncio as redis
import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from bugtracker import __version__
from bugtracker.api.v1.router import router as api_router
from bugtracker.config import settings
from bugtracker.core.exceptions import APIException
from bugtracker.database import close_db, get_db, init_db
from bugtracker.middleware import (
    AuditLogMiddleware,
    RateLimitMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from bugtracker.middleware.audit_logger import configure_logging
from bugtracker.redis import close_redis, get_redis, init_redis
from bugtracker.schemas.common import HealthResponse

configure_logging()
logger = structlog.get_logger()

HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "AUTHENTICATION_ERROR",
    status.HTTP_403_FORBIDDEN: "AUTHORIZATION_ERROR",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events handler."""
    await init_db()
    await init_redis()
    logger.info("application_started", env=settings.app_env, version=__version__)
    yield
    await close_db()
    await close_redis()
    logger.info("application_stopped")


app = FastAPI(
    title=settings.app_name,
    description="Role-based bug tracking API: bugs, comments, users and dashboard statistics.",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)


# The last middleware added is the outermost. RequestID must wrap everything
# so that audit logs and error bodies can carry the request ID.
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
)
app.add_middleware(RequestIDMiddleware)


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        error["request_id"] = request_id
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle custom API exceptions."""
    return _error_response(
        request,
        exc.status_code,
        exc.code,
        exc.error_message,
        details=exc.details,
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        details=errors,
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Unique and foreign key violations that slipped past service checks."""
    logger.warning("integrity_error", error=str(exc.orig), path=request.url.path)
    return _error_response(
        request,
        status.HTTP_409_CONFLICT,
        "CONFLICT_ERROR",
        "The request conflicts with existing data",
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Routing errors such as unknown paths or unsupported methods."""
    return _error_response(
        request,
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=exc,
    )

    details = None
    if settings.debug:
        details = [{"type": type(exc).__name__, "message": str(exc)}]

    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        details=details,
    )


app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", version=__version__)


@app.get(
    "/health/ready",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Readiness probe",
    responses={503: {"model": HealthResponse}},
)
async def readiness_check(
    db: Annotated[AsyncSession, Depends(get_db)],
    redis_client: Annotated[redis.Redis, Depends(get_redis)],
) -> JSONResponse:
    """Checks database and Redis connectivity."""
    db_status = "healthy"
    redis_status = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("readiness_database_failed", error=str(exc))
        db_status = "unhealthy"

    try:
        await redis_client.ping()
    except (RedisError, OSError) as exc:
        logger.error("readiness_redis_failed", error=str(exc))
        redis_status = "unhealthy"

    healthy = db_status == "healthy" and redis_status == "healthy"
    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        database=db_status,
        redis=redis_status,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )


@app.get(
    "/health/live",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Liveness probe",
)
async def liveness_check() -> HealthResponse:
    return HealthResponse(status="alive", version=__version__)


@app.get("/", include_in_schema=False)
async def root() -> dict:
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "bugtracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
