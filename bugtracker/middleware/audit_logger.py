"""Structured logging setup, request audit middleware and audit event helpers."""

import logging
import time
from typing import Any, Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from bugtracker.config import settings

# Fields masked wherever they appear in logged data
SENSITIVE_FIELDS = {
    "password",
    "password_hash",
    "current_password",
    "new_password",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "api_key",
    "secret",
}

MASK = "***MASKED***"


def _mask_event(logger: Any, method_name: str, event_dict: dict) -> dict:
    return mask_sensitive(event_dict)


def configure_logging() -> None:
    """Configure structlog once for the whole process."""
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _mask_event,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def mask_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with sensitive keys masked, recursively."""
    masked = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_FIELDS:
            masked[key] = MASK
        elif isinstance(value, dict):
            masked[key] = mask_sensitive(value)
        else:
            masked[key] = value
    return masked


def get_client_ip(request: Request) -> str:
    """Client address, honouring proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


class AuditLogMiddleware(BaseHTTPMiddleware):
    """
    Logs the start and completion of every API request.

    Runs inside RequestIDMiddleware, so ``request_id`` is already bound to
    the structlog context. The authenticated user id is read from
    ``request.state.user_id``, which the auth dependency sets.
    """

    EXCLUDED_PATHS = {
        "/health",
        "/health/ready",
        "/health/live",
    }

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()

        log_context = {
            "method": request.method,
            "path": request.url.path,
            "query_params": mask_sensitive(dict(request.query_params)),
            "client_ip": get_client_ip(request),
            "user_agent": request.headers.get("User-Agent", "unknown"),
        }
        if "/auth/" in request.url.path:
            log_context["auth_event_type"] = "auth_request"

        logger.info("request_started", **log_context)

        response = await call_next(request)

        response_context = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
            "user_id": getattr(request.state, "user_id", None),
        }

        if response.status_code >= 500:
            logger.error("request_completed", **response_context)
        elif response.status_code >= 400:
            logger.warning("request_completed", **response_context)
        else:
            logger.info("request_completed", **response_context)

        return response


def log_auth_event(
    event: str,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    success: bool = True,
    reason: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> None:
    """
    Log an authentication event.

    Args:
        event: login, logout, register, refresh or password_change
        user_id: User ID (if known)
        email: Email address; only a prefix is logged for failures
        success: Whether the operation succeeded
        reason: Reason for failure (if applicable)
        ip_address: Client IP address
    """
    context: dict[str, Any] = {
        "event_type": "auth",
        "auth_action": event,
        "success": success,
        "ip_address": ip_address,
    }

    if success:
        context["user_id"] = user_id
        context["email"] = email
        logger.info("auth_event", **context)
    else:
        # Partial address only, to avoid building an account list from logs
        if email:
            context["email_prefix"] = email[:2] + "***"
        context["reason"] = reason
        logger.warning("auth_event", **context)


def log_permission_event(
    action: str,
    resource: str,
    user_id: str,
    granted: bool,
    required_permission: Optional[str] = None,
    user_role: Optional[str] = None,
    resource_id: Optional[str] = None,
) -> None:
    """Log a permission decision. Denials are warnings, grants debug."""
    context = {
        "event_type": "permission",
        "action": action,
        "resource": resource,
        "resource_id": resource_id,
        "user_id": user_id,
        "granted": granted,
        "required_permission": required_permission,
        "user_role": user_role,
    }

    if granted:
        logger.debug("permission_check", **context)
    else:
        logger.warning("permission_denied", **context)


def log_data_modification(
    action: str,
    resource: str,
    resource_id: str,
    user_id: str,
    changes: Optional[dict[str, Any]] = None,
) -> None:
    """
    Log a data modification event.

    Args:
        action: create, update or delete
        resource: bug, comment, attachment or user
        resource_id: ID of the resource
        user_id: User who performed the action
        changes: Changed fields; sensitive values are masked
    """
    context: dict[str, Any] = {
        "event_type": "data_modification",
        "action": action,
        "resource": resource,
        "resource_id": resource_id,
        "user_id": user_id,
    }

    if changes:
        context["changes"] = mask_sensitive(
            {key: _loggable(value) for key, value in changes.items()}
        )

    logger.info("data_modified", **context)


def _loggable(value: Any) -> Any:
    # Enums, UUIDs and dates render as plain strings in JSON logs
    if value is None or isinstance(value, (bool, int, float, str, list)):
        return value
    return str(getattr(value, "value", value))
