"""Middleware components for the application."""

from bugtracker.middleware.audit_logger import AuditLogMiddleware
from bugtracker.middleware.rate_limiter import RateLimitMiddleware
from bugtracker.middleware.request_id import RequestIDMiddleware
from bugtracker.middleware.request_size import RequestSizeLimitMiddleware
from bugtracker.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "AuditLogMiddleware",
    "RateLimitMiddleware",
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
]
