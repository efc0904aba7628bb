"""Rate limiting middleware."""

import time

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from bugtracker.config import settings
from bugtracker.middleware.audit_logger import get_client_ip
from bugtracker.redis import RateLimiter, get_redis

logger = structlog.get_logger()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client request limit using the Redis sliding window.

    When Redis is unreachable the request is let through and the failure
    is logged. Disabled entirely by ``RATE_LIMIT_ENABLED=false``.
    """

    EXCLUDED_PATHS = {
        "/health",
        "/health/ready",
        "/health/live",
        "/docs",
        "/redoc",
        "/openapi.json",
    }

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not settings.rate_limit_enabled or request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = get_client_ip(request)
        limit = settings.rate_limit_per_minute

        try:
            rate_limiter = RateLimiter(await get_redis())
            is_allowed, remaining, retry_after = await rate_limiter.is_allowed(
                key=f"api:{client_ip}",
                max_requests=limit,
                window_seconds=60,
            )
        except (RedisError, OSError) as exc:
            logger.warning("rate_limit_unavailable", error=str(exc), client_ip=client_ip)
            return await call_next(request)

        if not is_allowed:
            content = {
                "error": {
                    "code": "RATE_LIMIT_EXCEEDED",
                    "message": "Too many requests. Please slow down.",
                }
            }
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                content["error"]["request_id"] = request_id

            return JSONResponse(
                status_code=429,
                content=content,
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(int(time.time()) + retry_after),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
