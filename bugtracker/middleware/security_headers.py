"""Security headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from bugtracker.config import settings


def _csp(directives: dict[str, str]) -> str:
    return "; ".join(f"{name} {value}" for name, value in directives.items())


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds hardening headers to every response of the JSON API."""

    SECURITY_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        # Bug data is per-user; never let intermediaries cache it
        "Cache-Control": "no-store",
        "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    }

    # The API only serves JSON, so nothing needs to load
    API_CSP = _csp({
        "default-src": "'none'",
        "frame-ancestors": "'none'",
        "base-uri": "'none'",
    })

    # Swagger UI and ReDoc pull assets from CDNs
    DOCS_CSP = _csp({
        "default-src": "'self'",
        "script-src": "'self' 'unsafe-inline' https://cdn.jsdelivr.net",
        "style-src": "'self' 'unsafe-inline' https://cdn.jsdelivr.net",
        "img-src": "'self' data: https://fastapi.tiangolo.com",
        "font-src": "'self' https://cdn.jsdelivr.net https://fonts.gstatic.com",
        "worker-src": "'self' blob:",
        "frame-ancestors": "'none'",
    })

    DOCS_PATHS = {"/docs", "/redoc", "/openapi.json"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        response.headers.update(self.SECURITY_HEADERS)

        if settings.debug and request.url.path in self.DOCS_PATHS:
            response.headers["Content-Security-Policy"] = self.DOCS_CSP
        else:
            response.headers["Content-Security-Policy"] = self.API_CSP

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response
