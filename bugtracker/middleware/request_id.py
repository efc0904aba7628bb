"""Request ID middleware for request tracing."""

from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns every request an ID.

    The ID is stored on ``request.state.request_id``, bound to the structlog
    context for all log lines of the request, and echoed in the
    ``X-Request-ID`` response header. A client-supplied header is reused.
    """

    HEADER_NAME = "X-Request-ID"
    MAX_LENGTH = 128

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(self.HEADER_NAME, "")[: self.MAX_LENGTH]
        if not request_id:
            request_id = str(uuid4())

        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.HEADER_NAME] = request_id
        return response
