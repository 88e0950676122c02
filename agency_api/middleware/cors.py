"""Edge-function CORS middleware.

Behavior:
- OPTIONS on any path: empty 200 with CORS headers, before routing or auth
- Every other response (including errors) carries the same permissive headers
- An exception escaping the handler stack becomes a generic 500 here, so the
  browser still sees CORS headers and a JSON body; details are logged only
"""

import logging
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from agency_api.errors import INTERNAL_MESSAGE
from agency_api.utils.sanitize import redact_headers

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
BASE_ALLOWED_HEADERS = ("authorization", "x-client-info", "apikey", "content-type")


def build_cors_headers(staff_session_header: str) -> dict[str, str]:
    """CORS headers attached to every response."""
    allowed = ", ".join(BASE_ALLOWED_HEADERS + (staff_session_header,))
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": allowed,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Expose-Headers": "X-Request-ID",
    }


class EdgeCorsMiddleware(BaseHTTPMiddleware):
    """Answer pre-flight requests and add CORS headers to all responses."""

    def __init__(self, app, staff_session_header: str):
        super().__init__(app)
        self.cors_headers = build_cors_headers(staff_session_header)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.cors_headers)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Unhandled exception: {e}",
                exc_info=True,
                extra={
                    "event": "http.unhandled_exception",
                    "path": request.url.path,
                    "headers": redact_headers(request.headers),
                },
            )
            response = JSONResponse(status_code=500, content={"error": INTERNAL_MESSAGE})

        response.headers.update(self.cors_headers)
        return response
