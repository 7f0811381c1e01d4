"""
PhotoVerse Backend — Request Logging Middleware
=================================================

What:  One access log line per HTTP request: method, path, status, duration,
       request ID and client IP.
Why:   Poem generation latency is dominated by provider calls (2–10s) and
       fallbacks roughly double it; the duration field makes that visible.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, IP, request ID
    ❌ Don't log: request body (the user's photo), generated poems, API keys
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from photoverse.middleware.request_id import request_id_var

logger = logging.getLogger("photoverse.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Level follows the status code:
        5xx → ERROR, 4xx → WARNING, everything else → INFO
    Health checks are not logged.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
