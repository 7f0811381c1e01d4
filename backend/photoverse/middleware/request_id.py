"""
PhotoVerse Backend — Request ID Middleware
============================================

What:  Assigns a short correlation ID to each request and echoes it back in
       the X-Request-ID response header.
Why:   A user reporting "the poem failed" can quote the ID from the error
       body; the access log and the orchestrator's fallback logs share it.
How:   Uses the client's X-Request-ID when present, otherwise a new 8-char
       UUID prefix. Stored in a ContextVar (coroutine-local) and on
       request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
