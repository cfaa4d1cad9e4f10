"""
ChatGate Backend — Request ID Middleware
==========================================

What:  Assigns an ID to each request and returns it in X-Request-ID.
Why:   Error bodies carry the same ID, so a user's error report can be
       matched to the server log lines of that request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests in one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Reuse the client's X-Request-ID header if present
        2. Otherwise generate a short UUID
        3. Store it in the ContextVar and request.state
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
