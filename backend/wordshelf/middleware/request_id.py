"""
WordShelf Backend: Request ID Middleware
=========================================

What:  Assigns a short ID to each request and returns it as X-Request-ID.
How:   Uses the client's X-Request-ID when sent, otherwise generates one,
       and keeps it in a ContextVar so loggers and error handlers anywhere
       in the request can read it.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Take X-Request-ID from the request headers if present
        2. Otherwise generate the first 8 characters of a UUID4
        3. Store it in request_id_var and request.state.request_id
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
