"""
SubTrack Backend: Request ID Middleware
========================================

What:  Assigns a correlation id to each request and echoes it back.
How:   Reuses a client-sent X-Request-ID or generates a short UUID, stores it
       in a ContextVar (for exception handlers and loggers) and in
       request.state, then sets the X-Request-ID response header.
When:  Runs before the logging middleware so access lines carry the id.

Error responses include the same id as `request_id`, so a user reporting
a failure can be matched to the server log line.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_CLIENT_ID_LENGTH = 64

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def _new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Take X-Request-ID from the client if present and reasonably short
        2. Otherwise generate an 8-char hex id
        3. Store it in request_id_var and request.state.request_id
        4. Copy it to the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER, "")
        if not rid or len(rid) > MAX_CLIENT_ID_LENGTH:
            rid = _new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
