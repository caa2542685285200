"""Request logging middleware.

Tags each request with a request id (taken from an incoming X-Request-ID
header when the caller sent one), exposes it on request.state for the
response envelope, echoes it back as X-Request-ID and logs one line per
request:

    INFO [POST] /api/v1/projects/p1/orders/123/approve → 200 (23ms) req_a1b2c3d4e5f6

Server errors (5xx, including failed durable writes) log at WARNING.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.mo_common.response import new_request_id

logger = logging.getLogger("mo.request")

_HEADER = "X-Request-ID"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(_HEADER) or new_request_id()
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method, request.url.path, response.status_code, elapsed_ms, request_id,
        )
        response.headers[_HEADER] = request_id
        return response
