"""Request correlation middleware."""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("request")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach an ``X-Request-Id`` to every request and log its start and end."""

    header = "X-Request-Id"

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get(self.header) or request.headers.get("X-Request-ID")
        req_id = incoming or str(uuid.uuid4())
        request.state.request_id = req_id
        logger.info("request.start request_id=%s method=%s path=%s", req_id, request.method, request.url.path)
        t0 = time.perf_counter()
        response = await call_next(request)
        response.headers[self.header] = req_id
        logger.info(
            "request.end request_id=%s path=%s status_code=%d ms=%d",
            req_id,
            request.url.path,
            response.status_code,
            int((time.perf_counter() - t0) * 1000),
        )
        return response
