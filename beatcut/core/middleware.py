"""
Custom request middleware
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests for monitoring"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_host = request.client.host if request.client is not None else "unknown"
        logger.info(
            "Request: %s %s from %s", request.method, request.url.path, client_host
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "Response: %s %s -> %d in %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
        )
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response
