"""
Request logging middleware
One line per request: method, path, status, duration
"""
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

SKIP_PREFIXES = ("/favicon", "/apple-touch-icon")


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request, call_next):
        path = request.url.path

        # Browsers request these on every page load
        if path.startswith(SKIP_PREFIXES):
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        logger.info("%s %s %s %.1fms", request.method, path, response.status_code, duration_ms)
        return response
