"""Request logging middleware."""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, status, duration and request id for every request.

    Principal ids are logged when the Identity Gate attached one to
    ``request.state``; credentials and bodies are never logged.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        start_time = time.perf_counter()
        response: Response = await call_next(request)
        duration_ms = int((time.perf_counter() - start_time) * 1000)

        principal = getattr(request.state, "principal", None)
        logger.info(
            f"http_request: method={request.method} path={request.url.path} "
            f"status={response.status_code} duration_ms={duration_ms} "
            f"account_id={principal.id if principal else None} "
            f"request_id={getattr(request.state, 'request_id', None)}"
        )
        return response
