"""Request ID middleware for request tracing."""

import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an id, echoed back in ``X-Request-ID``.

    A client-supplied id is reused when present and reasonably short;
    otherwise a UUID4 is generated. The id is stored on ``request.state``
    so error responses and log lines can carry it.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH:
            request_id = incoming
        else:
            request_id = str(uuid.uuid4())
            logger.debug(f"request_id_generated: request_id={request_id}")

        request.state.request_id = request_id
        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
