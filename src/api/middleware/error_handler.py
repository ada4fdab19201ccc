"""Error rendering for FastAPI: domain errors, validation errors, crashes."""

import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from src.api.schemas.common import ErrorResponse
from src.exceptions import AccountLockedError, AppError

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def render_app_error(exc: AppError, request_id: Optional[str]) -> JSONResponse:
    """Build the JSON response for a domain error.

    The stable ``code`` goes in ``error``; ``Retry-After`` is set for
    lockouts so clients can back off.
    """
    error = ErrorResponse(
        error=exc.code,
        message=exc.message,
        details=exc.details,
        request_id=request_id,
    )
    headers = None
    if isinstance(exc, AccountLockedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=error.model_dump(), headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    request_id = _request_id(request)
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        f"app_error: path={request.url.path}, status={exc.status_code}, "
        f"code={exc.code}, request_id={request_id}"
    )
    return render_app_error(exc, request_id)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI request validation failures as per-field messages."""
    request_id = _request_id(request)
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields[".".join(loc) or "request"] = err.get("msg", "Invalid value")

    logger.info(
        f"validation_error: path={request.url.path}, fields={sorted(fields)}, "
        f"request_id={request_id}"
    )
    error = ErrorResponse(
        error="validation_error",
        message="Request validation failed",
        details={"fields": fields},
        request_id=request_id,
    )
    return JSONResponse(status_code=422, content=error.model_dump())


async def error_handling_middleware(request: Request, call_next: Callable) -> Response:
    """
    Catch whatever escapes the routers and return a standardized JSON error.

    - AppError → its own status and code
    - HTTPException → passthrough with original status
    - IntegrityError (SQLAlchemy) → 409 Conflict
    - Exception → 500 ``internal_error`` (logged with traceback, details hidden)

    Args:
        request: Incoming FastAPI request
        call_next: Next middleware/handler in chain

    Returns:
        Response object (either success or error JSON)
    """
    try:
        response: Response = await call_next(request)
        return response

    except AppError as e:
        return await app_error_handler(request, e)

    except HTTPException as e:
        request_id = _request_id(request)
        logger.info(
            f"http_exception: path={request.url.path}, status={e.status_code}, "
            f"detail={e.detail}, request_id={request_id}"
        )
        error = ErrorResponse(error="http_error", message=str(e.detail), request_id=request_id)
        return JSONResponse(status_code=e.status_code, content=error.model_dump())

    except IntegrityError as e:
        request_id = _request_id(request)
        logger.warning(
            f"integrity_error: path={request.url.path}, error={str(e.orig)}, "
            f"request_id={request_id}"
        )
        error = ErrorResponse(
            error="conflict",
            message="Resource conflict or constraint violation",
            request_id=request_id,
        )
        return JSONResponse(status_code=409, content=error.model_dump())

    except Exception as e:
        request_id = _request_id(request)
        logger.exception(
            f"internal_error: path={request.url.path}, error={str(e)}, request_id={request_id}"
        )
        error = ErrorResponse(
            error="internal_error",
            message="An unexpected error occurred",
            request_id=request_id,
        )
        return JSONResponse(status_code=500, content=error.model_dump())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_error_handler  # type: ignore[arg-type]
    )
    app.middleware("http")(error_handling_middleware)
