import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from calsync.core.config import settings
from calsync.core.exceptions import BusinessException

logger = logging.getLogger(__name__)


def _request_extra(request: Request) -> Dict[str, str]:
    return {
        "path": request.url.path,
        "method": request.method,
        "client_host": request.client.host if request.client else "unknown",
    }


def _error_body(error: str, message: str, details: Any = None) -> Dict[str, Any]:
    body = {"error": error, "message": message}
    if details:
        body["details"] = details
    return body


async def handle_business_exception(request: Request, exc: BusinessException) -> JSONResponse:
    logger.warning(
        f"{exc.code}: {exc.message}",
        extra={**_request_extra(request), "details": exc.details},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Flatten pydantic's error list to {"field.path": "message"}."""
    fields: Dict[str, str] = {}
    for error in exc.errors():
        loc = list(error.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        fields[".".join(str(part) for part in loc)] = error.get("msg", "Invalid value")

    logger.warning(f"Rejected request input: {fields}", extra=_request_extra(request))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("validation_error", "Input validation failed", fields),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled {type(exc).__name__}: {exc}", exc_info=exc, extra=_request_extra(request))

    message = (
        "An internal server error occurred"
        if settings.ENVIRONMENT == "production"
        else str(exc)
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("internal_server_error", message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render BusinessExceptions, bad input and crashes as JSON error bodies."""
    app.add_exception_handler(BusinessException, handle_business_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
