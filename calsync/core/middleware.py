import logging
import time
import uuid

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from calsync.core.logging import request_context

logger = logging.getLogger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (taken from the incoming header when present)
    and echoes it back on the response, logging method, path, status and timing.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Unhandled exception during {request.method} {request.url.path}: {exc}",
                exc_info=True,
                extra={"request_id": request_id},
            )
            raise

        response.headers[self.header_name] = request_id
        elapsed_ms = round((time.time() - start_time) * 1000, 2)
        message = (
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms} ms)"
        )

        if response.status_code >= 500:
            logger.error(message, extra={"request_id": request_id})
        elif response.status_code >= 400:
            logger.warning(message, extra={"request_id": request_id})
        else:
            logger.info(message, extra={"request_id": request_id})

        return response


class LogContextMiddleware(BaseHTTPMiddleware):
    """Binds the request id and route to the log context for the request's lifetime."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        token = request_context.set(
            {
                "request_id": getattr(request.state, "request_id", "unknown"),
                "method": request.method,
                "path": request.url.path,
            }
        )
        try:
            return await call_next(request)
        finally:
            request_context.reset(token)


def register_middlewares(app: FastAPI) -> None:
    """
    Register all middlewares with the FastAPI app.

    Middleware runs in reverse order of registration, so LogContextMiddleware
    sees the request id set by RequestIdMiddleware.
    """
    app.add_middleware(LogContextMiddleware)
    app.add_middleware(RequestIdMiddleware, header_name="X-Request-ID")
