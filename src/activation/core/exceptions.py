"""Exception handlers with request_id in responses."""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.activation.core.errors import ActivationError
from src.activation.core.logging import get_logger

logger = get_logger(__name__)

# Invitation endpoints outside the activation envelope surface classified
# errors as plain HTTP errors.
_ACTIVATION_STATUS = {
    "INVITE_INVALID": 404,
    "INVITE_EXPIRED": 410,
    "INVITE_ALREADY_ACCEPTED": 409,
    "UNAUTHENTICATED": 401,
    "NETWORK_ERROR": 503,
}


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(ActivationError)
    async def activation_error_handler(request: Request, exc: ActivationError) -> JSONResponse:
        presentation = exc.presentation
        return JSONResponse(
            status_code=_ACTIVATION_STATUS.get(exc.kind.value, 400),
            content={
                "detail": exc.message,
                "kind": exc.kind.value,
                "title": presentation.title,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
