"""
Error taxonomy and the JSON error envelope.

Every error leaves the API as ``{"status": "fail" | "error", "message": ...}``.
Client errors (4xx) use ``fail``, server faults use ``error``.
"""
import logging
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kny_api.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status and envelope."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    status: str = "error"
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailedError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    status = "fail"
    default_message = "Invalid input data"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    status = "fail"
    default_message = "You are not logged in. Please log in to get access."


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    status = "fail"
    default_message = "You do not have permission to perform this action"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    status = "fail"
    default_message = "Resource not found"


class ServerError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    status = "error"
    default_message = "Internal server error"


def format_error_details(errors: Iterable[dict[str, Any]]) -> str:
    """Flatten pydantic error dicts into ``field: message`` pairs."""
    parts = []
    for error in errors:
        loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path", "form")]
        message = error.get("msg", "Invalid value")
        parts.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return "; ".join(parts) or ValidationFailedError.default_message


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "fail" if status_code < 500 else "error", "message": message},
    )


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": exc.status, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(status.HTTP_400_BAD_REQUEST, format_error_details(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = str(exc) if settings.DEBUG else ServerError.default_message
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)
