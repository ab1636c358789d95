"""
Error taxonomy shared by every service.

Services raise a ``ServiceError`` subclass; the HTTP layer renders it with
``service_error_handler`` so each kind maps to exactly one status code.
Anything else reaching the top of the stack is logged and rendered as an
opaque 500 by ``unhandled_error_handler``.
"""
import logging
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class NotFoundError(ServiceError):
    status_code = HTTPStatus.NOT_FOUND
    default_message = "Resource not found"


class ForbiddenError(ServiceError):
    status_code = HTTPStatus.FORBIDDEN
    default_message = "You do not have permission to perform this action"


class BadRequestError(ServiceError):
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(ServiceError):
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Invalid authentication credentials"

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class ConflictError(ServiceError):
    status_code = HTTPStatus.CONFLICT
    default_message = "Email or username already exists"


class InternalError(ServiceError):
    pass


def _error_body(request: Request, status: HTTPStatus, message: str) -> dict:
    return {
        "statusCode": int(status),
        "error": status.phrase,
        "message": message,
        "path": request.url.path,
        "method": request.method,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status = HTTPStatus(exc.status_code)
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("%s %s %d - %s", request.method, request.url.path, status, exc.message)
    else:
        logger.info("%s %s %d - %s", request.method, request.url.path, status, exc.message)
    return JSONResponse(
        status_code=status,
        content=_error_body(request, status, exc.message),
        headers=exc.headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    return JSONResponse(
        status_code=status,
        content=_error_body(request, status, InternalError.default_message),
    )
