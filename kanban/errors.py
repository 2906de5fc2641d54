"""Domain errors raised by the service layer and their HTTP mapping."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class KanbanError(Exception):
    """Base class for errors the API reports to clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthorized(KanbanError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(KanbanError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(KanbanError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(KanbanError):
    status_code = status.HTTP_409_CONFLICT


class ValidationFailed(KanbanError):
    status_code = status.HTTP_400_BAD_REQUEST


class OperationFailed(KanbanError):
    """A write transaction failed and was rolled back."""


async def kanban_error_handler(request: Request, exc: KanbanError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(KanbanError, kanban_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
