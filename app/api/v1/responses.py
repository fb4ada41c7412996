"""Translation of core failures into HTTP responses."""

import logging
from typing import TypeVar

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.services.errors import ErrorKind
from app.services.results import Failure, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")

FAILURE_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PATIENT_RESTRICTED: status.HTTP_403_FORBIDDEN,
    ErrorKind.SCHEDULING_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_REQUEST: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.PERSISTENCE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class OperationFailed(Exception):
    """Raised by route handlers to short-circuit with a core failure."""

    def __init__(self, failure: Failure) -> None:
        super().__init__(failure.message)
        self.failure = failure


def unwrap(result: Result[T]) -> T:
    """Return the success value or raise ``OperationFailed``."""
    if isinstance(result, Failure):
        raise OperationFailed(result)
    return result.value


def failure_response(failure: Failure) -> JSONResponse:
    """Render a failure as ``{"success": false, "error": kind, ...}``."""
    status_code = FAILURE_STATUS_CODES.get(
        ErrorKind(failure.kind), status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    # Storage errors are logged where they happen; callers get a generic message
    if failure.kind == ErrorKind.PERSISTENCE_FAILURE:
        message = "The request could not be completed, please try again"
        details: dict = {}
    else:
        message = failure.message
        details = failure.details

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": ErrorKind(failure.kind).value,
            "message": message,
            "details": details,
        },
    )


def register_failure_handler(app: FastAPI) -> None:
    """Install the ``OperationFailed`` exception handler on the app."""

    @app.exception_handler(OperationFailed)
    async def operation_failed_handler(request: Request, exc: OperationFailed) -> JSONResponse:
        return failure_response(exc.failure)
