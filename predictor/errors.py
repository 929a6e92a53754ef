"""
Typed failures raised by the service layer.

Routers let these propagate; ``register_exception_handlers`` turns them
into JSON responses of the form ``{"detail": message}``.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from .logging import get_logger

log = get_logger(__name__)


class PredictorError(Exception):
    """Base class for all application errors."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PredictorError):
    """Input has the wrong shape or range, or the action is not allowed right now."""
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(PredictorError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(PredictorError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(PredictorError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(PredictorError):
    status_code = status.HTTP_409_CONFLICT


class Unavailable(PredictorError):
    """The backing store could not be reached."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def predictor_error_handler(request: Request, exc: PredictorError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def store_unavailable_handler(request: Request, exc: OperationalError) -> JSONResponse:
    log.error("store_unavailable", path=request.url.path, error=str(exc.orig))
    error = Unavailable("Database not available")
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PredictorError, predictor_error_handler)
    app.add_exception_handler(OperationalError, store_unavailable_handler)
