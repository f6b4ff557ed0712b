"""
Domain error taxonomy and the FastAPI handlers that render it.
Services raise these; routers let them propagate.
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base class for errors that map onto an HTTP status"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class AuthorizationError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(PortalError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class QuotaExceededError(PortalError):
    """Business limit hit: booking caps, payment above remaining balance"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "limit_exceeded"


class ConfigurationError(PortalError):
    """Books are not set up for the requested operation (e.g. no Cash account)"""
    status_code = status.HTTP_409_CONFLICT
    code = "configuration_error"


async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code}
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Missing required fields",
            "code": ValidationError.code,
            "errors": jsonable_encoder(exc.errors()),
        }
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred"}
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
