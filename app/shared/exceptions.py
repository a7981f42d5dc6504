"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FieldError:
    """Single field-level validation problem."""

    field: str
    message: str
    code: str = "invalid"


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "AppError"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "NotFound"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "Conflict"


class ForbiddenException(AppException):
    """Raised when principal has no rights for operation."""

    status_code = 403
    code = "Forbidden"


class UnauthenticatedException(AppException):
    """Raised when credentials are missing or invalid."""

    status_code = 401
    code = "Unauthenticated"


class InvalidTransitionException(AppException):
    """Raised when a status change is not legal from the current status."""

    status_code = 409
    code = "InvalidTransition"


class ValidationFailedException(AppException):
    """Raised when input fails validation; carries every field error."""

    status_code = 422
    code = "ValidationFailed"

    def __init__(self, errors: Sequence[FieldError], message: str = "Validation failed") -> None:
        self.errors = list(errors)
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str, code: str = "invalid") -> "ValidationFailedException":
        return cls([FieldError(field=field, message=message, code=code)])

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["fields"] = [asdict(error) for error in self.errors]
        return payload


def _request_field_errors(errors: Iterable[dict]) -> list[FieldError]:
    field_errors: list[FieldError] = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field_errors.append(
            FieldError(
                field=".".join(location) or "request",
                message=str(error.get("msg", "Invalid value")),
                code=str(error.get("type", "invalid")),
            ),
        )
    return field_errors


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_payload()})


async def request_validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request schema errors with the same shape as domain validation."""
    failure = ValidationFailedException(_request_field_errors(exc.errors()))
    return JSONResponse(status_code=failure.status_code, content={"error": failure.to_payload()})


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    code = UnauthenticatedException.code if exc.status_code == 401 else "HttpError"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": code, "message": str(exc.detail)}},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "InternalError", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
