"""API error hierarchy and the middleware that renders it.

Every failure leaves the service as an ErrorResponse body: a short
``message`` for the dashboard toast and, for field or submission
problems, ``details`` naming the field or step.
"""

import logging
import traceback
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tradepulse.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class APIError(Exception):
    """An error with a user-facing message and the status it maps to.

    ``message`` is shown to the user as is, so it must never carry
    collaborator diagnostics; those belong in the log.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type: str = "api_error",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found error."""

    def __init__(self, message: str = "Resource not found", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_type="not_found",
            details=details,
        )


class ValidationError(APIError):
    """Field-scoped validation error. Never reaches the network layer."""

    def __init__(self, message: str = "Validation error", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_type="validation_error",
            details=details,
        )

    @classmethod
    def from_field_errors(
        cls,
        errors: dict[str, str],
        message: str = "Please correct the highlighted fields.",
    ) -> "ValidationError":
        """Build a validation error from a field -> message mapping."""
        details = [
            {"loc": [field], "msg": msg, "type": "value_error"}
            for field, msg in errors.items()
        ]
        return cls(message=message, details=details)

    @property
    def field_errors(self) -> dict[str, str]:
        """Field -> message mapping recovered from details."""
        errors: dict[str, str] = {}
        for detail in self.details or []:
            loc = detail.get("loc") or ["__all__"]
            errors[str(loc[-1])] = detail.get("msg", self.message)
        return errors


class AuthenticationError(APIError):
    """No active session. The message is intentionally generic."""

    def __init__(self, message: str = "Not authenticated", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_type="authentication_error",
            details=details,
        )


class ConflictError(APIError):
    """Request conflicts with the current state of a resource."""

    def __init__(self, message: str = "Conflict", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_type="conflict",
            details=details,
        )


class SubmissionInProgressError(ConflictError):
    """A form submission is already in flight for this form instance."""

    def __init__(self, message: str = "A submission is already in progress") -> None:
        super().__init__(message=message)
        self.error_type = "submission_in_progress"


class RemoteOperationError(APIError):
    """A call to an external collaborator (auth, database, storage) failed.

    The message is short and user facing; the diagnostic goes to the log.
    """

    def __init__(
        self,
        message: str = "The request could not be completed",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_type="remote_operation_error",
            details=details,
        )


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Build the JSON error body; unset fields are left out."""
    error_response = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Turn any exception raised below into an ErrorResponse.

    Client errors (4xx) are logged at info level; collaborator failures
    and anything unexpected at error level. Unexpected exceptions get a
    generic message with the traceback going to the log only.
    """
    request_id = request.headers.get("X-Request-ID")
    route = f"{request.method} {request.url.path}"

    try:
        return await call_next(request)

    except APIError as e:
        level = logging.ERROR if e.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s failed: %s - %s",
            route,
            e.error_type,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
        )

    except HTTPException as e:
        logger.warning("%s failed: HTTP %s - %s", route, e.status_code, e.detail, extra={"request_id": request_id})
        return create_error_response(
            error_type="http_error",
            message=str(e.detail),
            status_code=e.status_code,
            request_id=request_id,
        )

    except Exception as e:
        logger.error(
            "%s raised %s: %s\n%s",
            route,
            type(e).__name__,
            e,
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="internal_error",
            message=UNEXPECTED_ERROR_MESSAGE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request parsing failures in the standard error format.

    The leading "body"/"query"/"path" segment is dropped from ``loc`` so
    the client sees the same field names as in form validation errors.
    """
    details = []
    for error in exc.errors():
        loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        details.append(
            {
                "loc": loc or None,
                "msg": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )

    logger.info("Request validation failed: %s %s", request.method, request.url.path)
    return create_error_response(
        error_type="validation_error",
        message="Please correct the highlighted fields.",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details=details,
        request_id=request.headers.get("X-Request-ID"),
    )
