"""Response schemas shared by every router: health, acknowledgements and errors."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness probe response."""

    model_config = ConfigDict(from_attributes=True)

    status: HealthStatus = Field(description="Current health status")
    environment: str | None = Field(default=None, description="Deployment environment")
    timestamp: datetime = Field(default_factory=utc_now, description="Check timestamp")
    version: str = Field(default="0.1.0", description="API version")


class CheckResult(BaseModel):
    """One collaborator probed by the readiness check."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(description="Collaborator name (database, storage)")
    healthy: bool = Field(description="Whether the collaborator answered")
    latency_ms: float | None = Field(default=None, description="Response time in milliseconds")
    error: str | None = Field(default=None, description="Error message if unhealthy")


class ReadinessResponse(BaseModel):
    """Readiness probe response. Unhealthy if any check failed."""

    model_config = ConfigDict(from_attributes=True)

    status: HealthStatus = Field(description="Overall readiness status")
    timestamp: datetime = Field(default_factory=utc_now, description="Check timestamp")
    checks: list[CheckResult] = Field(default_factory=list, description="Individual check results")


class MessageResponse(BaseModel):
    """Plain acknowledgement response."""

    model_config = ConfigDict(from_attributes=True)

    message: str = Field(description="Status message")


class ErrorDetail(BaseModel):
    """One entry of an error response.

    For field errors ``loc`` ends with the field name; for a failed
    submission it names the step and ``type`` says whether the step
    completed or failed.
    """

    model_config = ConfigDict(from_attributes=True)

    loc: list[str | int] | None = Field(default=None, description="Field name or submission step")
    msg: str = Field(description="Human-readable message")
    type: str = Field(description="Error type identifier")


class ErrorResponse(BaseModel):
    """Body of every error response.

    ``message`` is meant for a toast, ``details`` for inline field errors.
    """

    model_config = ConfigDict(from_attributes=True)

    error: str = Field(description="Error type or category")
    message: str = Field(description="Human-readable error description")
    details: list[ErrorDetail] | None = Field(default=None, description="Field or step details")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=utc_now, description="Error timestamp")

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        error_details = None
        if details:
            error_details = [
                ErrorDetail(
                    loc=d.get("loc"),
                    msg=d.get("msg", str(d)),
                    type=d.get("type", "error"),
                )
                for d in details
            ]

        return cls(
            error=error_type,
            message=message,
            details=error_details,
            request_id=request_id,
        )
