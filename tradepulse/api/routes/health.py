"""Health check endpoints for monitoring and deployment verification."""

import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Response, status

from tradepulse.core.config import get_settings
from tradepulse.core.supabase import check_database_connection, check_storage_buckets
from tradepulse.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])

READINESS_CHECKS: tuple[tuple[str, Callable[[], Awaitable[dict[str, Any]]]], ...] = (
    ("database", check_database_connection),
    ("storage", check_storage_buckets),
)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Always 200 while the process is up; no collaborator is contacted."""
    return HealthResponse(status=HealthStatus.HEALTHY, environment=get_settings().app_env)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check that the profile store and the upload buckets are reachable. Used for readiness probes.",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Probe each collaborator in turn; 503 if any of them fails."""
    checks: list[CheckResult] = []
    for name, probe in READINESS_CHECKS:
        start_time = time.perf_counter()
        result = await probe()
        latency_ms = (time.perf_counter() - start_time) * 1000
        checks.append(
            CheckResult(
                name=name,
                healthy=result["healthy"],
                latency_ms=round(latency_ms, 2),
                error=result.get("error"),
            )
        )

    all_healthy = all(check.healthy for check in checks)
    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status=HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY,
        checks=checks,
    )
