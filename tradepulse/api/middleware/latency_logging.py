"""Request latency logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds for log levels (in milliseconds)
SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

QUIET_PATHS = ("/health", "/health/ready")


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log method, path, status and latency of every request.

    Slow requests are logged at warning level, very slow ones at error
    level. Health probes are logged at debug level only.

    Args:
        request: The incoming request.
        call_next: The next middleware/handler in the chain.

    Returns:
        Response: The response from the handler.
    """
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path

    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response is not None else 500
        log_msg = f"{method} {path} - {status_code} - {latency_ms:.2f}ms"

        if path in QUIET_PATHS:
            logger.debug(log_msg)
        elif latency_ms >= VERY_SLOW_REQUEST_THRESHOLD_MS:
            logger.error("Very slow request: %s", log_msg)
        elif latency_ms >= SLOW_REQUEST_THRESHOLD_MS:
            logger.warning("Slow request: %s", log_msg)
        else:
            logger.info(log_msg)
