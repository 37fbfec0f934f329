"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from tradepulse.api.middleware.error_handler import (
    error_handler_middleware,
    request_validation_error_handler,
)
from tradepulse.api.middleware.latency_logging import latency_logging_middleware
from tradepulse.api.middleware.request_size import request_size_limit_middleware
from tradepulse.api.routes import auth, feedback, health, notifications, profiles
from tradepulse.core.config import get_settings
from tradepulse.services.form_sessions import FormSessionRegistry
from tradepulse.services.profile_cache import ProfileCache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Creates the per-process profile cache and form registry on startup and
    disposes every open form on shutdown.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    app.state.profile_cache = ProfileCache()
    app.state.form_sessions = FormSessionRegistry(max_size=settings.max_form_sessions)
    logger.info("Profile cache and form registry initialized")

    yield

    disposed = app.state.form_sessions.clear()
    app.state.profile_cache.clear()
    logger.info("Disposed %d open forms", disposed)
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="TradePulse API",
        description="Dashboard backend: authentication, profile settings and feedback",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request parsing errors use the same body as every other error
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    # Add error handler middleware (outermost - catches all errors)
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)

    # Add latency logging middleware (tracks request timing)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)

    # Add request size limit middleware (rejects oversized requests early)
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)

    # Mount health routes at root level (no prefix)
    app.include_router(health.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(auth.router)
    api_v1_router.include_router(profiles.router)
    api_v1_router.include_router(feedback.router)
    api_v1_router.include_router(notifications.router)
    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tradepulse.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
