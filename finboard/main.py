"""
FinBoard
FastAPI Application Entry Point
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from finboard.config import settings
from finboard.core.errors import global_exception_handler
from finboard.core.rate_limit import limiter
from finboard.dashboard.router import router as dashboard_router
from finboard.integrations.reports.connections import ConnectionProvider, SettingsConnectionProvider

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.
    Logs startup and shutdown.
    """
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    logger.info("Environment: %s", settings.environment)
    logger.info("Debug mode: %s", settings.debug)

    yield

    logger.info("%s shutdown complete", settings.app_name)


def create_application(connection_provider: Optional[ConnectionProvider] = None) -> FastAPI:
    """
    Application factory.
    Creates and configures the FastAPI application.

    Args:
        connection_provider: Source of the caller's accounting connection
            (defaults to development credentials from settings)
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Unified financial dashboard over Xero and QuickBooks Online reports",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.connection_provider = connection_provider or SettingsConnectionProvider(settings)

    # Configure rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(Exception, global_exception_handler)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routers(app)

    return app


def register_routers(app: FastAPI) -> None:
    """Register all API routers."""

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs" if settings.debug else "Disabled in production",
        }

    app.include_router(dashboard_router)


# Create the application instance
app = create_application()


if __name__ == "__main__":
    uvicorn.run(
        "finboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
