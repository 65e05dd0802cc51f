"""
Dashboard Dependencies
FastAPI dependencies that resolve the caller's provider and build the service.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from finboard.config import get_settings
from finboard.core.errors import ERROR_MESSAGES, ErrorCode
from finboard.dashboard.service import DashboardService
from finboard.integrations.providers import build_provider
from finboard.integrations.reports.connections import ConnectionProvider, SettingsConnectionProvider
from finboard.integrations.reports.exceptions import AuthExpiredError

logger = logging.getLogger(__name__)


def get_connection_provider(request: Request) -> ConnectionProvider:
    """
    Connection provider registered on app.state, falling back to the
    settings-backed development provider.
    """
    provider = getattr(request.app.state, "connection_provider", None)
    if provider is None:
        provider = SettingsConnectionProvider(get_settings())
    return provider


async def get_dashboard_service(
    connection_provider: Annotated[ConnectionProvider, Depends(get_connection_provider)],
) -> DashboardService:
    """
    Dashboard service for the current caller.

    A missing or unusable connection still yields a service; its
    operations answer with zero-valued responses and an error string.
    """
    settings = get_settings()
    connection = await connection_provider.get_connection()

    if connection is None:
        return DashboardService(None, settings=settings)

    try:
        provider = build_provider(connection, settings=settings)
    except AuthExpiredError as e:
        logger.warning("Linked %s connection is unusable: %s", connection.provider.value, e.message)
        return DashboardService(
            None,
            settings=settings,
            unavailable_message=ERROR_MESSAGES[ErrorCode.PROVIDER_AUTH_EXPIRED],
        )

    return DashboardService(provider, settings=settings)


# Type alias for cleaner route signatures
DashboardServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]
