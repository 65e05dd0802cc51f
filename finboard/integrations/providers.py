"""
Provider Selection
Pairs a report parser with the matching report client, once per request.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from finboard.config import Settings, get_settings
from finboard.integrations.qbo.client import QboReportClient
from finboard.integrations.qbo.parsers import QboReportParser
from finboard.integrations.reports.base import Provider, ReportParser
from finboard.integrations.reports.categories import ExpenseCategorizer
from finboard.integrations.reports.connections import ProviderConnection
from finboard.integrations.reports.exceptions import AuthExpiredError
from finboard.integrations.reports.rate_limiter import Clock, RequestPacer
from finboard.integrations.xero.fetcher import XeroReportClient
from finboard.integrations.xero.parsers import XeroReportParser
from finboard.integrations.xero.sdk_client import XeroSDKClient, XeroSDKClientError

logger = logging.getLogger(__name__)


@dataclass
class ReportProvider:
    """Parser and client for the caller's linked provider."""
    provider: Provider
    parser: ReportParser
    client: Union[XeroReportClient, QboReportClient]


def build_provider(
    connection: ProviderConnection,
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
) -> ReportProvider:
    """
    Select the adapter and report client for a connection.

    Args:
        connection: Authorized provider connection
        settings: Application settings (defaults to cached settings)
        clock: Time source for the client's call budget

    Returns:
        ReportProvider for the connection's provider

    Raises:
        AuthExpiredError: If the connection cannot authorize requests
    """
    settings = settings or get_settings()
    categorizer = ExpenseCategorizer(settings.expense_category_keywords)
    pacer = RequestPacer(calls_per_minute=settings.provider_calls_per_minute, clock=clock)

    if connection.provider == Provider.XERO:
        try:
            sdk_client = XeroSDKClient(connection, settings=settings)
        except XeroSDKClientError as e:
            raise AuthExpiredError(e.message, status_code=e.status_code) from e

        return ReportProvider(
            provider=Provider.XERO,
            parser=XeroReportParser(categorizer=categorizer, max_depth=settings.report_max_depth),
            client=XeroReportClient(sdk_client, pacer=pacer),
        )

    logger.debug("Using QBO report client for realm %s", connection.realm_id)
    return ReportProvider(
        provider=Provider.QBO,
        parser=QboReportParser(categorizer=categorizer, max_depth=settings.report_max_depth),
        client=QboReportClient(connection, settings=settings, pacer=pacer),
    )
