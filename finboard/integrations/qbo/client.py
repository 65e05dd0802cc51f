"""
QuickBooks Online Report Client
Fetches ProfitAndLoss, BalanceSheet and ProfitAndLossDetail reports
over the QBO REST API.
"""

import logging
from datetime import date
from typing import Any, Optional

import httpx

from finboard.config import Settings, get_settings
from finboard.integrations.reports.connections import ProviderConnection
from finboard.integrations.reports.exceptions import (
    AuthExpiredError,
    RateLimitedError,
    ReportFetchError,
)
from finboard.integrations.reports.rate_limiter import RequestPacer
from finboard.integrations.reports.retry_handler import parse_retry_after

logger = logging.getLogger(__name__)


class QboReportClient:
    """Report client for one QBO company (realm)."""

    def __init__(
        self,
        connection: ProviderConnection,
        settings: Optional[Settings] = None,
        pacer: Optional[RequestPacer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize report client.

        Args:
            connection: Authorized QBO connection
            settings: Application settings (defaults to cached settings)
            pacer: Optional per-company call budget
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not connection.access_token:
            raise AuthExpiredError("QBO connection has no access token", status_code=401)
        if not connection.realm_id:
            raise ReportFetchError("QBO connection has no realm id")

        self.connection = connection
        self.settings = settings or get_settings()
        self.pacer = pacer
        self.transport = transport

    @property
    def realm_id(self) -> str:
        return self.connection.realm_id

    def _report_url(self, report_name: str) -> str:
        return f"{self.settings.qbo_base_url}/v3/company/{self.realm_id}/reports/{report_name}"

    async def _get_report(self, report_name: str, params: dict[str, Any]) -> Any:
        if self.pacer is not None:
            await self.pacer.acquire()

        query = {**params, "minorversion": self.settings.qbo_minor_version}
        headers = {
            "Authorization": f"Bearer {self.connection.access_token}",
            "Accept": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.get(self._report_url(report_name), params=query, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("QBO request failed for %s: %s", report_name, e)
            raise ReportFetchError(f"QBO request failed ({report_name}): {e}", endpoint=report_name) from e

        if response.status_code == 429:
            raise RateLimitedError(
                f"QBO rate limit exceeded ({report_name})",
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
                endpoint=report_name,
            )
        if response.status_code in (401, 403):
            raise AuthExpiredError(
                f"QBO rejected credentials ({report_name})",
                status_code=response.status_code,
                endpoint=report_name,
            )
        if response.status_code != 200:
            raise ReportFetchError(
                f"QBO API error ({report_name}): HTTP {response.status_code}",
                status_code=response.status_code,
                endpoint=report_name,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ReportFetchError(
                f"QBO returned malformed JSON ({report_name})",
                status_code=response.status_code,
                endpoint=report_name,
            ) from e

    async def fetch_profit_and_loss(self, start_date: date, end_date: date) -> Any:
        return await self._get_report("ProfitAndLoss", {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        })

    async def fetch_balance_sheet(self, as_of: date) -> Any:
        return await self._get_report("BalanceSheet", {
            "start_date": as_of.isoformat(),
            "end_date": as_of.isoformat(),
        })

    async def fetch_profit_and_loss_detail(self, start_date: date, end_date: date) -> Any:
        """Transaction-level P&L used for the expense drill-down."""
        return await self._get_report("ProfitAndLossDetail", {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        })
