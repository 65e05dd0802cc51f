"""
Xero Report Client
Fetches Profit & Loss, Balance Sheet and Bank Summary reports from Xero.

SDK calls are blocking, so each one runs in the default executor.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Optional

from xero_python.exceptions import ApiException

from finboard.integrations.reports.exceptions import (
    AuthExpiredError,
    RateLimitedError,
    ReportFetchError,
)
from finboard.integrations.reports.rate_limiter import RequestPacer
from finboard.integrations.reports.retry_handler import extract_retry_after
from finboard.integrations.reports.utils import to_json_serializable
from finboard.integrations.xero.sdk_client import XeroSDKClient

logger = logging.getLogger(__name__)


def map_api_exception(exception: ApiException, endpoint: str) -> ReportFetchError:
    """Translate an SDK ApiException into a report fetch error."""
    status = getattr(exception, "status", None)

    if status == 429:
        return RateLimitedError(
            f"Xero rate limit exceeded ({endpoint})",
            retry_after=extract_retry_after(exception),
            endpoint=endpoint,
        )
    if status in (401, 403):
        return AuthExpiredError(
            f"Xero rejected credentials ({endpoint})",
            status_code=status,
            endpoint=endpoint,
        )
    return ReportFetchError(
        f"Xero API error ({endpoint}): {getattr(exception, 'reason', exception)}",
        status_code=status,
        endpoint=endpoint,
    )


class XeroReportClient:
    """Report client for one Xero organisation."""

    def __init__(
        self,
        sdk_client: XeroSDKClient,
        pacer: Optional[RequestPacer] = None,
    ):
        """
        Initialize report client.

        Args:
            sdk_client: Configured Xero SDK client
            pacer: Optional per-organisation call budget
        """
        self.client = sdk_client
        self.api = sdk_client.accounting_api
        self.tenant_id = sdk_client.tenant_id
        self.pacer = pacer

    async def _call(self, endpoint: str, func: Callable[[], Any]) -> Any:
        if self.pacer is not None:
            await self.pacer.acquire()

        try:
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, func)
        except ApiException as e:
            logger.warning("Xero API error on %s: status=%s", endpoint, getattr(e, "status", None))
            raise map_api_exception(e, endpoint) from e
        except Exception as e:
            logger.warning("Xero request failed on %s: %s", endpoint, e)
            raise ReportFetchError(f"Xero request failed ({endpoint}): {e}", endpoint=endpoint) from e

        return to_json_serializable(response)

    async def fetch_profit_and_loss(self, start_date: date, end_date: date) -> Any:
        """
        Fetch Profit & Loss for a period.
        Uses standardLayout=true for deterministic parsing.
        """
        return await self._call("ProfitAndLoss", lambda: self.api.get_report_profit_and_loss(
            xero_tenant_id=self.tenant_id,
            from_date=start_date,
            to_date=end_date,
            standard_layout=True,
        ))

    async def fetch_balance_sheet(self, as_of: date) -> Any:
        """Fetch Balance Sheet as of a date."""
        return await self._call("BalanceSheet", lambda: self.api.get_report_balance_sheet(
            xero_tenant_id=self.tenant_id,
            date=as_of,
            standard_layout=True,
        ))

    async def fetch_bank_summary(self, start_date: date, end_date: date) -> Any:
        """Fetch Bank Summary (cash received / spent per account) for a period."""
        return await self._call("BankSummary", lambda: self.api.get_report_bank_summary(
            xero_tenant_id=self.tenant_id,
            from_date=start_date,
            to_date=end_date,
        ))
