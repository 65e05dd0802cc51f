"""
Dashboard Service
Fetches provider reports and turns them into dashboard responses.

Provider failures never surface as non-success responses: a missing
connection or a failed fetch yields a structurally complete zero-valued
response carrying a user-facing error string. Only invalid request
parameters raise (InvalidTimeWindowError / UnsupportedOperationError).
"""

import asyncio
import logging
from datetime import date
from functools import partial
from typing import Any, Optional

from finboard.config import Settings, get_settings
from finboard.core.errors import ERROR_MESSAGES, ErrorCode, get_error_code_for_exception, sanitize_error_message
from finboard.dashboard.assembler import (
    assemble_cash_flow,
    assemble_dashboard,
    assemble_expense_detail,
    assemble_previous_period,
    assemble_trend,
    empty_dashboard,
)
from finboard.dashboard.kpi_extractor import KpiExtractor
from finboard.dashboard.schemas import (
    CashFlowResponse,
    DashboardStatsResponse,
    ExpenseDetailResponse,
    MonthlyTrendResponse,
    PreviousPeriodResponse,
)
from finboard.dashboard.timeframes import (
    InvalidTimeWindowError,
    Timeframe,
    TimeWindow,
    ensure_max_months,
    resolve_trend_window,
    resolve_window,
)
from finboard.dashboard.trend_aggregator import (
    TrendAggregator,
    cash_flow_point,
    trend_point_from_report,
    zero_cash_flow_point,
    zero_trend_point,
)
from finboard.integrations.providers import ReportProvider
from finboard.integrations.reports.base import Provider
from finboard.integrations.reports.extracted_types import CashFlowPoint, ExpenseLineItem, TrendPoint
from finboard.integrations.reports.rate_limiter import Clock, RequestPacer, SystemClock
from finboard.integrations.reports.retry_handler import RateLimitRetryPolicy, RetryHandler
from finboard.integrations.reports.utils import get_month_end, shift_month

logger = logging.getLogger(__name__)

NO_PROVIDER_MESSAGE = ERROR_MESSAGES[ErrorCode.NO_PROVIDER_LINKED]
CASH_FLOW_UNSUPPORTED_MESSAGE = "Cash flow is only available for Xero connections."


class UnsupportedOperationError(ValueError):
    """The linked provider cannot serve this request."""


def user_facing_error(exception: Exception) -> str:
    """Log a fetch failure and return its sanitized message."""
    error_code, _ = get_error_code_for_exception(exception)
    if error_code not in (ErrorCode.PROVIDER_AUTH_EXPIRED, ErrorCode.PROVIDER_RATE_LIMITED):
        error_code = ErrorCode.PROVIDER_FETCH_FAILED
    return sanitize_error_message(exception, error_code)


class DashboardService:
    """
    Dashboard operations for one caller.

    A service instance is built per request around the caller's
    ReportProvider, or None when no provider is linked.
    """

    def __init__(
        self,
        provider: Optional[ReportProvider],
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        today: Optional[date] = None,
        unavailable_message: Optional[str] = None,
    ):
        """
        Initialize dashboard service.

        Args:
            provider: Parser and client for the linked provider, or None
            settings: Application settings (defaults to cached settings)
            clock: Time source for pacing and retry waits
            today: Reference date for default windows (defaults to date.today())
            unavailable_message: Error reported when provider is None
                (defaults to the no-provider-linked message)
        """
        self.provider = provider
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()
        self.today = today or date.today()
        self.unavailable_message = unavailable_message or NO_PROVIDER_MESSAGE
        self.retry_policy = RateLimitRetryPolicy(
            max_retries=self.settings.rate_limit_max_retries,
            backoff_base=self.settings.rate_limit_backoff_base_seconds,
            max_wait=self.settings.rate_limit_max_wait_seconds,
        )
        self.retry_handler = RetryHandler(self.retry_policy, clock=self.clock)

    # =========================================================================
    # Fetch helpers
    # =========================================================================

    def _aggregator(self, interval_seconds: float) -> TrendAggregator:
        return TrendAggregator(
            pacer=RequestPacer(min_interval=interval_seconds, clock=self.clock),
            retry_policy=self.retry_policy,
            clock=self.clock,
            deadline_seconds=self.settings.trend_deadline_seconds,
        )

    async def _fetch_profit_and_loss(self, start_date: date, end_date: date) -> Any:
        return await self.retry_handler.execute_with_retry(
            self.provider.client.fetch_profit_and_loss, start_date, end_date
        )

    async def _fetch_balance_sheet(self, as_of: date) -> Any:
        return await self.retry_handler.execute_with_retry(
            self.provider.client.fetch_balance_sheet, as_of
        )

    async def _fetch_month_profit_and_loss(self, month: date) -> Any:
        return await self.provider.client.fetch_profit_and_loss(month, get_month_end(month))

    async def _fetch_month_bank_summary(self, month: date) -> Any:
        return await self.provider.client.fetch_bank_summary(month, get_month_end(month))

    async def last_month_expenses(self, window: TimeWindow) -> Optional[float]:
        """
        Expense figure for the calendar month before the window end (or
        before the current month when the window reaches into the future).

        Returns None when the fetch fails.
        """
        reference = min(window.end, self.today)
        month = shift_month(reference, -1)

        try:
            payload = await self._fetch_profit_and_loss(month, get_month_end(month))
        except Exception as e:
            logger.warning("Could not fetch last month's expenses for %s: %s", month.strftime("%Y-%m"), e)
            return None

        parser = self.provider.parser
        return parser.extract_operating_expenses(parser.parse(payload))

    async def collect_trend(self, window: TimeWindow) -> list[TrendPoint]:
        """One trend point per month of the window, zero-filled on failure."""
        parser = self.provider.parser
        aggregator = self._aggregator(self.settings.trend_request_interval_seconds)

        return await aggregator.collect(
            window.months(),
            self._fetch_month_profit_and_loss,
            partial(trend_point_from_report, parser),
            partial(zero_trend_point, provider=self.provider.provider),
        )

    async def collect_cash_flow(self, months: list[date]) -> list[CashFlowPoint]:
        """Cash in / out per month from Xero bank summaries."""
        parser = self.provider.parser
        aggregator = self._aggregator(self.settings.cash_flow_request_interval_seconds)

        def to_point(month: date, payload: Any) -> CashFlowPoint:
            return cash_flow_point(month, parser.extract_cash_movements(parser.parse(payload)))

        return await aggregator.collect(months, self._fetch_month_bank_summary, to_point, zero_cash_flow_point)

    async def previous_period_breakdown(self, timeframe: Timeframe, window: TimeWindow) -> list[ExpenseLineItem]:
        """Expense breakdown of the comparison period; [] on any failure."""
        previous = window.previous(timeframe)
        try:
            payload = await self._fetch_profit_and_loss(previous.start, previous.end)
            parser = self.provider.parser
            return parser.extract_expense_breakdown(parser.parse(payload))
        except Exception as e:
            logger.warning(
                "Could not fetch previous period %s..%s: %s",
                previous.start.isoformat(),
                previous.end.isoformat(),
                e,
            )
            return []

    # =========================================================================
    # Operations
    # =========================================================================

    async def get_stats(
        self,
        timeframe: Timeframe = Timeframe.YEAR,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> DashboardStatsResponse:
        """
        Full dashboard: KPIs, expense breakdown, monthly trend and the
        previous-period breakdown.

        Raises:
            InvalidTimeWindowError: If the query does not describe a usable window
        """
        window = resolve_window(timeframe, from_date, to_date, today=self.today)
        ensure_max_months(window, self.settings.max_trend_months)

        if self.provider is None:
            return empty_dashboard(timeframe, window, error=self.unavailable_message)

        # P&L and Balance Sheet for the same window may run concurrently.
        # Both legs are awaited before any failure is acted on.
        results = await asyncio.gather(
            self._fetch_profit_and_loss(window.start, window.end),
            self._fetch_balance_sheet(window.end),
            return_exceptions=True,
        )
        failure = next((result for result in results if isinstance(result, BaseException)), None)
        if isinstance(failure, Exception):
            return empty_dashboard(
                timeframe, window, error=user_facing_error(failure), provider=self.provider.provider
            )
        if failure is not None:
            raise failure
        pnl_payload, balance_sheet_payload = results

        parser = self.provider.parser
        profit_and_loss = parser.parse(pnl_payload)
        balance_sheet = parser.parse(balance_sheet_payload)

        last_month_expenses = await self.last_month_expenses(window)
        kpis = KpiExtractor(parser).extract(profit_and_loss, balance_sheet, last_month_expenses)
        expense_breakdown = parser.extract_expense_breakdown(profit_and_loss)

        trend = await self.collect_trend(window)
        previous = await self.previous_period_breakdown(timeframe, window)

        logger.info(
            "Dashboard stats for %s %s..%s: %d trend month(s)",
            self.provider.provider.value,
            window.start.isoformat(),
            window.end.isoformat(),
            len(trend),
        )
        return assemble_dashboard(kpis, expense_breakdown, trend, timeframe, window, previous_period=previous)

    async def get_monthly_trend(
        self,
        year: Optional[int] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> MonthlyTrendResponse:
        """
        Monthly trend for explicit dates, else for a calendar year.

        Raises:
            InvalidTimeWindowError: If the query does not describe a usable window
        """
        window = resolve_trend_window(year, from_date, to_date, today=self.today)
        ensure_max_months(window, self.settings.max_trend_months)

        if self.provider is None:
            zeros = [zero_trend_point(month) for month in window.months()]
            return assemble_trend(zeros, window, year=year, error=self.unavailable_message)

        trend = await self.collect_trend(window)
        return assemble_trend(trend, window, year=year)

    async def get_cash_flow(self) -> CashFlowResponse:
        """Cash in / out for the last cash_flow_months months, ending this month."""
        if self.provider is None:
            return assemble_cash_flow([], error=self.unavailable_message)
        if self.provider.provider != Provider.XERO:
            return assemble_cash_flow([], error=CASH_FLOW_UNSUPPORTED_MESSAGE)

        count = self.settings.cash_flow_months
        months = [shift_month(self.today, offset) for offset in range(-(count - 1), 1)]
        return assemble_cash_flow(await self.collect_cash_flow(months))

    async def get_previous_period(
        self,
        timeframe: Timeframe = Timeframe.YEAR,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> PreviousPeriodResponse:
        """
        Expense breakdown of the period before the resolved window.

        Raises:
            InvalidTimeWindowError: If the query does not describe a usable window
        """
        window = resolve_window(timeframe, from_date, to_date, today=self.today)
        previous = window.previous(timeframe)

        if self.provider is None:
            return assemble_previous_period([], timeframe, previous, error=self.unavailable_message)

        breakdown = await self.previous_period_breakdown(timeframe, window)
        return assemble_previous_period(breakdown, timeframe, previous)

    async def get_expense_detail(
        self,
        expense_name: Optional[str],
        from_date: Optional[date],
        to_date: Optional[date],
    ) -> ExpenseDetailResponse:
        """
        Transaction lines behind one expense category (QBO only).

        Raises:
            InvalidTimeWindowError: If either date is missing or they are reversed
            UnsupportedOperationError: If no name is given or the provider is not QBO
        """
        if not expense_name or not expense_name.strip():
            raise UnsupportedOperationError("expenseName is required")
        if from_date is None or to_date is None:
            raise InvalidTimeWindowError("fromDate and toDate are required")
        if from_date > to_date:
            raise InvalidTimeWindowError("fromDate must not be after toDate")

        if self.provider is None:
            return assemble_expense_detail(expense_name, [], error=self.unavailable_message)
        if self.provider.provider != Provider.QBO:
            raise UnsupportedOperationError("Expense detail is only available for QuickBooks connections")

        try:
            payload = await self.retry_handler.execute_with_retry(
                self.provider.client.fetch_profit_and_loss_detail, from_date, to_date
            )
        except Exception as e:
            return assemble_expense_detail(expense_name, [], error=user_facing_error(e))

        lines = self.provider.parser.extract_expense_details(payload, expense_name)
        return assemble_expense_detail(expense_name, lines)
