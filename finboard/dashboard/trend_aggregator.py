"""
Trend Aggregator
Month-by-month report fetching with pacing, single retry on rate limiting,
and zero-fill on failure.

Months are fetched strictly one at a time, in chronological order. Every
requested month yields exactly one point, whatever happened to its fetch.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from finboard.integrations.reports.base import Provider, ReportParser
from finboard.integrations.reports.exceptions import RateLimitedError
from finboard.integrations.reports.extracted_types import CashFlowPoint, CashMovement, TrendPoint
from finboard.integrations.reports.rate_limiter import Clock, RequestPacer, SystemClock
from finboard.integrations.reports.retry_handler import RateLimitRetryPolicy
from finboard.integrations.reports.utils import month_label

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P")


# =============================================================================
# Fetch outcomes
# =============================================================================

@dataclass
class Success(Generic[T]):
    value: T


@dataclass
class RateLimited:
    retry_after: Optional[float]


@dataclass
class Failed:
    reason: str


FetchOutcome = Union[Success, RateLimited, Failed]


# =============================================================================
# Aggregator
# =============================================================================

class TrendAggregator:
    """
    Drives one fetch per month and turns each outcome into a point.

    Usage:
        aggregator = TrendAggregator(pacer=RequestPacer(min_interval=0.125))
        points = await aggregator.collect(months, fetch_month, to_point, zero_point)
    """

    def __init__(
        self,
        pacer: Optional[RequestPacer] = None,
        retry_policy: Optional[RateLimitRetryPolicy] = None,
        clock: Optional[Clock] = None,
        deadline_seconds: Optional[float] = None,
    ):
        """
        Initialize aggregator.

        Args:
            pacer: Spacing between successive month fetches
            retry_policy: Wait and retry budget after a rate limit
            clock: Time source for retry waits and the deadline
            deadline_seconds: Months not started within this many seconds
                are zero-filled without fetching
        """
        self.clock = clock or (pacer.clock if pacer else SystemClock())
        self.pacer = pacer or RequestPacer(clock=self.clock)
        self.retry_policy = retry_policy or RateLimitRetryPolicy()
        self.deadline_seconds = deadline_seconds

    async def _attempt(self, fetch: Callable[[date], Awaitable[T]], month: date) -> FetchOutcome:
        await self.pacer.acquire()
        try:
            return Success(await fetch(month))
        except RateLimitedError as e:
            return RateLimited(e.retry_after)
        except Exception as e:
            logger.warning("Fetch for %s failed: %s", month.strftime("%Y-%m"), e)
            return Failed(str(e) or type(e).__name__)

    async def fetch_month(self, fetch: Callable[[date], Awaitable[T]], month: date) -> FetchOutcome:
        """
        Fetch one month, retrying after a rate limit at most
        retry_policy.max_retries times.

        Returns:
            Success, or Failed when the fetch errored or retries ran out
        """
        retries = 0

        while True:
            outcome = await self._attempt(fetch, month)
            if not isinstance(outcome, RateLimited):
                break

            if retries >= self.retry_policy.max_retries:
                logger.warning(
                    "Rate limited for %s after %d retry(ies); zero-filling",
                    month.strftime("%Y-%m"),
                    retries,
                )
                outcome = Failed("rate limited")
                break

            wait_seconds = self.retry_policy.delay_for(outcome.retry_after, retries)
            logger.info(
                "Rate limited for %s. Retrying after %.1f seconds...",
                month.strftime("%Y-%m"),
                wait_seconds,
            )
            await self.clock.sleep(wait_seconds)
            retries += 1

        logger.debug(
            "Month %s finished as %s after %d retry(ies)",
            month.strftime("%Y-%m"),
            type(outcome).__name__,
            retries,
        )
        return outcome

    async def collect(
        self,
        months: list[date],
        fetch: Callable[[date], Awaitable[T]],
        to_point: Callable[[date, T], P],
        zero_point: Callable[[date], P],
    ) -> list[P]:
        """
        Fetch every month in order and build one point per month.

        Args:
            months: First day of each month, ascending
            fetch: Coroutine returning the raw payload for a month
            to_point: Builds a point from a fetched payload
            zero_point: Builds the zero-valued point for a failed month

        Returns:
            Points in the order of months, len(points) == len(months)
        """
        started = self.clock.monotonic()
        points: list[P] = []
        failures = 0

        for month in months:
            if self.deadline_seconds is not None and self.clock.monotonic() - started >= self.deadline_seconds:
                logger.warning("Trend deadline reached; zero-filling %s", month.strftime("%Y-%m"))
                points.append(zero_point(month))
                failures += 1
                continue

            outcome = await self.fetch_month(fetch, month)

            if isinstance(outcome, Success):
                try:
                    points.append(to_point(month, outcome.value))
                    continue
                except Exception as e:
                    logger.warning("Unreadable report for %s: %s", month.strftime("%Y-%m"), e)

            points.append(zero_point(month))
            failures += 1

        if failures:
            logger.info("Trend collected with %d of %d month(s) zero-filled", failures, len(months))
        return points


# =============================================================================
# Point builders
# =============================================================================

def zero_trend_point(month: date, provider: Optional[Provider] = None) -> TrendPoint:
    point: TrendPoint = {
        "month": month_label(month),
        "revenue": 0.0,
        "expenses": 0.0,
        "cost_of_goods_sold": 0.0,
        "expense_breakdown": [],
    }
    if provider == Provider.QBO:
        point["cost_of_goods_sold_breakdown"] = []
    return point


def trend_point_from_report(parser: ReportParser, month: date, payload: Any) -> TrendPoint:
    """Trend point for one month's P&L payload."""
    report = parser.parse(payload)
    point: TrendPoint = {
        "month": month_label(month),
        "revenue": parser.extract_revenue(report),
        "expenses": parser.extract_operating_expenses(report),
        "cost_of_goods_sold": parser.extract_cost_of_goods_sold(report),
        "expense_breakdown": parser.extract_expense_breakdown(report),
    }
    if parser.provider == Provider.QBO:
        point["cost_of_goods_sold_breakdown"] = parser.extract_cogs_breakdown(report)
    return point


def zero_cash_flow_point(month: date) -> CashFlowPoint:
    return {"month": month_label(month), "cash_in": 0.0, "cash_out": 0.0}


def cash_flow_point(month: date, movement: CashMovement) -> CashFlowPoint:
    """Cash-flow point with values rounded to whole units."""
    return {
        "month": month_label(month),
        "cash_in": float(round(movement["cash_in"])),
        "cash_out": float(round(movement["cash_out"])),
    }
