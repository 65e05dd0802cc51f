"""Tests for month-by-month trend aggregation."""

import logging
from datetime import date
from unittest.mock import AsyncMock

import pytest

from finboard.dashboard.trend_aggregator import (
    Failed,
    RateLimited,
    Success,
    TrendAggregator,
    cash_flow_point,
    trend_point_from_report,
    zero_cash_flow_point,
    zero_trend_point,
)
from finboard.integrations.qbo.parsers import QboReportParser
from finboard.integrations.reports.base import Provider
from finboard.integrations.reports.exceptions import RateLimitedError, ReportFetchError
from finboard.integrations.reports.rate_limiter import RequestPacer
from finboard.integrations.reports.retry_handler import RateLimitRetryPolicy
from finboard.integrations.xero.parsers import XeroReportParser

MONTHS = [date(2024, month, 1) for month in range(1, 7)]


def _to_point(month, value):
    return {"month": month.month, "value": value}


def _zero_point(month):
    return {"month": month.month, "value": 0}


@pytest.fixture
def aggregator(fake_clock):
    return TrendAggregator(
        pacer=RequestPacer(min_interval=0.0, clock=fake_clock),
        retry_policy=RateLimitRetryPolicy(max_retries=1, backoff_base=1.0, max_wait=30.0),
        clock=fake_clock,
    )


class TestFetchMonth:
    """Tests for single-month outcomes."""

    @pytest.mark.asyncio
    async def test_success(self, aggregator):
        fetch = AsyncMock(return_value={"ok": True})
        outcome = await aggregator.fetch_month(fetch, MONTHS[0])
        assert outcome == Success({"ok": True})

    @pytest.mark.asyncio
    async def test_retry_after_honoured_then_success(self, aggregator, fake_clock):
        fetch = AsyncMock(side_effect=[RateLimitedError("429", retry_after=2), "payload"])

        outcome = await aggregator.fetch_month(fetch, MONTHS[0])

        assert outcome == Success("payload")
        assert fetch.await_count == 2
        assert 2.0 in fake_clock.sleeps

    @pytest.mark.asyncio
    async def test_second_rate_limit_gives_up(self, aggregator):
        fetch = AsyncMock(side_effect=[RateLimitedError("429"), RateLimitedError("429"), "never"])

        outcome = await aggregator.fetch_month(fetch, MONTHS[0])

        assert outcome == Failed("rate limited")
        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_final_outcome_logged(self, aggregator, caplog):
        fetch = AsyncMock(side_effect=[RateLimitedError("429"), RateLimitedError("429")])

        with caplog.at_level(logging.DEBUG, logger="finboard.dashboard.trend_aggregator"):
            await aggregator.fetch_month(fetch, MONTHS[0])

        assert "finished as Failed after 1 retry(ies)" in caplog.text

    @pytest.mark.asyncio
    async def test_other_errors_fail_without_retry(self, aggregator, fake_clock):
        fetch = AsyncMock(side_effect=ReportFetchError("boom", status_code=500))

        outcome = await aggregator.fetch_month(fetch, MONTHS[0])

        assert isinstance(outcome, Failed)
        assert fetch.await_count == 1
        assert fake_clock.sleeps == []

    def test_outcome_types(self):
        assert RateLimited(3.0).retry_after == 3.0


class TestCollect:
    """Tests for whole-series collection."""

    @pytest.mark.asyncio
    async def test_one_point_per_month_with_failure_zero_filled(self, aggregator):
        async def fetch(month):
            if month.month == 3:
                raise ReportFetchError("boom")
            return month.month * 10

        points = await aggregator.collect(MONTHS, fetch, _to_point, _zero_point)

        assert len(points) == 6
        assert [p["month"] for p in points] == [1, 2, 3, 4, 5, 6]
        assert points[2] == {"month": 3, "value": 0}
        assert points[3] == {"month": 4, "value": 40}

    @pytest.mark.asyncio
    async def test_months_fetched_in_order(self, aggregator):
        seen = []

        async def fetch(month):
            seen.append(month)
            return 1

        await aggregator.collect(MONTHS, fetch, _to_point, _zero_point)
        assert seen == MONTHS

    @pytest.mark.asyncio
    async def test_unreadable_payload_zero_filled(self, aggregator):
        def to_point(month, value):
            raise KeyError("bad")

        points = await aggregator.collect(MONTHS[:2], AsyncMock(return_value={}), to_point, _zero_point)
        assert points == [{"month": 1, "value": 0}, {"month": 2, "value": 0}]

    @pytest.mark.asyncio
    async def test_pacing_between_months(self, fake_clock):
        aggregator = TrendAggregator(pacer=RequestPacer(min_interval=1.2, clock=fake_clock))

        await aggregator.collect(MONTHS[:3], AsyncMock(return_value=1), _to_point, _zero_point)

        assert fake_clock.sleeps == [pytest.approx(1.2), pytest.approx(1.2)]

    @pytest.mark.asyncio
    async def test_deadline_pads_remaining_months(self, fake_clock):
        aggregator = TrendAggregator(clock=fake_clock, deadline_seconds=5.0)

        async def slow_fetch(month):
            fake_clock.now += 3.0
            return month.month

        points = await aggregator.collect(MONTHS[:4], slow_fetch, _to_point, _zero_point)

        assert [p["value"] for p in points] == [1, 2, 0, 0]

    @pytest.mark.asyncio
    async def test_empty_months(self, aggregator):
        assert await aggregator.collect([], AsyncMock(), _to_point, _zero_point) == []


class TestPointBuilders:
    """Tests for trend and cash-flow point construction."""

    def test_zero_trend_point(self):
        assert zero_trend_point(date(2024, 2, 1)) == {
            "month": "FEB",
            "revenue": 0.0,
            "expenses": 0.0,
            "cost_of_goods_sold": 0.0,
            "expense_breakdown": [],
        }
        assert zero_trend_point(date(2024, 2, 1), Provider.QBO)["cost_of_goods_sold_breakdown"] == []

    def test_xero_trend_point(self, xero_pnl_payload):
        point = trend_point_from_report(XeroReportParser(), date(2024, 1, 1), xero_pnl_payload)

        assert point["month"] == "JAN"
        assert point["revenue"] == 1000.0
        assert point["expenses"] == 600.0
        assert point["cost_of_goods_sold"] == 100.0
        assert len(point["expense_breakdown"]) == 4
        assert "cost_of_goods_sold_breakdown" not in point

    def test_qbo_trend_point(self, qbo_pnl_payload):
        point = trend_point_from_report(QboReportParser(), date(2024, 3, 1), qbo_pnl_payload)

        assert point["month"] == "MAR"
        assert point["expenses"] == 400.0
        assert [item["name"] for item in point["cost_of_goods_sold_breakdown"]] == ["Materials"]

    def test_cash_flow_points(self):
        assert cash_flow_point(date(2024, 1, 1), {"cash_in": 2500.4, "cash_out": 1499.6}) == {
            "month": "JAN",
            "cash_in": 2500.0,
            "cash_out": 1500.0,
        }
        assert zero_cash_flow_point(date(2024, 12, 1)) == {"month": "DEC", "cash_in": 0.0, "cash_out": 0.0}
