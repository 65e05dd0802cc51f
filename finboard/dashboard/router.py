"""
Dashboard Router
API endpoints for dashboard KPIs, trends and drill-downs.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Query, Request

from finboard.core.errors import ErrorCode, create_error_response
from finboard.core.rate_limit import DASHBOARD_RATE_LIMIT, limiter
from finboard.dashboard.dependencies import DashboardServiceDep
from finboard.dashboard.schemas import (
    CashFlowResponse,
    DashboardStatsResponse,
    ExpenseDetailResponse,
    MonthlyTrendResponse,
    PreviousPeriodResponse,
)
from finboard.dashboard.service import UnsupportedOperationError
from finboard.dashboard.timeframes import InvalidTimeWindowError, Timeframe, parse_iso_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


def _parse_timeframe(value: str) -> Timeframe:
    try:
        return Timeframe(value.strip().upper())
    except ValueError:
        raise create_error_response(
            ErrorCode.VALIDATION_ERROR,
            message="timeframe must be one of YEAR, MONTH, CUSTOM",
        )


def _parse_dates(from_date: Optional[str], to_date: Optional[str]) -> tuple[Optional[date], Optional[date]]:
    try:
        return parse_iso_date(from_date, "fromDate"), parse_iso_date(to_date, "toDate")
    except InvalidTimeWindowError as e:
        raise create_error_response(ErrorCode.VALIDATION_ERROR, message=str(e))


def _validation_error(e: Exception):
    return create_error_response(ErrorCode.VALIDATION_ERROR, message=str(e))


@router.get(
    "/stats",
    response_model=DashboardStatsResponse,
    summary="Get dashboard statistics",
    description="KPIs, expense breakdown, monthly trend and previous-period breakdown for a timeframe.",
)
@limiter.limit(DASHBOARD_RATE_LIMIT)
async def get_stats(
    request: Request,
    service: DashboardServiceDep,
    timeframe: str = Query("YEAR", description="YEAR, MONTH or CUSTOM"),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
) -> DashboardStatsResponse:
    """
    Full dashboard payload.

    Provider problems come back as 200 with zero values and an error
    string; only bad query parameters return 400.
    """
    selected = _parse_timeframe(timeframe)
    start, end = _parse_dates(from_date, to_date)

    try:
        return await service.get_stats(selected, start, end)
    except (InvalidTimeWindowError, UnsupportedOperationError) as e:
        raise _validation_error(e)


@router.get(
    "/monthly",
    response_model=MonthlyTrendResponse,
    summary="Get monthly trend",
    description="Revenue and expenses per month for explicit dates or a calendar year.",
)
@limiter.limit(DASHBOARD_RATE_LIMIT)
async def get_monthly(
    request: Request,
    service: DashboardServiceDep,
    year: Optional[int] = Query(None, ge=1900, le=9999),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
) -> MonthlyTrendResponse:
    start, end = _parse_dates(from_date, to_date)

    try:
        return await service.get_monthly_trend(year, start, end)
    except (InvalidTimeWindowError, UnsupportedOperationError) as e:
        raise _validation_error(e)


@router.get(
    "/cashflow",
    response_model=CashFlowResponse,
    summary="Get cash flow",
    description="Cash in and cash out for recent months (Xero only).",
)
@limiter.limit(DASHBOARD_RATE_LIMIT)
async def get_cash_flow(
    request: Request,
    service: DashboardServiceDep,
) -> CashFlowResponse:
    return await service.get_cash_flow()


@router.get(
    "/previous",
    response_model=PreviousPeriodResponse,
    summary="Get previous-period breakdown",
    description="Expense breakdown of the previous year (YEAR) or previous month.",
)
@limiter.limit(DASHBOARD_RATE_LIMIT)
async def get_previous(
    request: Request,
    service: DashboardServiceDep,
    timeframe: str = Query("YEAR", description="YEAR, MONTH or CUSTOM"),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
) -> PreviousPeriodResponse:
    selected = _parse_timeframe(timeframe)
    start, end = _parse_dates(from_date, to_date)

    try:
        return await service.get_previous_period(selected, start, end)
    except (InvalidTimeWindowError, UnsupportedOperationError) as e:
        raise _validation_error(e)


@router.get(
    "/expense-detail",
    response_model=ExpenseDetailResponse,
    summary="Get expense detail",
    description="Transactions behind one expense category (QuickBooks only).",
)
@limiter.limit(DASHBOARD_RATE_LIMIT)
async def get_expense_detail(
    request: Request,
    service: DashboardServiceDep,
    expense_name: Optional[str] = Query(None, alias="expenseName"),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
) -> ExpenseDetailResponse:
    start, end = _parse_dates(from_date, to_date)

    try:
        return await service.get_expense_detail(expense_name, start, end)
    except (InvalidTimeWindowError, UnsupportedOperationError) as e:
        raise _validation_error(e)
