"""
Result Assembler
Shapes extracted KPIs, breakdowns and series into API response models.

Pure functions: no I/O, no logging.
"""

from typing import Optional, Sequence

from finboard.dashboard.kpi_extractor import empty_kpis
from finboard.dashboard.schemas import (
    CashFlowPointResponse,
    CashFlowResponse,
    DashboardStatsResponse,
    ExpenseDetailLineResponse,
    ExpenseDetailResponse,
    ExpenseLineItemResponse,
    KpisResponse,
    MonthlyTrendResponse,
    PreviousPeriodResponse,
    TimeframeResponse,
    TrendPointResponse,
)
from finboard.dashboard.timeframes import Timeframe, TimeWindow
from finboard.dashboard.trend_aggregator import zero_trend_point
from finboard.integrations.reports.base import Provider
from finboard.integrations.reports.extracted_types import (
    CashFlowPoint,
    ExpenseDetailLine,
    ExpenseLineItem,
    KpiSet,
    TrendPoint,
)


def assemble_timeframe(timeframe: Timeframe, window: Optional[TimeWindow]) -> TimeframeResponse:
    if window is None:
        return TimeframeResponse(**{"from": "", "to": "", "type": timeframe.value})
    return TimeframeResponse(**{
        "from": window.start.isoformat(),
        "to": window.end.isoformat(),
        "type": timeframe.value,
    })


def assemble_breakdown(items: Sequence[ExpenseLineItem]) -> list[ExpenseLineItemResponse]:
    return [ExpenseLineItemResponse(**item) for item in items]


def assemble_trend_point(point: TrendPoint) -> TrendPointResponse:
    return TrendPointResponse(
        month=point["month"],
        revenue=point.get("revenue", 0.0),
        expenses=point.get("expenses", 0.0),
        cost_of_goods_sold=point.get("cost_of_goods_sold"),
        expense_breakdown=(
            assemble_breakdown(point["expense_breakdown"]) if "expense_breakdown" in point else None
        ),
        cost_of_goods_sold_breakdown=(
            assemble_breakdown(point["cost_of_goods_sold_breakdown"])
            if "cost_of_goods_sold_breakdown" in point else None
        ),
    )


def assemble_dashboard(
    kpis: KpiSet,
    expense_breakdown: Sequence[ExpenseLineItem],
    trend: Sequence[TrendPoint],
    timeframe: Timeframe,
    window: Optional[TimeWindow],
    previous_period: Sequence[ExpenseLineItem] = (),
    error: Optional[str] = None,
) -> DashboardStatsResponse:
    """Full dashboard response."""
    return DashboardStatsResponse(
        kpis=KpisResponse(**kpis),
        expense_breakdown=assemble_breakdown(expense_breakdown),
        trend_data=[assemble_trend_point(point) for point in trend],
        previous_period_data=assemble_breakdown(previous_period),
        timeframe=assemble_timeframe(timeframe, window),
        error=error,
    )


def empty_dashboard(
    timeframe: Timeframe,
    window: Optional[TimeWindow] = None,
    error: Optional[str] = None,
    provider: Optional[Provider] = None,
) -> DashboardStatsResponse:
    """Structurally complete zero-valued dashboard, one zero trend point per window month."""
    trend = [zero_trend_point(month, provider) for month in window.months()] if window else []
    return assemble_dashboard(empty_kpis(), [], trend, timeframe, window, error=error)


def assemble_trend(
    trend: Sequence[TrendPoint],
    window: Optional[TimeWindow] = None,
    year: Optional[int] = None,
    error: Optional[str] = None,
) -> MonthlyTrendResponse:
    return MonthlyTrendResponse(
        trend_data=[assemble_trend_point(point) for point in trend],
        year=year,
        from_date=window.start.isoformat() if window else None,
        to_date=window.end.isoformat() if window else None,
        error=error,
    )


def assemble_cash_flow(points: Sequence[CashFlowPoint], error: Optional[str] = None) -> CashFlowResponse:
    return CashFlowResponse(
        cash_flow_data=[CashFlowPointResponse(**point) for point in points],
        error=error,
    )


def assemble_previous_period(
    breakdown: Sequence[ExpenseLineItem],
    timeframe: Timeframe,
    window: Optional[TimeWindow],
    error: Optional[str] = None,
) -> PreviousPeriodResponse:
    return PreviousPeriodResponse(
        previous_period_data=assemble_breakdown(breakdown),
        timeframe=assemble_timeframe(timeframe, window),
        error=error,
    )


def assemble_expense_detail(
    expense_name: str,
    lines: Sequence[ExpenseDetailLine],
    error: Optional[str] = None,
) -> ExpenseDetailResponse:
    details = [
        ExpenseDetailLineResponse(**{
            "date": line["date"],
            "transaction_type": line["transaction_type"],
            "doc_number": line["doc_number"],
            "name": line["name"],
            "class": line["class_name"],
            "memo": line["memo"],
            "split": line["split"],
            "amount": line["amount"],
            "balance": line["balance"],
        })
        for line in lines
    ]
    return ExpenseDetailResponse(
        expense_name=expense_name,
        details=details,
        total=sum(line.amount for line in details),
        error=error,
    )
