"""
Dashboard Schemas
Pydantic models for dashboard API responses.

Fields are snake_case in Python and serialized camelCase for the
presentation layer.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExpenseLineItemResponse(CamelModel):
    """One ranked expense line."""

    name: str = Field(..., description="Account or category name")
    value: float = Field(..., ge=0, description="Absolute amount")
    percentage: float = Field(..., description="Share of the breakdown total, 0-100")
    category: Optional[str] = Field(None, description="Keyword category, if any matched")


class KpisResponse(CamelModel):
    """Unified KPI summary."""

    revenue: float = 0.0
    expenses: float = 0.0
    cost_of_goods_sold: Optional[float] = Field(None, description="Provider COGS total")
    net_profit: float = 0.0
    net_margin: float = Field(0.0, description="Net profit / revenue x 100; 0 without revenue")
    cash_balance: float = 0.0
    cash_runway: Optional[float] = Field(None, description="Months of cash at last month's spend")


class TrendPointResponse(CamelModel):
    """One month of the trend series."""

    month: str = Field(..., description="Three-letter month label, e.g. JAN")
    revenue: float = 0.0
    expenses: float = 0.0
    cost_of_goods_sold: Optional[float] = None
    expense_breakdown: Optional[list[ExpenseLineItemResponse]] = None
    cost_of_goods_sold_breakdown: Optional[list[ExpenseLineItemResponse]] = None


class TimeframeResponse(CamelModel):
    """The resolved reporting window."""

    from_: str = Field("", alias="from", description="Window start (ISO date)")
    to: str = Field("", description="Window end (ISO date)")
    type: str = Field(..., description="YEAR, MONTH or CUSTOM")


class DashboardStatsResponse(CamelModel):
    """Full dashboard payload."""

    kpis: KpisResponse
    expense_breakdown: list[ExpenseLineItemResponse] = Field(default_factory=list)
    trend_data: list[TrendPointResponse] = Field(default_factory=list)
    previous_period_data: list[ExpenseLineItemResponse] = Field(default_factory=list)
    timeframe: TimeframeResponse
    error: Optional[str] = None


class MonthlyTrendResponse(CamelModel):
    """Trend series only."""

    trend_data: list[TrendPointResponse] = Field(default_factory=list)
    year: Optional[int] = None
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    error: Optional[str] = None


class CashFlowPointResponse(CamelModel):
    """One month of cash movement."""

    month: str
    cash_in: float = 0.0
    cash_out: float = 0.0


class CashFlowResponse(CamelModel):
    """Cash in / out series for recent months."""

    cash_flow_data: list[CashFlowPointResponse] = Field(default_factory=list)
    error: Optional[str] = None


class PreviousPeriodResponse(CamelModel):
    """Expense breakdown of the comparison period."""

    previous_period_data: list[ExpenseLineItemResponse] = Field(default_factory=list)
    timeframe: TimeframeResponse
    error: Optional[str] = None


class ExpenseDetailLineResponse(CamelModel):
    """One transaction behind an expense category."""

    date: str = ""
    transaction_type: str = ""
    doc_number: str = ""
    name: str = ""
    class_: str = Field("", alias="class")
    memo: str = ""
    split: str = ""
    amount: float = 0.0
    balance: float = 0.0


class ExpenseDetailResponse(CamelModel):
    """Transactions for one expense category."""

    expense_name: str
    details: list[ExpenseDetailLineResponse] = Field(default_factory=list)
    total: float = 0.0
    error: Optional[str] = None
