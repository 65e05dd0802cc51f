"""
Extracted Data Types
====================

Single source of truth for all extracted financial data structures.
Both provider parsers return data conforming to these types.

Design Principles:
- Numeric values are float and default to 0.0 when the report lacks them
- Optional only where "unknown" must stay distinguishable from zero
- Clear, descriptive field names
"""

from typing import Optional, TypedDict


class NormalizedReport(TypedDict):
    """
    Provider-agnostic summary of one P&L (and optional Balance Sheet).

    operating_expenses is the provider's expense figure as reported to KPIs.
    For Xero that figure already includes cost of sales, flagged by
    expenses_include_cogs.
    """
    revenue: float
    operating_expenses: float
    cost_of_goods_sold: float
    net_profit: Optional[float]  # None when the report has no profit row
    cash_balance: float
    expenses_include_cogs: bool


class ExpenseLineItem(TypedDict):
    """One ranked line of an expense or COGS breakdown."""
    name: str
    value: float  # non-negative
    percentage: float  # 0-100
    category: Optional[str]


class KpiSet(TypedDict):
    """Unified KPI summary for one window."""
    revenue: float
    expenses: float
    cost_of_goods_sold: float
    net_profit: float
    net_margin: float
    cash_balance: float
    cash_runway: Optional[float]  # months; None when last month had no expenses


class TrendPoint(TypedDict, total=False):
    """One calendar month of the trend series."""
    month: str
    revenue: float
    expenses: float
    cost_of_goods_sold: float
    expense_breakdown: list[ExpenseLineItem]
    cost_of_goods_sold_breakdown: list[ExpenseLineItem]


class CashMovement(TypedDict):
    """Cash in / out totals from a bank summary."""
    cash_in: float
    cash_out: float


class CashFlowPoint(TypedDict):
    """One calendar month of the cash-movement series."""
    month: str
    cash_in: float
    cash_out: float


class ExpenseDetailLine(TypedDict):
    """One transaction line behind an expense category (QBO detail report)."""
    date: str
    transaction_type: str
    doc_number: str
    name: str
    class_name: str
    memo: str
    split: str
    amount: float
    balance: float
