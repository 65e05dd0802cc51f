"""
KPI Extractor
Combines a Profit & Loss and a Balance Sheet into the dashboard KPI set.
"""

import logging
from typing import Optional

from finboard.integrations.reports.base import ParsedReport, ReportParser
from finboard.integrations.reports.extracted_types import KpiSet, NormalizedReport

logger = logging.getLogger(__name__)


def compute_net_margin(net_profit: float, revenue: float) -> float:
    """Net profit as a percentage of revenue; 0 when there is no revenue."""
    if revenue <= 0:
        return 0.0
    return (net_profit / revenue) * 100


def compute_cash_runway(cash_balance: float, last_month_expenses: Optional[float]) -> Optional[float]:
    """Months of cash at last month's spend; None without a positive spend."""
    if last_month_expenses is None or last_month_expenses <= 0:
        return None
    return abs(cash_balance) / last_month_expenses


def resolve_net_profit(summary: NormalizedReport) -> float:
    """
    Reported net profit, else revenue less expenses less COGS.

    COGS is not subtracted again when the provider's expense figure already
    contains it.
    """
    if summary["net_profit"] is not None:
        return summary["net_profit"]

    cogs = 0.0 if summary["expenses_include_cogs"] else summary["cost_of_goods_sold"]
    return summary["revenue"] - summary["operating_expenses"] - cogs


class KpiExtractor:
    """Builds a KpiSet with the linked provider's parser."""

    def __init__(self, parser: ReportParser):
        self.parser = parser

    def extract(
        self,
        profit_and_loss: Optional[ParsedReport],
        balance_sheet: Optional[ParsedReport] = None,
        last_month_expenses: Optional[float] = None,
    ) -> KpiSet:
        """
        Compute KPIs for one window.

        Args:
            profit_and_loss: Parsed P&L (None counts as all zeros)
            balance_sheet: Parsed Balance Sheet (None means cash 0)
            last_month_expenses: Expense figure of the prior calendar month,
                used for cash runway

        Returns:
            KpiSet with every numeric field set
        """
        summary = self.parser.summarize(profit_and_loss, balance_sheet)
        net_profit = resolve_net_profit(summary)

        kpis: KpiSet = {
            "revenue": summary["revenue"],
            "expenses": summary["operating_expenses"],
            "cost_of_goods_sold": summary["cost_of_goods_sold"],
            "net_profit": net_profit,
            "net_margin": compute_net_margin(net_profit, summary["revenue"]),
            "cash_balance": summary["cash_balance"],
            "cash_runway": compute_cash_runway(summary["cash_balance"], last_month_expenses),
        }
        logger.debug("Extracted KPIs: %s", kpis)
        return kpis


def empty_kpis() -> KpiSet:
    """All-zero KPI set used when no data could be fetched."""
    return {
        "revenue": 0.0,
        "expenses": 0.0,
        "cost_of_goods_sold": 0.0,
        "net_profit": 0.0,
        "net_margin": 0.0,
        "cash_balance": 0.0,
        "cash_runway": None,
    }
