"""
Report Parser Interface
Shared extraction contract for the Xero and QuickBooks parsers.

A parser is selected once per request. parse() turns the provider payload
into a tagged ParsedReport; every other method only reads that tree.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

from finboard.integrations.reports.categories import ExpenseCategorizer
from finboard.integrations.reports.extracted_types import ExpenseLineItem, NormalizedReport
from finboard.integrations.reports.tree import (
    DEFAULT_MAX_DEPTH,
    NodeKind,
    ReportNode,
    find_all,
    label_contains,
)
from finboard.integrations.reports.utils import parse_currency_value

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    """Supported accounting providers."""
    XERO = "XERO"
    QBO = "QBO"


@dataclass
class ParsedReport:
    """A provider report parsed into a ReportNode tree."""
    provider: Provider
    roots: list[ReportNode] = field(default_factory=list)
    name: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.roots


def build_breakdown(
    lines: Iterable[tuple[str, float]],
    categorizer: Optional[ExpenseCategorizer] = None,
) -> list[ExpenseLineItem]:
    """
    Rank (name, value) pairs by value and attach percentages of their total.

    Values are taken as absolute. Zero lines are dropped. Percentages of a
    non-empty result sum to 100.
    """
    items = [(name, abs(value)) for name, value in lines if value]
    total = sum(value for _, value in items)

    breakdown: list[ExpenseLineItem] = [
        {
            "name": name,
            "value": value,
            "percentage": (value / total) * 100 if total > 0 else 0.0,
            "category": categorizer.categorize(name) if categorizer else None,
        }
        for name, value in items
    ]
    breakdown.sort(key=lambda item: item["value"], reverse=True)
    return breakdown


class ReportParser(ABC):
    """
    Provider-specific reader over a ParsedReport.

    Subclasses declare their vocabulary as class attributes and implement
    the section lookups that differ between report grammars.
    """

    provider: Provider
    expenses_include_cogs: bool = False

    revenue_titles: Sequence[str] = ()
    net_profit_titles: Sequence[str] = ()
    cash_titles: Sequence[str] = ()
    cost_of_goods_sold_titles: Sequence[str] = ()

    # Kinds that carry a name/value pair worth matching in point lookups
    value_kinds: frozenset = frozenset({NodeKind.ROW, NodeKind.DATA, NodeKind.SUMMARY})

    def __init__(
        self,
        categorizer: Optional[ExpenseCategorizer] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.categorizer = categorizer or ExpenseCategorizer()
        self.max_depth = max_depth

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @abstractmethod
    def parse(self, payload: Any) -> ParsedReport:
        """Build the report tree from a raw provider payload."""

    # ------------------------------------------------------------------
    # Point lookups
    # ------------------------------------------------------------------

    def _title_predicate(self, titles: Sequence[str]):
        return label_contains(*titles, kinds=self.value_kinds)

    def find_account_value(
        self,
        report: Optional[ParsedReport],
        candidate_titles: Sequence[str],
    ) -> Optional[float]:
        """
        Signed value of the first row whose label matches a candidate.

        Rows whose value cell is not numeric are skipped. None when no row
        matches.
        """
        if report is None or report.is_empty:
            return None

        for node in find_all(report.roots, self._title_predicate(candidate_titles), self.max_depth):
            parsed = parse_currency_value(node.cell_value(1))
            if parsed is not None:
                return float(parsed)
        return None

    def extract_account_value(
        self,
        report: Optional[ParsedReport],
        candidate_titles: Sequence[str],
    ) -> float:
        """Like find_account_value, but 0.0 when nothing matches."""
        value = self.find_account_value(report, candidate_titles)
        return value if value is not None else 0.0

    def extract_revenue(self, report: Optional[ParsedReport]) -> float:
        return abs(self.extract_account_value(report, self.revenue_titles))

    def extract_cost_of_goods_sold(self, report: Optional[ParsedReport]) -> float:
        return abs(self.extract_account_value(report, self.cost_of_goods_sold_titles))

    def extract_net_profit(self, report: Optional[ParsedReport]) -> Optional[float]:
        """Signed net profit as reported, or None when the report has no profit row."""
        return self.find_account_value(report, self.net_profit_titles)

    def extract_cash_balance(self, balance_sheet: Optional[ParsedReport]) -> float:
        return abs(self.extract_account_value(balance_sheet, self.cash_titles))

    # ------------------------------------------------------------------
    # Provider-specific sections
    # ------------------------------------------------------------------

    @abstractmethod
    def extract_operating_expenses(self, report: Optional[ParsedReport]) -> float:
        """Expense figure reported to KPIs."""

    @abstractmethod
    def extract_expense_breakdown(self, report: Optional[ParsedReport]) -> list[ExpenseLineItem]:
        """Ranked expense lines with percentages."""

    @abstractmethod
    def extract_cogs_breakdown(self, report: Optional[ParsedReport]) -> list[ExpenseLineItem]:
        """Ranked cost-of-goods-sold lines with percentages."""

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def summarize(
        self,
        profit_and_loss: Optional[ParsedReport],
        balance_sheet: Optional[ParsedReport] = None,
    ) -> NormalizedReport:
        """Collapse a P&L (and optional Balance Sheet) into a NormalizedReport."""
        return {
            "revenue": self.extract_revenue(profit_and_loss),
            "operating_expenses": self.extract_operating_expenses(profit_and_loss),
            "cost_of_goods_sold": self.extract_cost_of_goods_sold(profit_and_loss),
            "net_profit": self.extract_net_profit(profit_and_loss),
            "cash_balance": self.extract_cash_balance(balance_sheet),
            "expenses_include_cogs": self.expenses_include_cogs,
        }

    def _line_items(self, nodes: Iterable[ReportNode]) -> list[tuple[str, float]]:
        """(name, value) pairs for category rows, skipping subtotals and non-numeric values."""
        lines: list[tuple[str, float]] = []
        seen: set[int] = set()

        for node in nodes:
            if id(node) in seen:
                continue
            seen.add(id(node))

            name = node.label.strip()
            if not name or "total" in name.lower():
                continue

            parsed = parse_currency_value(node.cell_value(1))
            if parsed is None:
                continue
            lines.append((name, float(parsed)))

        return lines
