"""
Xero Report Parsers
Extract KPI values and breakdowns from Xero report payloads.

Xero returns a list of reports, each with a flat-or-nested list of rows
tagged Header | Section | Row | SummaryRow. Sections carry a Title; rows
carry Cells where the first cell is the account name and the second the
value for the requested period.

Payloads arrive either as the raw API JSON (PascalCase: Reports, Rows,
RowType) or serialized from the SDK (snake_case: reports, rows, row_type).
Both are accepted.
"""

import logging
from typing import Any, Optional

from finboard.integrations.reports.base import (
    ParsedReport,
    Provider,
    ReportParser,
    build_breakdown,
)
from finboard.integrations.reports.extracted_types import CashMovement, ExpenseLineItem
from finboard.integrations.reports.tree import (
    Cell,
    NodeKind,
    ReportNode,
    coerce_list,
    coerce_rows,
    find,
    find_all,
    label_contains,
    label_equals,
    of_kind,
    pick,
)
from finboard.integrations.reports.utils import parse_amount

logger = logging.getLogger(__name__)

ROW_TYPES = {
    "header": NodeKind.HEADER,
    "section": NodeKind.SECTION,
    "row": NodeKind.ROW,
    "summaryrow": NodeKind.SUMMARY,
}


class XeroReportParser(ReportParser):
    """
    Parser for Xero Profit & Loss, Balance Sheet and Bank Summary reports.

    Expense total reported to KPIs is Total Operating Expenses plus Total
    Cost of Sales, so expenses_include_cogs is set.
    """

    provider = Provider.XERO
    expenses_include_cogs = True

    revenue_titles = ("Total Income", "Total Trading Income", "Total Revenue")
    net_profit_titles = ("Net Profit",)
    cash_titles = ("Total Bank", "Total Cash and Cash Equivalent")
    cost_of_goods_sold_titles = ("Total Cost of Sales",)

    operating_expenses_section = ("less operating expenses",)
    operating_expenses_total = ("total operating expenses",)
    cost_of_sales_section = ("cost of sales",)

    cash_in_titles = ("total receipts", "total cash in", "total deposits")
    cash_out_titles = ("total payments", "total cash out", "total withdrawals")

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def extract_account_id(cell: Any) -> Optional[str]:
        """Extract AccountID from cell attributes."""
        for attr in coerce_list(pick(cell, "Attributes")):
            if not isinstance(attr, dict):
                continue
            if pick(attr, "Id", default="") == "account":
                return pick(attr, "Value")
        return None

    def _report_objects(self, payload: Any) -> list[dict]:
        if isinstance(payload, list):
            return [report for report in payload if isinstance(report, dict)]
        if not isinstance(payload, dict):
            return []

        reports = pick(payload, "Reports")
        if reports is not None:
            return [report for report in coerce_list(reports) if isinstance(report, dict)]

        # A single report object
        if pick(payload, "Rows") is not None:
            return [payload]
        return []

    def _build_rows(self, raw_rows: Any, depth: int) -> list[ReportNode]:
        if depth > self.max_depth:
            logger.warning("Xero report nesting exceeds %d levels; truncating", self.max_depth)
            return []

        nodes = []
        for row in coerce_rows(raw_rows):
            row_type = str(pick(row, "RowType", default="Row"))
            kind = ROW_TYPES.get(row_type.replace("_", "").lower(), NodeKind.ROW)

            cells = [
                Cell(value=pick(cell, "Value"), key=self.extract_account_id(cell))
                for cell in coerce_list(pick(row, "Cells"))
                if isinstance(cell, dict)
            ]

            nodes.append(ReportNode(
                kind=kind,
                title=pick(row, "Title"),
                cells=cells,
                children=self._build_rows(pick(row, "Rows"), depth + 1),
            ))
        return nodes

    def parse(self, payload: Any) -> ParsedReport:
        roots: list[ReportNode] = []
        name = None

        for report in self._report_objects(payload):
            name = name or pick(report, "ReportName")
            roots.extend(self._build_rows(pick(report, "Rows"), depth=0))

        return ParsedReport(provider=self.provider, roots=roots, name=name)

    # ------------------------------------------------------------------
    # Profit & Loss
    # ------------------------------------------------------------------

    def _sections(self, report: Optional[ParsedReport], titles: tuple) -> list[ReportNode]:
        if report is None or report.is_empty:
            return []
        return find_all(report.roots, label_contains(*titles, kinds=[NodeKind.SECTION]), self.max_depth)

    def extract_operating_expenses(self, report: Optional[ParsedReport]) -> float:
        """
        Total Operating Expenses plus Total Cost of Sales.

        Falls back to cost of sales alone when the operating expenses
        section or its total row is missing.
        """
        cost_of_sales = self.extract_cost_of_goods_sold(report)

        total_predicate = label_contains(*self.operating_expenses_total, kinds=[NodeKind.SUMMARY])
        for section in self._sections(report, self.operating_expenses_section):
            total_row = find(section.children, total_predicate, self.max_depth)
            if total_row is None:
                continue
            total = parse_amount(total_row.cell_value(1))
            if total is not None:
                return total + cost_of_sales

        return cost_of_sales

    def extract_expense_breakdown(self, report: Optional[ParsedReport]) -> list[ExpenseLineItem]:
        """
        Operating expense lines, plus a single "Cost of Sales" line when
        the report has cost of sales.
        """
        if report is None or report.is_empty:
            return []

        lines: list[tuple[str, float]] = []
        cost_of_sales = self.extract_cost_of_goods_sold(report)
        if cost_of_sales > 0:
            lines.append(("Cost of Sales", cost_of_sales))

        for section in self._sections(report, self.operating_expenses_section):
            rows = find_all(section.children, of_kind(NodeKind.ROW), self.max_depth)
            lines.extend(self._line_items(rows))

        return build_breakdown(lines, self.categorizer)

    def extract_cogs_breakdown(self, report: Optional[ParsedReport]) -> list[ExpenseLineItem]:
        lines: list[tuple[str, float]] = []
        for section in self._sections(report, self.cost_of_sales_section):
            rows = find_all(section.children, of_kind(NodeKind.ROW), self.max_depth)
            lines.extend(self._line_items(rows))
        return build_breakdown(lines, self.categorizer)

    # ------------------------------------------------------------------
    # Bank Summary
    # ------------------------------------------------------------------

    def extract_cash_movements(self, bank_summary: Optional[ParsedReport]) -> CashMovement:
        """
        Cash in and cash out from a Bank Summary report.

        Uses labelled total rows when present, otherwise the Cash Received
        and Cash Spent columns of the summary Total row.
        """
        result: CashMovement = {"cash_in": 0.0, "cash_out": 0.0}
        if bank_summary is None or bank_summary.is_empty:
            return result

        found_label = False
        summaries = find_all(bank_summary.roots, of_kind(NodeKind.SUMMARY), self.max_depth)
        for node in summaries:
            label = node.label.lower()
            value = parse_amount(node.cell_value(1))
            if value is None:
                continue
            if any(title in label for title in self.cash_in_titles):
                result["cash_in"] = value
                found_label = True
            if any(title in label for title in self.cash_out_titles):
                result["cash_out"] = value
                found_label = True

        if found_label:
            return result

        header = find(bank_summary.roots, of_kind(NodeKind.HEADER), self.max_depth)
        total_row = find(bank_summary.roots, label_equals("Total", kinds=[NodeKind.SUMMARY]), self.max_depth)
        if header is None or total_row is None:
            return result

        columns = [str(cell.value or "").strip().lower() for cell in header.cells]
        for column_name, key in (("cash received", "cash_in"), ("cash spent", "cash_out")):
            if column_name in columns:
                value = parse_amount(total_row.cell_value(columns.index(column_name)))
                if value is not None:
                    result[key] = value

        return result
