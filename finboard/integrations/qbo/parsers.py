"""
QuickBooks Online Report Parsers
Extract KPI values and breakdowns from QBO report payloads.

QBO nests rows as Rows.Row (a list, or a single object when there is one
child). A section row carries Header.ColData (its title), Rows.Row (its
children) and Summary.ColData (its total); leaf rows are type "Data" with
ColData name/value pairs.

Totals are recognised by exact name, since QBO labels are stable and a
substring match would confuse e.g. "Total Expenses" with
"Total Other Expenses".
"""

import logging
from typing import Any, Optional

from finboard.integrations.reports.base import (
    ParsedReport,
    Provider,
    ReportParser,
    build_breakdown,
)
from finboard.integrations.reports.extracted_types import ExpenseDetailLine, ExpenseLineItem
from finboard.integrations.reports.tree import (
    Cell,
    NodeKind,
    ReportNode,
    coerce_list,
    coerce_rows,
    find_all,
    label_equals,
    of_kind,
    pick,
)
from finboard.integrations.reports.utils import parse_amount

logger = logging.getLogger(__name__)

EXPENSE_SECTIONS = ("EXPENSES", "OTHER EXPENSES", "COST OF GOODS SOLD", "COST OF SALES", "COGS")
COGS_SECTIONS = ("COST OF GOODS SOLD", "COST OF SALES", "COGS")

# ColKey -> ExpenseDetailLine field for ProfitAndLossDetail
DETAIL_COLUMNS = {
    "tx_date": "date",
    "txn_type": "transaction_type",
    "doc_num": "doc_number",
    "name": "name",
    "klass_name": "class_name",
    "memo": "memo",
    "split_acc": "split",
    "subt_nat_amount_nt": "amount",
    "rbal_nat_amount_nt": "balance",
}


class QboReportParser(ReportParser):
    """Parser for QBO ProfitAndLoss, BalanceSheet and ProfitAndLossDetail reports."""

    provider = Provider.QBO
    expenses_include_cogs = False

    revenue_titles = ("Total Income",)
    operating_expenses_titles = ("Total Expenses",)
    net_profit_titles = ("PROFIT", "Net Income", "Net Profit")
    cash_titles = (
        "Total Bank Accounts",
        "Total Bank",
        "Total Cash and Cash Equivalents",
        "Total Cash and Cash Equivalent",
    )
    cost_of_goods_sold_titles = ("Total Cost of Goods Sold", "Total Cost of Sales")

    value_kinds = frozenset({NodeKind.DATA, NodeKind.SUMMARY})

    def _title_predicate(self, titles):
        return label_equals(*titles, kinds=self.value_kinds)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _cells(col_data: Any) -> list[Cell]:
        return [
            Cell(value=pick(col, "value"), key=pick(col, "id"))
            for col in coerce_list(col_data)
            if isinstance(col, dict)
        ]

    def _build_rows(self, raw_rows: Any, depth: int) -> list[ReportNode]:
        if depth > self.max_depth:
            logger.warning("QBO report nesting exceeds %d levels; truncating", self.max_depth)
            return []

        nodes = []
        for row in coerce_rows(raw_rows):
            row_type = str(pick(row, "type", default="")).lower()
            header = pick(row, "Header")
            summary = pick(row, "Summary")
            nested = pick(row, "Rows")

            if row_type == "data" or (not row_type and header is None and nested is None and summary is None):
                nodes.append(ReportNode(kind=NodeKind.DATA, cells=self._cells(pick(row, "ColData"))))
                continue

            header_cells = self._cells(pick(header, "ColData"))
            title = header_cells[0].value if header_cells and header_cells[0].value else None

            children = self._build_rows(nested, depth + 1)
            if summary is not None:
                children.append(ReportNode(kind=NodeKind.SUMMARY, cells=self._cells(pick(summary, "ColData"))))

            nodes.append(ReportNode(
                kind=NodeKind.SECTION,
                title=title,
                cells=header_cells,
                children=children,
            ))
        return nodes

    def parse(self, payload: Any) -> ParsedReport:
        if not isinstance(payload, dict):
            return ParsedReport(provider=self.provider)

        name = pick(pick(payload, "Header"), "ReportName")
        roots = self._build_rows(pick(payload, "Rows"), depth=0)
        return ParsedReport(provider=self.provider, roots=roots, name=name)

    # ------------------------------------------------------------------
    # Profit & Loss
    # ------------------------------------------------------------------

    def extract_operating_expenses(self, report: Optional[ParsedReport]) -> float:
        return abs(self.extract_account_value(report, self.operating_expenses_titles))

    def _section_lines(self, report: Optional[ParsedReport], headers: tuple) -> list[tuple[str, float]]:
        if report is None or report.is_empty:
            return []

        sections = find_all(report.roots, label_equals(*headers, kinds=[NodeKind.SECTION]), self.max_depth)
        data_rows: list[ReportNode] = []
        for section in sections:
            data_rows.extend(find_all(section.children, of_kind(NodeKind.DATA), self.max_depth))

        # _line_items drops rows reached through more than one matching section
        return self._line_items(data_rows)

    def extract_expense_breakdown(self, report: Optional[ParsedReport]) -> list[ExpenseLineItem]:
        return build_breakdown(self._section_lines(report, EXPENSE_SECTIONS), self.categorizer)

    def extract_cogs_breakdown(self, report: Optional[ParsedReport]) -> list[ExpenseLineItem]:
        return build_breakdown(self._section_lines(report, COGS_SECTIONS), self.categorizer)

    # ------------------------------------------------------------------
    # Profit & Loss Detail
    # ------------------------------------------------------------------

    @staticmethod
    def column_map(payload: Any) -> dict[str, int]:
        """ColKey -> column index from Columns.Column[].MetaData."""
        mapping: dict[str, int] = {}
        columns = coerce_list(pick(pick(payload, "Columns"), "Column"))

        for index, column in enumerate(columns):
            for meta in coerce_list(pick(column, "MetaData")):
                if pick(meta, "Name") == "ColKey" and pick(meta, "Value"):
                    mapping[pick(meta, "Value")] = index
        return mapping

    def extract_expense_details(self, payload: Any, expense_name: str) -> list[ExpenseDetailLine]:
        """
        Transaction lines of the section whose header equals expense_name.

        Header match is case-insensitive and trimmed. Amounts are absolute;
        unparseable amounts become 0.
        """
        report = self.parse(payload)
        if report.is_empty or not expense_name.strip():
            return []

        columns = self.column_map(payload)
        details: list[ExpenseDetailLine] = []

        sections = find_all(report.roots, label_equals(expense_name, kinds=[NodeKind.SECTION]), self.max_depth)
        for section in sections:
            for row in section.children:
                if row.kind != NodeKind.DATA:
                    continue

                line = {field: "" for field in DETAIL_COLUMNS.values()}
                for col_key, field in DETAIL_COLUMNS.items():
                    index = columns.get(col_key)
                    if index is not None:
                        value = row.cell_value(index)
                        line[field] = "" if value is None else str(value)

                amount = parse_amount(line["amount"])
                if amount is None and not (line["date"] or line["transaction_type"] or line["name"]):
                    continue

                balance = parse_amount(line["balance"])
                line["amount"] = amount if amount is not None else 0.0
                line["balance"] = balance if balance is not None else 0.0
                details.append(line)

        return details
