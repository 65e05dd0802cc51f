"""Pytest configuration and fixtures."""

import pytest

from finboard.config import Settings


class FakeClock:
    """Clock that advances only when slept on."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Fake clock recording every sleep."""
    return FakeClock()


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        xero_access_token="",
        xero_tenant_id="",
        qbo_access_token="",
        qbo_realm_id="",
        trend_request_interval_seconds=0.125,
        cash_flow_request_interval_seconds=1.2,
        rate_limit_max_retries=1,
        rate_limit_backoff_base_seconds=1.0,
        rate_limit_max_wait_seconds=30.0,
        max_trend_months=36,
        cash_flow_months=6,
    )


# =============================================================================
# Xero payloads
# =============================================================================

def _xero_row(name, value):
    return {"RowType": "Row", "Cells": [{"Value": name}, {"Value": value}]}


def _xero_summary(name, value):
    return {"RowType": "SummaryRow", "Cells": [{"Value": name}, {"Value": value}]}


@pytest.fixture
def xero_pnl_payload():
    """Xero Profit & Loss: income 1000, cost of sales 100, opex 500, net profit 400."""
    return {
        "Reports": [
            {
                "ReportName": "Profit and Loss",
                "Rows": [
                    {"RowType": "Header", "Cells": [{"Value": ""}, {"Value": "31 Jan 2024"}]},
                    {
                        "RowType": "Section",
                        "Title": "Income",
                        "Rows": [
                            _xero_row("Sales", "1,000.00"),
                            _xero_summary("Total Income", "1,000.00"),
                        ],
                    },
                    {
                        "RowType": "Section",
                        "Title": "Less Cost of Sales",
                        "Rows": [
                            _xero_row("Purchases", "100.00"),
                            _xero_summary("Total Cost of Sales", "100.00"),
                        ],
                    },
                    {
                        "RowType": "Section",
                        "Title": "",
                        "Rows": [_xero_row("Gross Profit", "900.00")],
                    },
                    {
                        "RowType": "Section",
                        "Title": "Less Operating Expenses",
                        "Rows": [
                            _xero_row("Rent", "200.00"),
                            _xero_row("Wages and Salaries", "250.00"),
                            _xero_row("Software Subscriptions", "50.00"),
                            _xero_summary("Total Operating Expenses", "500.00"),
                        ],
                    },
                    {
                        "RowType": "Section",
                        "Title": "",
                        "Rows": [_xero_row("Net Profit", "400.00")],
                    },
                ],
            }
        ]
    }


@pytest.fixture
def xero_balance_sheet_payload():
    """Xero Balance Sheet with 5,000 in the bank."""
    return {
        "Reports": [
            {
                "ReportName": "Balance Sheet",
                "Rows": [
                    {"RowType": "Header", "Cells": [{"Value": ""}, {"Value": "31 Jan 2024"}]},
                    {"RowType": "Section", "Title": "Assets", "Rows": []},
                    {
                        "RowType": "Section",
                        "Title": "Bank",
                        "Rows": [
                            _xero_row("Business Account", "5,000.00"),
                            _xero_summary("Total Bank", "5,000.00"),
                        ],
                    },
                ],
            }
        ]
    }


@pytest.fixture
def xero_bank_summary_payload():
    """Xero Bank Summary laid out with Cash Received / Cash Spent columns."""
    return {
        "Reports": [
            {
                "ReportName": "Bank Summary",
                "Rows": [
                    {
                        "RowType": "Header",
                        "Cells": [
                            {"Value": "Bank Accounts"},
                            {"Value": "Opening Balance"},
                            {"Value": "Cash Received"},
                            {"Value": "Cash Spent"},
                            {"Value": "Closing Balance"},
                        ],
                    },
                    {
                        "RowType": "Section",
                        "Title": "",
                        "Rows": [
                            {
                                "RowType": "Row",
                                "Cells": [
                                    {"Value": "Business Account"},
                                    {"Value": "4000.00"},
                                    {"Value": "2500.40"},
                                    {"Value": "1499.60"},
                                    {"Value": "5000.80"},
                                ],
                            },
                            {
                                "RowType": "SummaryRow",
                                "Cells": [
                                    {"Value": "Total"},
                                    {"Value": "4000.00"},
                                    {"Value": "2500.40"},
                                    {"Value": "1499.60"},
                                    {"Value": "5000.80"},
                                ],
                            },
                        ],
                    },
                ],
            }
        ]
    }


# =============================================================================
# QBO payloads
# =============================================================================

def _qbo_data(name, value):
    return {"ColData": [{"value": name, "id": "1"}, {"value": value}], "type": "Data"}


def _qbo_section(header, rows, summary_name, summary_value):
    return {
        "Header": {"ColData": [{"value": header}, {"value": ""}]},
        "Rows": {"Row": rows},
        "Summary": {"ColData": [{"value": summary_name}, {"value": summary_value}]},
        "type": "Section",
    }


@pytest.fixture
def qbo_pnl_payload():
    """QBO ProfitAndLoss: income 1000, COGS 100, expenses 400, profit 500."""
    return {
        "Header": {"ReportName": "ProfitAndLoss", "Currency": "USD"},
        "Columns": {"Column": [{"ColTitle": "", "ColType": "Account"}, {"ColTitle": "Total", "ColType": "Money"}]},
        "Rows": {
            "Row": [
                _qbo_section("Income", [_qbo_data("Sales", "1000.00")], "Total Income", "1000.00"),
                _qbo_section(
                    "Cost of Goods Sold",
                    [_qbo_data("Materials", "100.00")],
                    "Total Cost of Goods Sold",
                    "100.00",
                ),
                {
                    "Summary": {"ColData": [{"value": "Gross Profit"}, {"value": "900.00"}]},
                    "type": "Section",
                    "group": "GrossProfit",
                },
                _qbo_section(
                    "Expenses",
                    [_qbo_data("Rent", "150.00"), _qbo_data("Subcontractors", "250.00")],
                    "Total Expenses",
                    "400.00",
                ),
                {
                    "Summary": {"ColData": [{"value": "PROFIT"}, {"value": "500.00"}]},
                    "type": "Section",
                    "group": "NetIncome",
                },
            ]
        },
    }


@pytest.fixture
def qbo_balance_sheet_payload():
    """QBO BalanceSheet with 2,500 across bank accounts."""
    return {
        "Header": {"ReportName": "BalanceSheet"},
        "Rows": {
            "Row": {
                "Header": {"ColData": [{"value": "ASSETS"}, {"value": ""}]},
                "Rows": {
                    "Row": {
                        "Header": {"ColData": [{"value": "Current Assets"}, {"value": ""}]},
                        "Rows": {
                            "Row": [
                                _qbo_section(
                                    "Bank Accounts",
                                    [_qbo_data("Checking", "2,500.00")],
                                    "Total Bank Accounts",
                                    "2,500.00",
                                )
                            ]
                        },
                        "Summary": {"ColData": [{"value": "Total Current Assets"}, {"value": "2500.00"}]},
                        "type": "Section",
                    }
                },
                "Summary": {"ColData": [{"value": "TOTAL ASSETS"}, {"value": "2500.00"}]},
                "type": "Section",
            }
        },
    }


def _detail_column(title, key):
    return {"ColTitle": title, "ColType": "String", "MetaData": [{"Name": "ColKey", "Value": key}]}


def _detail_row(*values):
    return {"ColData": [{"value": v} for v in values], "type": "Data"}


@pytest.fixture
def qbo_pnl_detail_payload():
    """QBO ProfitAndLossDetail with two Rent transactions and one Utilities."""
    return {
        "Header": {"ReportName": "ProfitAndLossDetail"},
        "Columns": {
            "Column": [
                _detail_column("Date", "tx_date"),
                _detail_column("Transaction Type", "txn_type"),
                _detail_column("Num", "doc_num"),
                _detail_column("Name", "name"),
                _detail_column("Class", "klass_name"),
                _detail_column("Memo/Description", "memo"),
                _detail_column("Split", "split_acc"),
                _detail_column("Amount", "subt_nat_amount_nt"),
                _detail_column("Balance", "rbal_nat_amount_nt"),
            ]
        },
        "Rows": {
            "Row": [
                {
                    "Header": {"ColData": [{"value": "Expenses"}]},
                    "Rows": {
                        "Row": [
                            {
                                "Header": {"ColData": [{"value": "Rent"}]},
                                "Rows": {
                                    "Row": [
                                        _detail_row(
                                            "2024-01-05", "Bill", "101", "Landlord Co", "",
                                            "January rent", "Accounts Payable", "1,200.00", "1200.00",
                                        ),
                                        _detail_row(
                                            "2024-01-20", "Vendor Credit", "102", "Landlord Co", "Office",
                                            "Refund", "Accounts Payable", "-50.00", "1150.00",
                                        ),
                                    ]
                                },
                                "Summary": {"ColData": [{"value": "Total for Rent"}, {"value": "1150.00"}]},
                                "type": "Section",
                            },
                            {
                                "Header": {"ColData": [{"value": "Utilities"}]},
                                "Rows": {
                                    "Row": [
                                        _detail_row(
                                            "2024-01-09", "Expense", "", "Power Co", "",
                                            "", "Checking", "80.00", "80.00",
                                        ),
                                    ]
                                },
                                "Summary": {"ColData": [{"value": "Total for Utilities"}, {"value": "80.00"}]},
                                "type": "Section",
                            },
                        ]
                    },
                    "Summary": {"ColData": [{"value": "Total Expenses"}, {"value": "1230.00"}]},
                    "type": "Section",
                }
            ]
        },
    }
