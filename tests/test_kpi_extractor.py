"""Tests for KPI extraction."""

import pytest

from finboard.dashboard.kpi_extractor import (
    KpiExtractor,
    compute_cash_runway,
    compute_net_margin,
    empty_kpis,
    resolve_net_profit,
)
from finboard.integrations.qbo.parsers import QboReportParser
from finboard.integrations.xero.parsers import XeroReportParser


def _summary(**overrides):
    summary = {
        "revenue": 1000.0,
        "operating_expenses": 600.0,
        "cost_of_goods_sold": 100.0,
        "net_profit": None,
        "cash_balance": 0.0,
        "expenses_include_cogs": False,
    }
    summary.update(overrides)
    return summary


class TestFormulas:
    """Tests for the derived KPI formulas."""

    def test_net_margin(self):
        assert compute_net_margin(250.0, 1000.0) == pytest.approx(25.0)
        assert compute_net_margin(-100.0, 400.0) == pytest.approx(-25.0)

    def test_net_margin_without_revenue(self):
        assert compute_net_margin(-50.0, 0.0) == 0.0

    def test_cash_runway(self):
        assert compute_cash_runway(6000.0, 1500.0) == pytest.approx(4.0)

    @pytest.mark.parametrize("expenses", [None, 0.0, -10.0])
    def test_cash_runway_undefined(self, expenses):
        assert compute_cash_runway(6000.0, expenses) is None

    def test_reported_net_profit_keeps_sign(self):
        assert resolve_net_profit(_summary(net_profit=-75.0)) == -75.0

    def test_fallback_subtracts_cogs(self):
        assert resolve_net_profit(_summary(operating_expenses=400.0)) == 500.0

    def test_fallback_does_not_double_count_cogs(self):
        assert resolve_net_profit(_summary(expenses_include_cogs=True)) == 400.0


class TestKpiExtractor:
    """Tests for KpiExtractor.extract."""

    def test_xero(self, xero_pnl_payload, xero_balance_sheet_payload):
        parser = XeroReportParser()
        kpis = KpiExtractor(parser).extract(
            parser.parse(xero_pnl_payload),
            parser.parse(xero_balance_sheet_payload),
            last_month_expenses=500.0,
        )

        assert kpis["revenue"] == 1000.0
        assert kpis["expenses"] == 600.0
        assert kpis["cost_of_goods_sold"] == 100.0
        assert kpis["net_profit"] == 400.0
        assert kpis["net_margin"] == pytest.approx(40.0)
        assert kpis["cash_balance"] == 5000.0
        assert kpis["cash_runway"] == pytest.approx(10.0)

    def test_qbo(self, qbo_pnl_payload, qbo_balance_sheet_payload):
        parser = QboReportParser()
        kpis = KpiExtractor(parser).extract(
            parser.parse(qbo_pnl_payload),
            parser.parse(qbo_balance_sheet_payload),
        )

        assert kpis["expenses"] == 400.0
        assert kpis["net_profit"] == 500.0
        assert kpis["net_margin"] == pytest.approx(50.0)
        assert kpis["cash_balance"] == 2500.0
        assert kpis["cash_runway"] is None

    def test_missing_reports(self):
        kpis = KpiExtractor(XeroReportParser()).extract(None, None)
        assert kpis == empty_kpis()
