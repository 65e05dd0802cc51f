"""Tests for the dashboard HTTP endpoints."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from finboard.core.errors import ERROR_MESSAGES, ErrorCode
from finboard.core.rate_limit import limiter
from finboard.dashboard.dependencies import get_dashboard_service
from finboard.dashboard.service import NO_PROVIDER_MESSAGE, DashboardService
from finboard.integrations.providers import ReportProvider
from finboard.integrations.qbo.parsers import QboReportParser
from finboard.integrations.reports.base import Provider
from finboard.integrations.reports.connections import ProviderConnection
from finboard.integrations.xero.parsers import XeroReportParser
from finboard.main import create_application


class StaticConnectionProvider:
    """Connection provider returning a fixed connection."""

    def __init__(self, connection=None):
        self.connection = connection

    async def get_connection(self):
        return self.connection


@pytest.fixture(autouse=True)
def reset_limiter():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def unlinked_client():
    app = create_application(StaticConnectionProvider())
    return TestClient(app)


@pytest.fixture
def service_client(test_settings, fake_clock):
    """Client whose dashboard service is built around the given provider."""
    def _make(provider):
        app = create_application(StaticConnectionProvider())
        service = DashboardService(provider, settings=test_settings, clock=fake_clock, today=date(2024, 5, 17))
        app.dependency_overrides[get_dashboard_service] = lambda: service
        return TestClient(app)
    return _make


@pytest.fixture
def xero_provider(xero_pnl_payload, xero_balance_sheet_payload, xero_bank_summary_payload):
    client = MagicMock()
    client.fetch_profit_and_loss = AsyncMock(return_value=xero_pnl_payload)
    client.fetch_balance_sheet = AsyncMock(return_value=xero_balance_sheet_payload)
    client.fetch_bank_summary = AsyncMock(return_value=xero_bank_summary_payload)
    return ReportProvider(Provider.XERO, XeroReportParser(), client)


@pytest.fixture
def qbo_provider(qbo_pnl_detail_payload):
    client = MagicMock()
    client.fetch_profit_and_loss_detail = AsyncMock(return_value=qbo_pnl_detail_payload)
    return ReportProvider(Provider.QBO, QboReportParser(), client)


class TestHealth:
    """Tests for the service endpoints."""

    def test_health(self, unlinked_client):
        response = unlinked_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestStats:
    """Tests for GET /api/dashboard/stats."""

    def test_camel_case_payload(self, service_client, xero_provider):
        response = service_client(xero_provider).get("/api/dashboard/stats", params={"timeframe": "MONTH"})

        assert response.status_code == 200
        body = response.json()
        assert body["kpis"]["revenue"] == 1000.0
        assert body["kpis"]["costOfGoodsSold"] == 100.0
        assert body["timeframe"] == {"from": "2024-05-01", "to": "2024-05-31", "type": "MONTH"}
        assert body["trendData"][0]["month"] == "MAY"
        assert body["expenseBreakdown"][0]["name"] == "Wages and Salaries"

    def test_timeframe_is_case_insensitive(self, service_client, xero_provider):
        response = service_client(xero_provider).get("/api/dashboard/stats", params={"timeframe": "month"})
        assert response.status_code == 200

    def test_no_provider_is_success_with_error(self, unlinked_client):
        response = unlinked_client.get("/api/dashboard/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["error"] == NO_PROVIDER_MESSAGE
        assert body["kpis"]["netProfit"] == 0.0
        assert body["expenseBreakdown"] == []

    @pytest.mark.parametrize(
        "params",
        [
            {"timeframe": "WEEK"},
            {"timeframe": "CUSTOM"},
            {"fromDate": "2024-01-01"},
            {"fromDate": "2024-03-01", "toDate": "2024-01-01"},
            {"fromDate": "not-a-date", "toDate": "2024-01-01"},
            {"timeframe": "CUSTOM", "fromDate": "2019-01-01", "toDate": "2024-01-01"},
        ],
    )
    def test_invalid_parameters(self, unlinked_client, params):
        response = unlinked_client.get("/api/dashboard/stats", params=params)

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == ErrorCode.VALIDATION_ERROR.value

    def test_unexpected_value_error_is_not_a_validation_response(self):
        app = create_application(StaticConnectionProvider())
        service = MagicMock()
        service.get_stats = AsyncMock(side_effect=ValueError("list index out of range"))
        app.dependency_overrides[get_dashboard_service] = lambda: service

        with pytest.raises(ValueError, match="list index out of range"):
            TestClient(app).get("/api/dashboard/stats")

    def test_failed_fetch_returns_full_zero_trend(self, service_client, xero_provider):
        xero_provider.client.fetch_balance_sheet.side_effect = ConnectionError("connection reset")

        response = service_client(xero_provider).get("/api/dashboard/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["error"] == ERROR_MESSAGES[ErrorCode.PROVIDER_FETCH_FAILED]
        assert len(body["trendData"]) == 12


class TestOtherEndpoints:
    """Tests for the trend, cash-flow, previous and expense-detail endpoints."""

    def test_monthly(self, service_client, xero_provider):
        response = service_client(xero_provider).get(
            "/api/dashboard/monthly", params={"fromDate": "2024-01-01", "toDate": "2024-03-31"}
        )

        assert response.status_code == 200
        body = response.json()
        assert [point["month"] for point in body["trendData"]] == ["JAN", "FEB", "MAR"]
        assert body["fromDate"] == "2024-01-01"

    def test_cash_flow(self, service_client, xero_provider):
        response = service_client(xero_provider).get("/api/dashboard/cashflow")

        assert response.status_code == 200
        points = response.json()["cashFlowData"]
        assert len(points) == 6
        assert points[-1] == {"month": "MAY", "cashIn": 2500.0, "cashOut": 1500.0}

    def test_previous(self, service_client, xero_provider):
        response = service_client(xero_provider).get("/api/dashboard/previous", params={"timeframe": "YEAR"})

        assert response.status_code == 200
        assert response.json()["timeframe"]["from"] == "2023-01-01"

    def test_expense_detail(self, service_client, qbo_provider):
        response = service_client(qbo_provider).get(
            "/api/dashboard/expense-detail",
            params={"expenseName": "Rent", "fromDate": "2024-01-01", "toDate": "2024-01-31"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["expenseName"] == "Rent"
        assert body["total"] == 1250.0
        assert "class" in body["details"][0]

    def test_expense_detail_requires_qbo(self, service_client, xero_provider):
        response = service_client(xero_provider).get(
            "/api/dashboard/expense-detail",
            params={"expenseName": "Rent", "fromDate": "2024-01-01", "toDate": "2024-01-31"},
        )
        assert response.status_code == 400

    def test_expense_detail_requires_dates(self, unlinked_client):
        response = unlinked_client.get("/api/dashboard/expense-detail", params={"expenseName": "Rent"})
        assert response.status_code == 400


class TestDependencies:
    """Tests for provider resolution in get_dashboard_service."""

    def test_unusable_xero_connection_reports_expired(self):
        connection = ProviderConnection(provider=Provider.XERO, access_token="token", tenant_id="")
        client = TestClient(create_application(StaticConnectionProvider(connection)))

        response = client.get("/api/dashboard/cashflow")

        assert response.status_code == 200
        assert response.json()["error"] == ERROR_MESSAGES[ErrorCode.PROVIDER_AUTH_EXPIRED]


class TestRateLimit:
    """Tests for the per-client request limit."""

    def test_limit_exceeded(self, unlinked_client):
        statuses = [unlinked_client.get("/api/dashboard/cashflow").status_code for _ in range(31)]

        assert statuses[:30] == [200] * 30
        assert statuses[30] == 429
