"""Tests for error mapping and sanitized messages."""

import pytest

from finboard.core.errors import (
    ERROR_MESSAGES,
    ErrorCode,
    create_error_response,
    get_error_code_for_exception,
    sanitize_error_message,
)
from finboard.dashboard.service import user_facing_error
from finboard.integrations.reports.exceptions import (
    AuthExpiredError,
    RateLimitedError,
    ReportFetchError,
)


class TestErrorMapping:
    """Tests for exception classification."""

    @pytest.mark.parametrize(
        "exception,code,status",
        [
            (AuthExpiredError("expired", status_code=401), ErrorCode.PROVIDER_AUTH_EXPIRED, 401),
            (RateLimitedError("429"), ErrorCode.PROVIDER_RATE_LIMITED, 503),
            (ReportFetchError("boom"), ErrorCode.PROVIDER_FETCH_FAILED, 502),
            (ValueError("bad"), ErrorCode.VALIDATION_ERROR, 400),
            (RuntimeError("oops"), ErrorCode.INTERNAL_ERROR, 500),
        ],
    )
    def test_get_error_code_for_exception(self, exception, code, status):
        assert get_error_code_for_exception(exception) == (code, status)

    @pytest.mark.parametrize(
        "code,status",
        [
            (ErrorCode.NO_PROVIDER_LINKED, 404),
            (ErrorCode.VALIDATION_ERROR, 400),
            (ErrorCode.PROVIDER_RATE_LIMITED, 503),
            (ErrorCode.INTERNAL_ERROR, 500),
        ],
    )
    def test_create_error_response_status(self, code, status):
        assert create_error_response(code).status_code == status

    def test_create_error_response_detail(self):
        error = create_error_response(ErrorCode.VALIDATION_ERROR, message="fromDate is invalid")
        assert error.detail == {"error_code": "validation_error", "message": "fromDate is invalid"}


class TestSanitizedMessages:
    """Tests for user-facing messages."""

    def test_internal_details_not_exposed(self, caplog):
        exception = ReportFetchError("token=abc123 rejected by upstream")

        message = sanitize_error_message(exception, ErrorCode.PROVIDER_FETCH_FAILED)

        assert "abc123" not in message
        assert "abc123" in caplog.text

    @pytest.mark.parametrize(
        "exception,code",
        [
            (AuthExpiredError("expired"), ErrorCode.PROVIDER_AUTH_EXPIRED),
            (RateLimitedError("429"), ErrorCode.PROVIDER_RATE_LIMITED),
            (ReportFetchError("boom"), ErrorCode.PROVIDER_FETCH_FAILED),
            (KeyError("Reports"), ErrorCode.PROVIDER_FETCH_FAILED),
            (ConnectionError("connection reset"), ErrorCode.PROVIDER_FETCH_FAILED),
        ],
    )
    def test_user_facing_error(self, exception, code):
        assert user_facing_error(exception) == ERROR_MESSAGES[code]
