"""
Error Handling Utilities
Provides sanitized error messages and consistent error responses.
"""

import logging
from enum import Enum
from typing import Optional

from fastapi import HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from finboard.integrations.reports.exceptions import (
    AuthExpiredError,
    RateLimitedError,
    ReportFetchError,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Error codes for frontend handling."""

    # Provider errors
    NO_PROVIDER_LINKED = "no_provider_linked"
    PROVIDER_AUTH_EXPIRED = "provider_auth_expired"
    PROVIDER_RATE_LIMITED = "provider_rate_limited"
    PROVIDER_FETCH_FAILED = "provider_fetch_failed"

    # General errors
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"


# User-friendly error messages
ERROR_MESSAGES = {
    ErrorCode.NO_PROVIDER_LINKED: "No accounting provider linked. Connect Xero or QuickBooks to see your dashboard.",
    ErrorCode.PROVIDER_AUTH_EXPIRED: "Unable to fetch financial data. Your accounting connection has expired, please re-authenticate.",
    ErrorCode.PROVIDER_RATE_LIMITED: "Your accounting provider is busy. Please try again in a moment.",
    ErrorCode.PROVIDER_FETCH_FAILED: "Unable to fetch financial data. Please try again or re-authenticate.",
    ErrorCode.VALIDATION_ERROR: "Invalid request. Please check your input and try again.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again later.",
}


def sanitize_error_message(
    exception: Exception,
    error_code: ErrorCode,
    log_details: bool = True,
) -> str:
    """
    Sanitize error message for user-facing responses.

    Logs full exception details internally but returns user-friendly message.

    Args:
        exception: The exception that occurred
        error_code: Error code for categorization
        log_details: Whether to log full exception details

    Returns:
        User-friendly error message
    """
    if log_details:
        logger.error(
            "Error [%s]: %s",
            error_code.value,
            str(exception),
            exc_info=exception,
        )

    return ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR])


def get_error_code_for_exception(exception: Exception) -> tuple[ErrorCode, int]:
    """
    Map exception types to error codes and HTTP status codes.

    Args:
        exception: The exception that occurred

    Returns:
        Tuple of (error_code, http_status_code)
    """
    if isinstance(exception, AuthExpiredError):
        return ErrorCode.PROVIDER_AUTH_EXPIRED, status.HTTP_401_UNAUTHORIZED

    if isinstance(exception, RateLimitedError):
        return ErrorCode.PROVIDER_RATE_LIMITED, status.HTTP_503_SERVICE_UNAVAILABLE

    if isinstance(exception, ReportFetchError):
        return ErrorCode.PROVIDER_FETCH_FAILED, status.HTTP_502_BAD_GATEWAY

    if isinstance(exception, ValueError):
        return ErrorCode.VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST

    # Default to internal error
    return ErrorCode.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR


async def global_exception_handler(_request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for FastAPI.

    Catches all unhandled exceptions and returns sanitized error responses.
    Excludes HTTPException (intentional responses) and ValidationError (FastAPI validation).
    """
    if isinstance(exc, HTTPException):
        raise exc

    if isinstance(exc, RequestValidationError):
        raise exc

    error_code, http_status = get_error_code_for_exception(exc)
    message = sanitize_error_message(exc, error_code)

    return JSONResponse(
        status_code=http_status,
        content={
            "error_code": error_code.value,
            "message": message,
        },
    )


def create_error_response(
    error_code: ErrorCode,
    message: Optional[str] = None,
    http_status: Optional[int] = None,
) -> HTTPException:
    """
    Create a standardized HTTPException with error code.

    Args:
        error_code: Error code enum
        message: Optional custom message (uses default if not provided)
        http_status: Optional HTTP status code (uses default if not provided)

    Returns:
        HTTPException with standardized format
    """
    if message is None:
        message = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR])

    if http_status is None:
        if error_code == ErrorCode.PROVIDER_AUTH_EXPIRED:
            http_status = status.HTTP_401_UNAUTHORIZED
        elif error_code == ErrorCode.NO_PROVIDER_LINKED:
            http_status = status.HTTP_404_NOT_FOUND
        elif error_code == ErrorCode.PROVIDER_RATE_LIMITED:
            http_status = status.HTTP_503_SERVICE_UNAVAILABLE
        elif error_code == ErrorCode.PROVIDER_FETCH_FAILED:
            http_status = status.HTTP_502_BAD_GATEWAY
        elif error_code == ErrorCode.VALIDATION_ERROR:
            http_status = status.HTTP_400_BAD_REQUEST
        else:
            http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    return HTTPException(
        status_code=http_status,
        detail={
            "error_code": error_code.value,
            "message": message,
        },
    )
