"""
Report Integration Exceptions
Failure signals raised at the provider fetch boundary.
"""

from typing import Optional


class ReportFetchError(Exception):
    """Exception for report fetching errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(self.message)


class RateLimitedError(ReportFetchError):
    """Provider answered 429. retry_after is the advertised delay in seconds, if any."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        endpoint: Optional[str] = None
    ):
        self.retry_after = retry_after
        super().__init__(message, status_code=429, endpoint=endpoint)


class AuthExpiredError(ReportFetchError):
    """Provider rejected the credentials (401/403)."""

