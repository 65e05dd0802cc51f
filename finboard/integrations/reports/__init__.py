"""
Provider-Neutral Report Processing
Tree walking, value parsing, pacing and retry shared by every provider.
"""

from finboard.integrations.reports.base import ParsedReport, Provider, ReportParser, build_breakdown
from finboard.integrations.reports.categories import ExpenseCategorizer
from finboard.integrations.reports.connections import ConnectionProvider, ProviderConnection
from finboard.integrations.reports.exceptions import (
    AuthExpiredError,
    RateLimitedError,
    ReportFetchError,
)

__all__ = [
    "AuthExpiredError",
    "ConnectionProvider",
    "ExpenseCategorizer",
    "ParsedReport",
    "Provider",
    "ProviderConnection",
    "RateLimitedError",
    "ReportFetchError",
    "ReportParser",
    "build_breakdown",
]
