"""
QuickBooks Online Integration Package
Report fetching over the QBO REST API.
"""

from finboard.integrations.qbo.client import QboReportClient
from finboard.integrations.qbo.parsers import QboReportParser

__all__ = [
    "QboReportClient",
    "QboReportParser",
]
