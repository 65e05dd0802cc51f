"""
Xero Integration Package
Report fetching via the official xero-python SDK.
"""

from finboard.integrations.xero.fetcher import XeroReportClient
from finboard.integrations.xero.parsers import XeroReportParser
from finboard.integrations.xero.sdk_client import XeroSDKClient, XeroSDKClientError

__all__ = [
    "XeroReportClient",
    "XeroReportParser",
    "XeroSDKClient",
    "XeroSDKClientError",
]
