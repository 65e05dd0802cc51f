"""
Xero SDK Client Factory
Creates configured xero-python SDK clients from a provider connection.
"""

import logging
from typing import Optional

from xero_python.accounting import AccountingApi
from xero_python.api_client import ApiClient, Configuration
from xero_python.api_client.oauth2 import OAuth2Token

from finboard.config import Settings, get_settings
from finboard.integrations.reports.connections import ProviderConnection

logger = logging.getLogger(__name__)


class XeroSDKClientError(Exception):
    """Exception raised for SDK client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class XeroSDKClient:
    """
    Factory for a configured Xero AccountingApi.

    The access token is supplied by the caller and held in memory only;
    refreshing and persisting it is the connection owner's job.
    """

    def __init__(self, connection: ProviderConnection, settings: Optional[Settings] = None):
        """
        Initialize SDK client factory.

        Args:
            connection: Authorized Xero connection
            settings: Application settings (defaults to cached settings)

        Raises:
            XeroSDKClientError: If the connection has no token or tenant
        """
        if not connection.access_token:
            raise XeroSDKClientError("Xero connection has no access token", status_code=401)
        if not connection.tenant_id:
            raise XeroSDKClientError("Xero connection has no tenant id")

        self.connection = connection
        self.settings = settings or get_settings()
        self._token_dict: dict = {}
        self._api_client: Optional[ApiClient] = None
        self._accounting_api: Optional[AccountingApi] = None

    def _build_token_dict(self) -> dict:
        """Build token dictionary for SDK from the connection."""
        return {
            "access_token": self.connection.access_token,
            "token_type": "Bearer",
            "expires_in": 1800,  # SDK needs this
        }

    def _get_token(self) -> dict:
        """Token getter callback for SDK."""
        if not self._token_dict:
            self._token_dict = self._build_token_dict()
        return self._token_dict

    def _save_token(self, new_token: dict) -> None:
        """Token saver callback for SDK. Keeps refreshed tokens in memory."""
        self._token_dict.update(new_token)
        logger.info("SDK refreshed Xero token for tenant %s", self.tenant_id)

    def _create_api_client(self) -> ApiClient:
        """Create configured ApiClient instance."""
        self._token_dict = self._build_token_dict()

        config = Configuration(
            oauth2_token=OAuth2Token(
                client_id=self.settings.xero_client_id,
                client_secret=self.settings.xero_client_secret,
            )
        )

        return ApiClient(
            config,
            oauth2_token_getter=self._get_token,
            oauth2_token_saver=self._save_token,
        )

    @property
    def api_client(self) -> ApiClient:
        """Get or create ApiClient instance."""
        if self._api_client is None:
            self._api_client = self._create_api_client()
        return self._api_client

    @property
    def accounting_api(self) -> AccountingApi:
        """Get or create AccountingApi instance."""
        if self._accounting_api is None:
            self._accounting_api = AccountingApi(self.api_client)
        return self._accounting_api

    @property
    def tenant_id(self) -> str:
        """Get Xero tenant ID."""
        return self.connection.tenant_id
