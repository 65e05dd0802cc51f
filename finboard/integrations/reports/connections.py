"""
Provider Connections
Narrow interfaces to the externally managed accounting connection.

Token acquisition, refresh and storage live outside this package. Callers
hand in an already-authorized ProviderConnection; report clients only use
it to make requests.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from finboard.config import Settings
from finboard.integrations.reports.base import Provider


@dataclass(frozen=True)
class ProviderConnection:
    """An authorized link to one accounting provider."""
    provider: Provider
    access_token: str
    tenant_id: Optional[str] = None  # Xero organisation
    realm_id: Optional[str] = None  # QBO company

    def __repr__(self) -> str:
        return (
            f"ProviderConnection(provider={self.provider.value}, "
            f"tenant_id={self.tenant_id}, realm_id={self.realm_id})"
        )


class ConnectionProvider(Protocol):
    """Resolves the current caller's linked accounting provider."""

    async def get_connection(self) -> Optional[ProviderConnection]:
        ...


class SettingsConnectionProvider:
    """
    Connection provider backed by development credentials in settings.

    Xero wins when both providers are configured. Returns None when
    neither is.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def get_connection(self) -> Optional[ProviderConnection]:
        if self.settings.xero_access_token and self.settings.xero_tenant_id:
            return ProviderConnection(
                provider=Provider.XERO,
                access_token=self.settings.xero_access_token,
                tenant_id=self.settings.xero_tenant_id,
            )

        if self.settings.qbo_access_token and self.settings.qbo_realm_id:
            return ProviderConnection(
                provider=Provider.QBO,
                access_token=self.settings.qbo_access_token,
                realm_id=self.settings.qbo_realm_id,
            )

        return None
