"""
Application Configuration
Loads settings from environment variables with validation
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type coercion.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ============================================
    # Application Settings
    # ============================================
    app_name: str = "FinBoard"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # ============================================
    # Server Settings
    # ============================================
    host: str = "0.0.0.0"
    port: int = 8000

    # ============================================
    # Xero API
    # ============================================
    xero_client_id: str = ""
    xero_client_secret: str = ""

    # ============================================
    # QuickBooks Online API
    # ============================================
    qbo_environment: str = "production"
    qbo_minor_version: int = 75

    # ============================================
    # Development credentials
    # Used by the settings-backed connection provider only.
    # ============================================
    xero_access_token: str = ""
    xero_tenant_id: str = ""
    qbo_access_token: str = ""
    qbo_realm_id: str = ""

    # ============================================
    # Report fetching
    # ============================================
    http_timeout_seconds: float = 30.0
    trend_request_interval_seconds: float = 0.125
    cash_flow_request_interval_seconds: float = 1.2
    provider_calls_per_minute: int = 60
    rate_limit_max_retries: int = 1
    rate_limit_backoff_base_seconds: float = 1.0
    rate_limit_max_wait_seconds: float = 30.0
    report_max_depth: int = 64
    max_trend_months: int = 36
    # Seconds; months not started by then are zero-filled. None = no deadline
    trend_deadline_seconds: Optional[float] = None
    cash_flow_months: int = 6

    # Category -> keywords, e.g. '{"subcontractor": ["subcontract"]}'
    expense_category_keywords: Optional[dict[str, list[str]]] = None

    # ============================================
    # CORS Settings
    # ============================================
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def qbo_base_url(self) -> str:
        """QuickBooks API host for the configured environment."""
        if self.qbo_environment.lower() == "sandbox":
            return "https://sandbox-quickbooks.api.intuit.com"
        return "https://quickbooks.api.intuit.com"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid loading .env file on every call.
    """
    return Settings()


# Export a default settings instance for convenience
settings = get_settings()
