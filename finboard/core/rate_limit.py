"""
Rate Limiting Utilities
Per-client request limits for the dashboard endpoints.

Dashboard requests fan out into many provider calls, so inbound requests
are limited per remote address.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)

DASHBOARD_RATE_LIMIT = "30/minute"
