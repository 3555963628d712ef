"""
Dependencies module for FastAPI dependency injection.
"""

from .rate_limit import (
    limiter,
    get_client_ip,
    get_free_play_key,
)

from .webhook_auth import (
    require_whatsapp_webhook_secret,
    get_bearer_token,
    tokens_match,
)

__all__ = [
    # Rate limiting
    "limiter",
    "get_client_ip",
    "get_free_play_key",
    # Webhook authentication
    "require_whatsapp_webhook_secret",
    "get_bearer_token",
    "tokens_match",
]
