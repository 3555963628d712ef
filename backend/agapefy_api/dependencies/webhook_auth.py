"""
Shared-secret checks for provider webhooks.
"""

import hmac
import logging
from typing import Iterable, Optional

from fastapi import HTTPException, Request, status

from ..core.config import settings

logger = logging.getLogger(__name__)

WEBHOOK_TOKEN_HEADERS = (
    "x-webhook-secret",
    "x-webhook-token",
    "x-whatsapp-signature",
    "client-token",
)


def get_bearer_token(request: Request) -> str:
    header = request.headers.get("authorization") or ""
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return ""


def get_header_token(request: Request, names: Iterable[str]) -> str:
    for name in names:
        value = request.headers.get(name)
        if value:
            return value.strip()
    return ""


def tokens_match(provided: Optional[str], expected: str) -> bool:
    if not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


def get_whatsapp_webhook_secret() -> str:
    """WHATSAPP_WEBHOOK_SECRET, falling back to the Z-API Client-Token."""
    return settings.whatsapp_webhook_secret or settings.zapi_client_token or ""


async def require_whatsapp_webhook_secret(request: Request) -> None:
    """
    Dependency guarding the WhatsApp provider webhooks.

    Providers that cannot send custom headers may pass ?token= instead.

    Raises:
        HTTPException: 401 on a missing or wrong token, 500 when no secret
            is configured in production
    """
    secret = get_whatsapp_webhook_secret()
    if not secret:
        if settings.is_production_environment:
            logger.error("WhatsApp webhook secret is not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="webhook_secret_not_configured",
            )
        return

    token = (
        request.query_params.get("token")
        or get_header_token(request, WEBHOOK_TOKEN_HEADERS)
        or get_bearer_token(request)
    )
    if not tokens_match(token, secret):
        logger.warning(f"Rejected WhatsApp webhook call to {request.url.path}: invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="unauthorized",
        )
