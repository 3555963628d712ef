"""
Security utilities for authentication.

The web app signs users in with Supabase Auth; this backend only verifies the
resulting access tokens, it never issues its own.
"""
import logging
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from .config import settings

logger = logging.getLogger(__name__)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a Supabase access token.

    Returns the claims, or None when the signature, expiry or audience
    does not check out.
    """
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        logger.debug(f"Token verification failed: {type(e).__name__}: {e}")
        return None

