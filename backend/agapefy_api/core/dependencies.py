"""
FastAPI dependencies for authentication and authorization.

The caller's Supabase access token is read from (in priority order):
1. The Authorization Bearer header
2. A session cookie (see settings.session_cookie_names)
"""
import logging
from typing import Optional
from fastapi import Depends, HTTPException, status, Request, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import settings
from .security import verify_token
from ..dependencies.webhook_auth import tokens_match
from ..schemas.auth import UserResponse

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    for cookie_name in settings.session_cookie_names:
        token = request.cookies.get(cookie_name)
        if token:
            return token
    return None


def user_from_token(token: str) -> Optional[UserResponse]:
    """Build the caller from verified token claims, None if the token is invalid."""
    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        return None

    user_metadata = payload.get("user_metadata") or {}
    return UserResponse(
        id=payload["sub"],
        email=payload.get("email") or user_metadata.get("email"),
        full_name=user_metadata.get("full_name"),
        role=payload.get("role"),
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> UserResponse:
    """
    Dependency to get the current authenticated user.

    Raises:
        HTTPException: 401 if no valid session is present
    """
    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = user_from_token(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[UserResponse]:
    """
    Dependency to optionally get the current user (allows anonymous access).

    Returns:
        Optional[UserResponse]: Current user if authenticated, None otherwise
    """
    try:
        return await get_current_user(request, credentials)
    except HTTPException:
        return None


async def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> Optional[UserResponse]:
    """
    Dependency for back-office routes.

    Accepts the static admin API key (automation) or a session whose profile
    role is admin.

    Returns:
        The admin user, or None when authenticated by API key

    Raises:
        HTTPException: 401 without credentials, 403 for non-admin users
    """
    provided_key = x_admin_key or x_api_key
    if settings.admin_api_key and provided_key:
        if tokens_match(provided_key, settings.admin_api_key):
            return None
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )

    user = await get_current_user(request, credentials)

    from ..services.subscription_service import subscription_service

    try:
        role = await subscription_service.get_user_role(user.id)
    except Exception as e:
        logger.error(f"Failed to load profile role for {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify admin role",
        )

    if role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
