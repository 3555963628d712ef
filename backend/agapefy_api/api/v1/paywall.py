"""
Paywall API endpoints.

- Public reads of the paywall permissions and screen copy
- Admin updates of both documents
- Play authorization for the audio player
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...core.dependencies import get_optional_current_user, require_admin
from ...core.paywall import PaywallPermissions, PaywallScreenConfig
from ...dependencies.rate_limit import get_free_play_key
from ...schemas.auth import UserResponse
from ...schemas.paywall import PlayAccessResponse
from ...services.access_service import access_service
from ...services.settings_service import settings_service

router = APIRouter(prefix="/paywall", tags=["paywall"])
logger = logging.getLogger(__name__)


@router.get("/permissions", response_model=PaywallPermissions)
async def get_paywall_permissions():
    """Effective access policy per user type."""
    return await settings_service.get_paywall_permissions()


@router.put("/permissions", response_model=PaywallPermissions)
async def update_paywall_permissions(
    permissions: PaywallPermissions,
    admin: Optional[UserResponse] = Depends(require_admin),
):
    """Replace the access policy (admin only)."""
    try:
        saved = await settings_service.save_paywall_permissions(permissions)
    except Exception as e:
        logger.error(f"Failed to save paywall permissions: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save paywall permissions",
        )
    logger.info(f"Paywall permissions updated by {admin.email if admin else 'admin API key'}")
    return saved


@router.get("/screen-config", response_model=PaywallScreenConfig)
async def get_paywall_screen_config():
    """Copy, plans and testimonials shown on the paywall."""
    return await settings_service.get_paywall_screen_config()


@router.put("/screen-config", response_model=PaywallScreenConfig)
async def update_paywall_screen_config(
    config: PaywallScreenConfig,
    admin: Optional[UserResponse] = Depends(require_admin),
):
    """Replace the paywall screen copy (admin only)."""
    try:
        saved = await settings_service.save_paywall_screen_config(config)
    except Exception as e:
        logger.error(f"Failed to save paywall screen config: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save paywall screen config",
        )
    logger.info(f"Paywall screen config updated by {admin.email if admin else 'admin API key'}")
    return saved


@router.post("/play-access", response_model=PlayAccessResponse, response_model_exclude_none=True)
async def authorize_play(
    request: Request,
    user: Optional[UserResponse] = Depends(get_optional_current_user),
):
    """
    Decide what happens when the caller presses play.

    Returns one of:
    - login_required: visitor without a session
    - allowed: full access, quota disabled, or a free play was consumed
    - paywall: today's free plays are used up
    """
    limit_key = get_free_play_key(request, user.id if user else None)
    return await access_service.authorize_play(user, limit_key)
