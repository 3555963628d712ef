"""
Play authorization: combines the caller's user type, the admin-configured
paywall permissions and the free-play quota into a single decision.
"""
import logging
from typing import Optional

from ..core.paywall import UserType, resolve_access_policy
from ..schemas.auth import UserResponse
from ..schemas.paywall import PlayAccessResponse, PlayAction
from .free_play_service import free_play_service
from .settings_service import settings_service
from .subscription_service import subscription_service

logger = logging.getLogger(__name__)


class AccessService:
    """Decides whether a play may start."""

    async def authorize_play(self, user: Optional[UserResponse], limit_key: str) -> PlayAccessResponse:
        """
        Authorize one play.

        Anonymous visitors always have to log in. Full-access tiers play
        freely; everyone else consumes the daily free-play quota.
        """
        classification = await subscription_service.get_status(user)
        user_type = UserType(classification.user_type)

        if user_type == UserType.ANONYMOUS:
            return PlayAccessResponse(
                user_type=user_type,
                action=PlayAction.LOGIN_REQUIRED,
                allowed=False,
            )

        permissions = await settings_service.get_paywall_permissions()
        policy = resolve_access_policy(user_type, permissions)

        if policy.full_access or not policy.limit_enabled:
            return PlayAccessResponse(user_type=user_type, action=PlayAction.ALLOWED, allowed=True)

        check = await free_play_service.check_and_consume(
            limit_key=limit_key,
            max_per_day=policy.max_free_audios_per_day or 0,
            context=user_type.value,
        )
        if not check.allowed:
            logger.info(f"Free-play quota exhausted for {limit_key} ({user_type.value})")

        return PlayAccessResponse(
            user_type=user_type,
            action=PlayAction.ALLOWED if check.allowed else PlayAction.PAYWALL,
            allowed=check.allowed,
            count=check.count,
            max=check.max,
            reason=check.reason,
        )


# Global service instance
access_service = AccessService()
