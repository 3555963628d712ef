"""
Subscription service: reads billing rows and profiles from Supabase and
turns them into the caller's access tier.

Storage errors never surface from the status check; the caller is degraded
to no_subscription so the web app can keep rendering.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from ..core.config import settings
from ..core.paywall import UserType
from ..core.supabase_client import supabase_client
from ..schemas.auth import UserResponse
from ..schemas.subscription import CancelSubscriptionResponse, SubscriptionStatusResponse
from .subscription_classifier import classify_user_type_from_subscriptions

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_TABLE = "assinaturas"
PROFILES_TABLE = "profiles"

# Statuses a cancellation request may act on
CANCELLABLE_STATUSES = ["active", "paid", "authorized", "trialing"]


class SubscriptionService:
    """Service class for subscription status and cancellation."""

    @property
    def supabase(self):
        return supabase_client.service_client

    async def get_user_role(self, user_id: str) -> Optional[str]:
        """Get the role stored on the user's profile (None when absent)."""
        result = self.supabase.table(PROFILES_TABLE).select(
            "role"
        ).eq("id", user_id).limit(1).execute()

        if result.data:
            return result.data[0].get("role")
        return None

    async def fetch_subscription_rows(self, email: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Most recent billing rows for an e-mail, newest first."""
        result = self.supabase.table(SUBSCRIPTIONS_TABLE).select(
            "status, trial_days, trial_started_at, trial_finished_at, cancel_at_cycle_end"
        ).eq(
            "subscriber_email", email
        ).order(
            "created_at", desc=True
        ).limit(limit or settings.subscription_lookup_limit).execute()

        return result.data or []

    async def get_status(self, user: Optional[UserResponse]) -> SubscriptionStatusResponse:
        """
        Classify the caller.

        Anonymous without a session (or without an e-mail), active for
        admins, otherwise derived from the billing rows.
        """
        if user is None or not user.email:
            return SubscriptionStatusResponse(user_type=UserType.ANONYMOUS)

        try:
            role = await self.get_user_role(user.id)
            if role == "admin":
                return SubscriptionStatusResponse(
                    user_type=UserType.ACTIVE_SUBSCRIPTION,
                    has_active_subscription=True,
                    has_active_trial=False,
                )

            rows = await self.fetch_subscription_rows(user.email)
            return classify_user_type_from_subscriptions(rows)
        except Exception as e:
            logger.error(f"Failed to load subscription status for user {user.id}: {e}")
            return SubscriptionStatusResponse(user_type=UserType.NO_SUBSCRIPTION)

    async def cancel_subscription(self, user: UserResponse) -> CancelSubscriptionResponse:
        """
        Schedule the caller's current subscription to end with the cycle.

        Raises:
            HTTPException: 404 without a cancellable subscription, 500 on storage failure
        """
        try:
            result = self.supabase.table(SUBSCRIPTIONS_TABLE).select(
                "id, status, cancel_at_cycle_end"
            ).eq(
                "subscriber_email", user.email
            ).in_(
                "status", CANCELLABLE_STATUSES
            ).order(
                "created_at", desc=True
            ).limit(1).execute()
        except Exception as e:
            logger.error(f"Failed to fetch subscription for cancellation (user {user.id}): {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch subscription"
            )

        if not result.data:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No active subscription found"
            )

        subscription = result.data[0]

        if subscription.get("cancel_at_cycle_end"):
            return CancelSubscriptionResponse(
                success=True,
                message="Subscription is already scheduled for cancellation"
            )

        try:
            self.supabase.table(SUBSCRIPTIONS_TABLE).update(
                {"cancel_at_cycle_end": True}
            ).eq("id", subscription["id"]).execute()
        except Exception as e:
            logger.error(f"Failed to cancel subscription {subscription['id']}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to cancel subscription"
            )

        logger.info(f"Subscription {subscription['id']} scheduled to cancel at cycle end")
        return CancelSubscriptionResponse(
            success=True,
            message="Subscription cancelled successfully"
        )


# Global service instance
subscription_service = SubscriptionService()
