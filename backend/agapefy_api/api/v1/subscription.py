"""
Subscription API endpoints.
Reports the caller's access tier and schedules cancellations.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_current_user, get_optional_current_user
from ...schemas.auth import UserResponse
from ...schemas.subscription import CancelSubscriptionResponse, SubscriptionStatusResponse
from ...services.subscription_service import subscription_service

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("/status", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    user: Optional[UserResponse] = Depends(get_optional_current_user),
):
    """
    Get the caller's user type.

    Always answers 200: anonymous without a session, active for admins, and
    no_subscription whenever billing rows cannot be read.
    """
    return await subscription_service.get_status(user)


@router.post("/cancel", response_model=CancelSubscriptionResponse)
async def cancel_subscription(
    user: UserResponse = Depends(get_current_user),
):
    """
    Cancel the caller's subscription at the end of the current cycle.
    Access continues until then.
    """
    if not user.email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return await subscription_service.cancel_subscription(user)
