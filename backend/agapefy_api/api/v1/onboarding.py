"""
Onboarding API endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from ...core.dependencies import get_optional_current_user
from ...schemas.auth import UserResponse
from ...schemas.onboarding import OnboardingProgressResponse, OnboardingStatusResponse
from ...services.onboarding_service import onboarding_service

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.get("/status", response_model=OnboardingStatusResponse)
async def get_onboarding_status(
    user: Optional[UserResponse] = Depends(get_optional_current_user),
):
    """Onboarding steps the caller has not answered yet."""
    return await onboarding_service.get_status(user.id if user else None)


@router.get("/progress", response_model=OnboardingProgressResponse)
async def get_onboarding_progress(
    current_step: int = Query(1, ge=0, description="Step the user is on"),
):
    """Progress percentage for a step of the onboarding flow."""
    return await onboarding_service.get_progress(current_step)
