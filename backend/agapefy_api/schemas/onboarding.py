"""
Pydantic schemas for onboarding endpoints.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class OnboardingStep(BaseModel):
    """An onboarding form placed at its step position."""
    id: str
    step: int
    created_at: Optional[str] = None


class OnboardingStatusResponse(BaseModel):
    """Steps the caller still has to answer."""
    pending: bool
    steps: List[int] = []
    next_step: Optional[int] = Field(None, alias="nextStep")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class OnboardingProgressResponse(BaseModel):
    """How far along the onboarding flow a step is."""
    total_steps: int = Field(..., alias="totalSteps")
    current_step: int = Field(..., alias="currentStep")
    percentage: int

    model_config = ConfigDict(populate_by_name=True)
