"""
Pydantic schemas for subscription endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import dateutil.parser
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.paywall import UserType


class SubscriptionRecord(BaseModel):
    """One billing-provider row from the assinaturas table."""
    status: Optional[str] = None
    trial_days: Optional[int] = None
    trial_started_at: Optional[datetime] = None
    trial_finished_at: Optional[datetime] = None
    cancel_at_cycle_end: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("trial_started_at", "trial_finished_at", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> Optional[datetime]:
        """Parse provider timestamps; unparseable values count as absent."""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            try:
                v = dateutil.parser.isoparse(v)
            except (ValueError, OverflowError):
                return None
        if isinstance(v, datetime) and v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("trial_days", mode="before")
    @classmethod
    def parse_trial_days(cls, v: Any) -> Optional[int]:
        if v is None or v == "":
            return None
        try:
            return int(v)
        except (TypeError, ValueError):
            return None


class SubscriptionStatusResponse(BaseModel):
    """Caller's access tier."""
    user_type: UserType = Field(..., alias="userType")
    has_active_subscription: bool = Field(False, alias="hasActiveSubscription")
    has_active_trial: bool = Field(False, alias="hasActiveTrial")

    model_config = ConfigDict(populate_by_name=True)


class CancelSubscriptionResponse(BaseModel):
    """Result of scheduling a cancellation."""
    success: bool
    message: str
