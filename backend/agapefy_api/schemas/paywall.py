"""
Pydantic schemas for paywall endpoints.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from ..core.paywall import UserType


class PlayAction(str, Enum):
    """What the player should do when the user presses play."""
    LOGIN_REQUIRED = "login_required"
    ALLOWED = "allowed"
    PAYWALL = "paywall"


class PlayAccessResponse(BaseModel):
    """Play authorization decision."""
    user_type: UserType = Field(..., alias="userType")
    action: PlayAction
    allowed: bool
    count: Optional[int] = None
    max: Optional[int] = None
    reason: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
