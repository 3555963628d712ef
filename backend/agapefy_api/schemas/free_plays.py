"""
Pydantic schemas for the free-play quota endpoint.
"""

from typing import Any, Optional, Union
from pydantic import BaseModel, Field, field_validator

DEFAULT_MAX_PER_DAY = 1


class FreePlayCheckRequest(BaseModel):
    """Request to consume one free play."""
    max_per_day: Union[int, float] = Field(DEFAULT_MAX_PER_DAY, alias="maxPerDay")
    context: str = "anonymous"

    model_config = {"populate_by_name": True}

    @field_validator("max_per_day", mode="before")
    @classmethod
    def parse_max_per_day(cls, v: Any) -> Union[int, float]:
        """
        Missing or non-numeric limits fall back to one play per day.
        Fractional limits are kept: 1.5 allows a second play.
        """
        if v is None or isinstance(v, bool):
            return DEFAULT_MAX_PER_DAY
        try:
            value = float(v)
        except (TypeError, ValueError):
            return DEFAULT_MAX_PER_DAY
        if value != value or value in (float("inf"), float("-inf")):
            return DEFAULT_MAX_PER_DAY
        return int(value) if value.is_integer() else value

    @field_validator("context", mode="before")
    @classmethod
    def parse_context(cls, v: Any) -> str:
        return v if isinstance(v, str) and v else "anonymous"


class FreePlayCheckResponse(BaseModel):
    """Outcome of a free-play check."""
    allowed: bool
    count: Optional[int] = None
    max: Optional[Union[int, float]] = None
    reason: Optional[str] = None
