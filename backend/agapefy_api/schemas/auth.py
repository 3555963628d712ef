"""
Authentication-related Pydantic schemas.
"""
from typing import Optional
from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """Authenticated caller, as read from the Supabase access token."""
    id: str = Field(..., description="User unique identifier")
    email: Optional[str] = Field(None, description="User email address")
    full_name: Optional[str] = Field(None, description="User's full name")
    role: Optional[str] = Field(None, description="Role claim carried by the token")
