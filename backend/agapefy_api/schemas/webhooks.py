"""
Pydantic schemas for provider webhooks.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Acknowledgement returned to webhook callers."""
    status: str
    message: Optional[str] = None
    reason: Optional[str] = None
    timestamp: Optional[datetime] = None


class SubscriptionWebhookResponse(WebhookResponse):
    """Acknowledgement for a processed subscription event."""
    subscription_id: Optional[str] = None
    subscriber_email: Optional[str] = None
    subscription_status: Optional[str] = None
