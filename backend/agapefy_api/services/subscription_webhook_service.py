"""
Subscription webhook ingest for Digital Manager Guru.

Flattens the provider payload into an assinaturas row and upserts it by
subscription_id. Storage errors propagate so the provider retries.
"""
import logging
from typing import Any, Dict, Optional

from ..core.supabase_client import supabase_client
from .subscription_service import SUBSCRIPTIONS_TABLE

logger = logging.getLogger(__name__)


def _get(data: Any, *path: str) -> Any:
    """Walk nested dicts, returning None on any missing level."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _text(value: Any) -> Optional[str]:
    """Provider scalars as text; ids arrive as numbers from some endpoints."""
    if value is None or value == "" or isinstance(value, (dict, list)):
        return None
    return str(value)


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first(*values: Any) -> Any:
    """First truthy value, else None."""
    for value in values:
        if value:
            return value
    return None


def extract_subscription_data(body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract the subscription row from a webhook payload.

    The API token is deliberately left out; the complete payload is kept in
    raw_webhook_data.
    """
    card = _dict(body.get("credit_card"))
    last_card = _dict(_get(body, "last_transaction", "payment", "credit_card"))

    return {
        # Provider identifiers
        "subscription_id": _text(body.get("id")) or "",
        "subscription_internal_id": body.get("internal_id") or None,
        "subscription_code": body.get("subscription_code") or None,

        "status": _text(body.get("last_status")) or "unknown",

        # Subscriber
        "subscriber_id": _text(_get(body, "subscriber", "id")) or "",
        "subscriber_name": _get(body, "subscriber", "name") or None,
        "subscriber_email": _text(_get(body, "subscriber", "email")),
        "subscriber_doc": _get(body, "subscriber", "doc") or None,
        "subscriber_phone": _get(body, "subscriber", "phone_number") or None,
        "subscriber_phone_local_code": _get(body, "subscriber", "phone_local_code") or None,

        # Product / offer
        "product_id": _get(body, "product", "id") or None,
        "product_internal_id": _get(body, "product", "internal_id") or None,
        "product_name": _first(_get(body, "product", "name"), body.get("name")),
        "product_offer_id": _get(body, "product", "offer", "id") or None,
        "product_offer_name": _get(body, "product", "offer", "name") or None,

        # Payment
        "payment_method": body.get("payment_method") or None,
        "currency": _first(
            _get(body, "current_invoice", "currency"),
            _get(body, "last_transaction", "payment", "currency"),
        ) or "BRL",
        "next_cycle_value": body.get("next_cycle_value") or None,
        "charged_every_days": body.get("charged_every_days") or None,

        # Current invoice
        "current_invoice_id": _get(body, "current_invoice", "id") or None,
        "current_invoice_status": _get(body, "current_invoice", "status") or None,
        "current_invoice_value": _get(body, "current_invoice", "value") or None,
        "current_invoice_cycle": _get(body, "current_invoice", "cycle") or None,
        "current_invoice_charge_at": _get(body, "current_invoice", "charge_at") or None,
        "current_invoice_period_start": _get(body, "current_invoice", "period_start") or None,
        "current_invoice_period_end": _get(body, "current_invoice", "period_end") or None,

        # Dates
        "started_at": _get(body, "dates", "started_at") or None,
        "cycle_start_date": _get(body, "dates", "cycle_start_date") or None,
        "cycle_end_date": _get(body, "dates", "cycle_end_date") or None,
        "next_cycle_at": _get(body, "dates", "next_cycle_at") or None,
        "canceled_at": _get(body, "dates", "canceled_at") or None,
        "last_status_at": _get(body, "dates", "last_status_at") or None,

        # Trial
        "trial_days": body.get("trial_days") or 0,
        "trial_started_at": body.get("trial_started_at") or None,
        "trial_finished_at": body.get("trial_finished_at") or None,

        # Cancellation
        "cancel_at_cycle_end": body.get("cancel_at_cycle_end") in (1, True),
        "cancel_reason": body.get("cancel_reason") or None,
        "cancelled_by_email": _get(body, "cancelled_by", "email") or None,
        "cancelled_by_name": _get(body, "cancelled_by", "name") or None,
        "cancelled_by_date": _get(body, "cancelled_by", "date") or None,

        "provider": body.get("provider") or None,

        # Card summary
        "credit_card_id": _first(card.get("id"), last_card.get("id")),
        "credit_card_brand": _first(card.get("brand"), last_card.get("brand")),
        "credit_card_last_four": _first(card.get("last_four"), last_card.get("last_digits")),
        "credit_card_expiration_month": _first(card.get("expiration_month"), last_card.get("expiration_month")),
        "credit_card_expiration_year": _first(card.get("expiration_year"), last_card.get("expiration_year")),

        "webhook_type": body.get("webhook_type") or "subscription",
        "raw_webhook_data": body,
    }


class SubscriptionWebhookService:
    """Persists billing-provider subscription events."""

    @property
    def supabase(self):
        return supabase_client.service_client

    async def upsert_subscription(self, data: Dict[str, Any]) -> str:
        """
        Update the row with the same subscription_id, or insert a new one.

        Returns:
            "updated" or "created"
        """
        subscription_id = data["subscription_id"]

        existing = self.supabase.table(SUBSCRIPTIONS_TABLE).select(
            "id"
        ).eq("subscription_id", subscription_id).limit(1).execute()

        if existing.data:
            logger.info(f"Updating subscription {subscription_id}")
            self.supabase.table(SUBSCRIPTIONS_TABLE).update(data).eq(
                "subscription_id", subscription_id
            ).execute()
            return "updated"

        logger.info(f"Creating subscription {subscription_id}")
        self.supabase.table(SUBSCRIPTIONS_TABLE).insert(data).execute()
        return "created"


# Global service instance
subscription_webhook_service = SubscriptionWebhookService()
