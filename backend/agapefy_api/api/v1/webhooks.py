"""
Provider webhook endpoints.

- /webhook/subscription: Digital Manager Guru subscription events
- /webhook/whatsapp/*: WhatsApp provider (Z-API) connection and message
  status callbacks, logged and acknowledged
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ...core.config import settings
from ...dependencies.rate_limit import limiter
from ...dependencies.webhook_auth import (
    get_bearer_token,
    require_whatsapp_webhook_secret,
    tokens_match,
)
from ...schemas.webhooks import SubscriptionWebhookResponse, WebhookResponse
from ...services.subscription_webhook_service import (
    extract_subscription_data,
    subscription_webhook_service,
)
from ...utils.json_encoder import safe_json_dumps, safe_json_loads

router = APIRouter(prefix="/webhook", tags=["webhooks"])
logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _internal_error(error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(error), "timestamp": _now().isoformat()},
    )


async def _read_json_object(request: Request) -> Dict[str, Any]:
    """Parse the request body as a JSON object, ValueError otherwise."""
    body = safe_json_loads(await request.body())
    if not isinstance(body, dict):
        raise ValueError("Webhook body must be a JSON object")
    return body


# ============================================================================
# SUBSCRIPTION WEBHOOK
# ============================================================================

@router.post("/subscription", response_model=SubscriptionWebhookResponse, response_model_exclude_none=True)
@limiter.limit(settings.webhook_rate_limit)
async def subscription_webhook(request: Request):
    """
    Receive a subscription event from the billing provider.

    When DMG_API_TOKEN is configured the provider must send it either as a
    bearer token or as api_token in the body.
    """
    try:
        body = await _read_json_object(request)
    except ValueError as e:
        logger.error(f"Invalid subscription webhook payload: {e}")
        return _internal_error(e)

    if settings.dmg_api_token:
        header_token = get_bearer_token(request)
        body_token = body.get("api_token") if isinstance(body.get("api_token"), str) else None
        if not (tokens_match(header_token, settings.dmg_api_token)
                or tokens_match(body_token, settings.dmg_api_token)):
            logger.error("Subscription webhook rejected: invalid or missing API token")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Unauthorized", "message": "Invalid or missing API token"},
            )

    logged = {k: v for k, v in body.items() if k != "api_token"}
    logger.info(f"Subscription webhook received: {safe_json_dumps(logged)}")

    if body.get("webhook_type") != "subscription":
        logger.info("Subscription webhook ignored: webhook_type is not subscription")
        return SubscriptionWebhookResponse(status="ignored", reason="webhook_type_not_subscription")

    try:
        data = extract_subscription_data(body)
    except Exception as e:
        logger.error(f"Failed to read subscription webhook payload: {e}")
        return _internal_error(e)

    try:
        outcome = await subscription_webhook_service.upsert_subscription(data)
    except Exception as e:
        logger.error(f"Failed to store subscription {data['subscription_id']}: {e}")
        return _internal_error(e)

    logger.info(f"Subscription {data['subscription_id']} {outcome} (status: {data['status']})")
    return SubscriptionWebhookResponse(
        status="success",
        message="Webhook processed successfully",
        subscription_id=data["subscription_id"],
        subscriber_email=data["subscriber_email"],
        subscription_status=data["status"],
        timestamp=_now(),
    )


@router.get("/subscription")
async def subscription_webhook_info():
    """Describe the subscription webhook (used to check the deployment)."""
    return {
        "status": "ok",
        "message": "Subscription webhook endpoint is up",
        "endpoint": f"{settings.api_prefix}/webhook/subscription",
        "method": "POST",
        "description": "Receives Digital Manager Guru subscription webhooks",
        "timestamp": _now().isoformat(),
    }


# ============================================================================
# WHATSAPP PROVIDER WEBHOOKS
# ============================================================================

async def _acknowledge_whatsapp_event(request: Request, event: str, message: str):
    try:
        body = await _read_json_object(request)
    except ValueError as e:
        logger.error(f"Error in WhatsApp {event} webhook: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal error", "timestamp": _now().isoformat()},
        )

    logger.info(f"WhatsApp {event.upper()} webhook received: {safe_json_dumps(body)}")
    if body.get("status"):
        logger.info(f"WhatsApp {event} status: {body['status']} for {body.get('phone')}")

    return WebhookResponse(status="success", message=message, timestamp=_now())


whatsapp_dependencies = [Depends(require_whatsapp_webhook_secret)]


@router.post("/whatsapp/connect", response_model=WebhookResponse,
             response_model_exclude_none=True, dependencies=whatsapp_dependencies)
@limiter.limit(settings.webhook_rate_limit)
async def whatsapp_connect(request: Request):
    """WhatsApp instance connected."""
    return await _acknowledge_whatsapp_event(request, "connect", "Connection established")


@router.post("/whatsapp/disconnect", response_model=WebhookResponse,
             response_model_exclude_none=True, dependencies=whatsapp_dependencies)
@limiter.limit(settings.webhook_rate_limit)
async def whatsapp_disconnect(request: Request):
    """WhatsApp instance disconnected."""
    return await _acknowledge_whatsapp_event(request, "disconnect", "Disconnection recorded")


@router.post("/whatsapp/delivery", response_model=WebhookResponse,
             response_model_exclude_none=True, dependencies=whatsapp_dependencies)
@limiter.limit(settings.webhook_rate_limit)
async def whatsapp_delivery(request: Request):
    """Delivery report for a sent message."""
    return await _acknowledge_whatsapp_event(request, "delivery", "Delivery status received")


@router.post("/whatsapp/status", response_model=WebhookResponse,
             response_model_exclude_none=True, dependencies=whatsapp_dependencies)
@limiter.limit(settings.webhook_rate_limit)
async def whatsapp_status(request: Request):
    """Message status change (sent, delivered, read)."""
    return await _acknowledge_whatsapp_event(request, "status", "Message status received")
