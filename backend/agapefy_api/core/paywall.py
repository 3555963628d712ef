"""
Paywall configuration.
Defines what each user type may play and the copy of the paywall screen.

Both documents are edited by admins and stored as JSON text in app_settings;
the hard-coded defaults below apply whenever the stored value is missing
or unusable.
"""

import json
import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class UserType(str, Enum):
    """Access tier derived from session and billing state."""
    ANONYMOUS = "anonymous"
    NO_SUBSCRIPTION = "no_subscription"
    TRIAL = "trial"
    ACTIVE_SUBSCRIPTION = "active_subscription"


class LimitedAccessConfig(BaseModel):
    """Daily free-play quota."""
    limit_enabled: bool = True
    max_free_audios_per_day: int = 0


class FullAccessConfig(BaseModel):
    """Unrestricted access flag."""
    full_access_enabled: bool = True


class PaywallPermissions(BaseModel):
    """Access policy per user type."""
    anonymous: LimitedAccessConfig
    no_subscription: LimitedAccessConfig
    active_subscription: FullAccessConfig
    trial: FullAccessConfig


# Anonymous visitors can never play: they are always sent to login.
DEFAULT_PAYWALL_PERMISSIONS = PaywallPermissions(
    anonymous=LimitedAccessConfig(limit_enabled=True, max_free_audios_per_day=0),
    no_subscription=LimitedAccessConfig(limit_enabled=True, max_free_audios_per_day=1),
    active_subscription=FullAccessConfig(full_access_enabled=True),
    trial=FullAccessConfig(full_access_enabled=True),
)


class AccessPolicy(BaseModel):
    """Effective policy for one user type."""
    user_type: UserType
    full_access: bool
    limit_enabled: bool = False
    max_free_audios_per_day: Optional[int] = None


def parse_paywall_permissions(raw: Optional[str]) -> PaywallPermissions:
    """
    Parse the stored permissions document.

    Top-level entries present in the document replace the default entry for
    that user type. Anything unparseable yields the defaults.
    """
    if not raw:
        return DEFAULT_PAYWALL_PERMISSIONS
    try:
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("paywall permissions must be a JSON object")
        merged = DEFAULT_PAYWALL_PERMISSIONS.model_dump()
        merged.update({k: v for k, v in parsed.items() if k in merged})
        return PaywallPermissions.model_validate(merged)
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"Invalid paywall_permissions setting, using defaults: {e}")
        return DEFAULT_PAYWALL_PERMISSIONS


def resolve_access_policy(user_type: UserType, permissions: PaywallPermissions) -> AccessPolicy:
    """
    Resolve the play policy for a user type.

    Subscribers and trial users whose full access was switched off by an
    admin fall back to the no_subscription quota.
    """
    user_type = UserType(user_type)

    if user_type in (UserType.ACTIVE_SUBSCRIPTION, UserType.TRIAL):
        full: FullAccessConfig = getattr(permissions, user_type.value)
        if full.full_access_enabled:
            return AccessPolicy(user_type=user_type, full_access=True)
        limited = permissions.no_subscription
    else:
        limited = getattr(permissions, user_type.value)

    return AccessPolicy(
        user_type=user_type,
        full_access=False,
        limit_enabled=limited.limit_enabled,
        max_free_audios_per_day=limited.max_free_audios_per_day,
    )


# ---------------------------------------------------------------------------
# Paywall screen
# ---------------------------------------------------------------------------

class PaywallPlanConfig(BaseModel):
    title: str
    subtitle: str
    checkout_url: str
    footer_text: str


class PaywallPlans(BaseModel):
    upfront: PaywallPlanConfig
    installments: PaywallPlanConfig


class PaywallTestimonial(BaseModel):
    title: str
    text: str
    rating: int = Field(5, ge=0, le=5)


class PaywallScreenConfig(BaseModel):
    """Copy and checkout links shown on the paywall."""
    title: str
    description: str
    cta_label: str
    plans: PaywallPlans
    testimonials: List[PaywallTestimonial]


DEFAULT_PAYWALL_SCREEN_CONFIG = PaywallScreenConfig(
    title="Sua conta vem com uma avaliação gratuita de 30 dias!",
    description="Medite com Deus com mais de 5,000 orações guiadas, conteúdo para dormir e muito mais!",
    cta_label="30 Dias por R$ 0,00",
    plans=PaywallPlans(
        upfront=PaywallPlanConfig(
            title="Pague À Vista",
            subtitle="Pagamento anual de R$ 249,90 após a avaliação",
            checkout_url="https://clkdmg.site/subscribe/agapefy-plano-anual/1click",
            footer_text="30 dias de graça, depois R$ 249,90/ano (~R$ 20,82/mês)",
        ),
        installments=PaywallPlanConfig(
            title="Pague em Parcelas",
            subtitle="12 parcelas de R$ 20,82/mês após a avaliação",
            checkout_url="https://clkdmg.site/subscribe/plano-mensal-agapefy/1click",
            footer_text="30 dias grátis, depois 12 pagamentos por ano de R$ 20,82",
        ),
    ),
    testimonials=[
        PaywallTestimonial(
            title="Exatamente o que eu estava procurando",
            text="É um aplicativo de meditação fantástico que incorpora a fé perfeitamente!",
            rating=5,
        ),
    ],
)


def parse_paywall_screen_config(raw: Optional[str]) -> PaywallScreenConfig:
    """
    Parse the stored paywall screen document.

    Each plan is merged over its default; testimonials are replaced only
    when the document carries a list.
    """
    if not raw:
        return DEFAULT_PAYWALL_SCREEN_CONFIG
    try:
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("paywall screen config must be a JSON object")

        defaults = DEFAULT_PAYWALL_SCREEN_CONFIG.model_dump()
        merged = {**defaults, **parsed}

        plans = parsed.get("plans") or {}
        merged["plans"] = {
            name: {**defaults["plans"][name], **(plans.get(name) or {})}
            for name in ("upfront", "installments")
        }
        if not isinstance(parsed.get("testimonials"), list):
            merged["testimonials"] = defaults["testimonials"]

        return PaywallScreenConfig.model_validate(merged)
    except (ValueError, TypeError, AttributeError, ValidationError) as e:
        logger.warning(f"Invalid paywall_screen_config setting, using defaults: {e}")
        return DEFAULT_PAYWALL_SCREEN_CONFIG
