"""
Subscription status classifier.

Maps the billing rows of one user to a user type. Pure and synchronous:
callers fetch the rows, this module only applies the rules.
"""
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

from ..core.paywall import UserType
from ..schemas.subscription import SubscriptionRecord, SubscriptionStatusResponse

ACTIVE_STATUSES = frozenset({"active", "paid", "authorized"})
TERMINATED_STATUSES = frozenset({"canceled", "cancelled", "expired"})
TRIALING_STATUS = "trialing"

RowLike = Union[SubscriptionRecord, Mapping[str, Any]]


def normalize_status(status: Optional[str]) -> str:
    """Case and whitespace-insensitive form of a provider status."""
    return (status or "").strip().lower()


def _as_record(row: RowLike) -> SubscriptionRecord:
    if isinstance(row, SubscriptionRecord):
        return row
    return SubscriptionRecord.model_validate(row)


def is_trial_active(record: SubscriptionRecord, now: datetime) -> bool:
    """
    A row grants a trial when the provider reports it as trialing, or when
    it carries trial days whose window has not closed and it was not
    terminated.
    """
    status = normalize_status(record.status)
    if status == TRIALING_STATUS:
        return True
    if not record.trial_days or record.trial_days <= 0:
        return False
    if record.trial_finished_at is not None and record.trial_finished_at <= now:
        return False
    return status not in TERMINATED_STATUSES


def classify_user_type_from_subscriptions(
    rows: Optional[Iterable[RowLike]],
    now: Optional[datetime] = None,
) -> SubscriptionStatusResponse:
    """
    Classify a user from their subscription rows.

    Any active-equivalent status wins regardless of trial fields; trial
    dates are only consulted when no such row exists.
    """
    records = [_as_record(row) for row in (rows or [])]

    if any(normalize_status(r.status) in ACTIVE_STATUSES for r in records):
        return SubscriptionStatusResponse(
            user_type=UserType.ACTIVE_SUBSCRIPTION,
            has_active_subscription=True,
            has_active_trial=False,
        )

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if any(is_trial_active(r, now) for r in records):
        return SubscriptionStatusResponse(
            user_type=UserType.TRIAL,
            has_active_subscription=False,
            has_active_trial=True,
        )

    return SubscriptionStatusResponse(
        user_type=UserType.NO_SUBSCRIPTION,
        has_active_subscription=False,
        has_active_trial=False,
    )
