"""
Onboarding status and progress.

Onboarding is a sequence of admin-authored forms (admin_forms). A step is
pending until the user has a row in admin_form_responses for that form.
"""
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Set

import dateutil.parser

from ..core.supabase_client import supabase_client
from ..schemas.onboarding import (
    OnboardingProgressResponse,
    OnboardingStatusResponse,
    OnboardingStep,
)

logger = logging.getLogger(__name__)

FORMS_TABLE = "admin_forms"
RESPONSES_TABLE = "admin_form_responses"


def is_onboarding_form(form: Dict[str, Any]) -> bool:
    """Active onboarding forms; legacy rows without a type count as onboarding."""
    form_type = form.get("form_type")
    is_onboarding = form_type in (None, "", "onboarding")
    return is_onboarding and form.get("is_active") is not False


def _has_parent(form: Dict[str, Any]) -> bool:
    return form.get("parent_form_id") is not None


def _step_of(form: Dict[str, Any]) -> Optional[int]:
    step = form.get("onboard_step")
    if isinstance(step, bool) or not isinstance(step, int):
        return None
    return step


def _created_sort_key(created_at: Optional[str]) -> float:
    if not created_at:
        return 0.0
    try:
        return dateutil.parser.isoparse(created_at).timestamp()
    except (ValueError, OverflowError):
        return 0.0


def find_root_form(forms: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    The form shown as step 1: a parentless step 1, else a parentless form
    without a step, else any step 1, else any parentless form.
    """
    candidates = (
        lambda f: _step_of(f) == 1 and not _has_parent(f),
        lambda f: _step_of(f) is None and not _has_parent(f),
        lambda f: _step_of(f) == 1,
        lambda f: not _has_parent(f),
    )
    for matches in candidates:
        for form in forms:
            if matches(form):
                return form
    return None


def order_onboarding_steps(forms: Iterable[Dict[str, Any]]) -> List[OnboardingStep]:
    """Place the active onboarding forms at their steps, ordered by step then age."""
    onboarding_forms = [f for f in forms if is_onboarding_form(f)]

    steps: List[OnboardingStep] = []
    root = find_root_form(onboarding_forms)
    if root is not None:
        steps.append(OnboardingStep(id=str(root["id"]), step=1, created_at=root.get("created_at")))

    placed = {s.id for s in steps}
    for form in onboarding_forms:
        step = _step_of(form)
        if step is None or str(form["id"]) in placed:
            continue
        steps.append(OnboardingStep(id=str(form["id"]), step=step, created_at=form.get("created_at")))
        placed.add(str(form["id"]))

    steps.sort(key=lambda s: (s.step, _created_sort_key(s.created_at)))
    return steps


def pending_onboarding_status(steps: List[OnboardingStep], answered_ids: Set[str]) -> OnboardingStatusResponse:
    pending = [s for s in steps if s.id not in answered_ids]
    return OnboardingStatusResponse(
        pending=bool(pending),
        steps=[s.step for s in pending],
        next_step=pending[0].step if pending else None,
    )


def calculate_progress(step_positions: List[int], current_step: int) -> OnboardingProgressResponse:
    """
    Percentage of the flow reached at current_step.

    A step that is not configured counts as the last configured step before
    it; a step before the first one counts as the first.
    """
    positions = sorted(step_positions)
    total = len(positions) or 1

    if not positions:
        percentage = 0
    elif len(positions) == 1:
        percentage = 100 if current_step >= 1 else 0
    else:
        if current_step in positions:
            index = positions.index(current_step)
        else:
            earlier = [i for i, position in enumerate(positions) if position <= current_step]
            index = earlier[-1] if earlier else 0
        percentage = math.floor(min(100.0, (index + 1) / len(positions) * 100) + 0.5)

    return OnboardingProgressResponse(
        total_steps=total,
        current_step=current_step,
        percentage=percentage,
    )


class OnboardingService:
    """Service for onboarding status lookups."""

    @property
    def supabase(self):
        return supabase_client.service_client

    async def fetch_forms(self) -> List[Dict[str, Any]]:
        result = self.supabase.table(FORMS_TABLE).select(
            "id, onboard_step, parent_form_id, created_at, is_active, form_type"
        ).order(
            "onboard_step", desc=False, nullsfirst=True
        ).order("created_at", desc=False).execute()
        return result.data or []

    async def fetch_answered_form_ids(self, user_id: str, form_ids: List[str]) -> Set[str]:
        result = self.supabase.table(RESPONSES_TABLE).select(
            "form_id"
        ).eq("user_id", user_id).in_("form_id", form_ids).execute()
        return {str(row["form_id"]) for row in (result.data or [])}

    async def get_status(self, user_id: Optional[str]) -> OnboardingStatusResponse:
        """
        Pending onboarding steps for a user.

        Storage failures report the flow as pending from step 1 so the web
        app sends the user through onboarding rather than skipping it.
        """
        if not user_id:
            return OnboardingStatusResponse(pending=False, steps=[], next_step=None)

        try:
            forms = await self.fetch_forms()
        except Exception as e:
            logger.error(f"[onboarding-status] admin_forms error: {e}")
            return OnboardingStatusResponse(pending=True, steps=[], next_step=1, error="forms_error")

        steps = order_onboarding_steps(forms)
        if not steps:
            return OnboardingStatusResponse(pending=False, steps=[], next_step=None)

        try:
            answered = await self.fetch_answered_form_ids(user_id, [s.id for s in steps])
        except Exception as e:
            logger.error(f"[onboarding-status] admin_form_responses error: {e}")
            return OnboardingStatusResponse(pending=True, steps=[], next_step=1, error="responses_error")

        status = pending_onboarding_status(steps, answered)
        logger.info(
            f"[onboarding-status] user {user_id}: {len(status.steps)} pending, next step {status.next_step}"
        )
        return status

    async def get_progress(self, current_step: int) -> OnboardingProgressResponse:
        try:
            forms = await self.fetch_forms()
        except Exception as e:
            logger.error(f"[onboarding-progress] admin_forms error: {e}")
            return OnboardingProgressResponse(total_steps=1, current_step=current_step, percentage=0)

        positions = [s.step for s in order_onboarding_steps(forms)]
        return calculate_progress(positions, current_step)


# Global service instance
onboarding_service = OnboardingService()
