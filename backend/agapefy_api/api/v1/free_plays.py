"""
Free-play quota endpoint.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Request

from ...core.dependencies import get_optional_current_user
from ...dependencies.rate_limit import get_free_play_key
from ...schemas.auth import UserResponse
from ...schemas.free_plays import FreePlayCheckRequest, FreePlayCheckResponse
from ...services.free_play_service import free_play_service
from ...utils.json_encoder import safe_json_loads

router = APIRouter(prefix="/free-plays", tags=["free-plays"])


@router.post("/check", response_model=FreePlayCheckResponse, response_model_exclude_none=True)
async def check_free_play(
    request: Request,
    user: Optional[UserResponse] = Depends(get_optional_current_user),
):
    """
    Consume one free play for the caller if today's quota allows it.

    The body is optional; a missing or unreadable body means one play per
    day in the anonymous context.
    """
    try:
        body = safe_json_loads(await request.body() or b"{}")
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    check = FreePlayCheckRequest.model_validate(body)
    limit_key = get_free_play_key(request, user.id if user else None)

    return await free_play_service.check_and_consume(
        limit_key=limit_key,
        max_per_day=check.max_per_day,
        context=check.context,
    )
