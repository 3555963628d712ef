"""
Free-play quota tracking.

One row per (limit_key, play_date) in free_play_limits counts the paywalled
plays a visitor or non-subscriber started that day. Storage problems never
block a play: the check fails open.
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from ..core.supabase_client import supabase_client
from ..schemas.free_plays import FreePlayCheckResponse

logger = logging.getLogger(__name__)

FREE_PLAY_TABLE = "free_play_limits"


def current_play_date() -> str:
    """Day bucket for the counters (UTC)."""
    return datetime.now(timezone.utc).date().isoformat()


class FreePlayService:
    """Service for consuming daily free plays."""

    @property
    def supabase(self):
        return supabase_client.service_client

    async def check_and_consume(
        self,
        limit_key: str,
        max_per_day: Union[int, float],
        context: str = "anonymous",
        play_date: Optional[date] = None,
    ) -> FreePlayCheckResponse:
        """
        Consume one play for the key if today's quota allows it.

        Args:
            limit_key: user:<id> or anon:<ip>|<ua>
            max_per_day: Plays allowed per day
            context: User type the caller was classified as
            play_date: Day bucket (defaults to today, UTC)

        Returns:
            FreePlayCheckResponse with the count after this play
        """
        if max_per_day <= 0:
            return FreePlayCheckResponse(allowed=False, count=0, max=max_per_day, reason="limit_zero")

        today = play_date.isoformat() if play_date else current_play_date()

        try:
            try:
                result = self.supabase.table(FREE_PLAY_TABLE).select(
                    "id, play_count"
                ).eq("limit_key", limit_key).eq("play_date", today).limit(1).execute()
            except Exception as e:
                logger.warning(f"free-plays: failed to read counter for {limit_key}, allowing play: {e}")
                return FreePlayCheckResponse(allowed=True, reason="backend_error")

            if not result.data:
                try:
                    self.supabase.table(FREE_PLAY_TABLE).insert({
                        "limit_key": limit_key,
                        "context": context,
                        "play_date": today,
                        "play_count": 1,
                    }).execute()
                except Exception as e:
                    logger.warning(f"free-plays: failed to create counter for {limit_key}, allowing play: {e}")
                return FreePlayCheckResponse(allowed=True, count=1, max=max_per_day)

            row = result.data[0]
            current_count = row.get("play_count")
            if not isinstance(current_count, int):
                current_count = 0

            if current_count >= max_per_day:
                return FreePlayCheckResponse(allowed=False, count=current_count, max=max_per_day)

            next_count = current_count + 1
            try:
                self.supabase.table(FREE_PLAY_TABLE).update(
                    {"play_count": next_count}
                ).eq("id", row["id"]).execute()
            except Exception as e:
                logger.warning(f"free-plays: failed to update counter for {limit_key}, allowing play: {e}")

            return FreePlayCheckResponse(allowed=True, count=next_count, max=max_per_day)

        except Exception as e:
            logger.error(f"free-plays: unexpected error for {limit_key}, allowing play: {e}")
            return FreePlayCheckResponse(allowed=True, reason="unexpected_error")


# Global service instance
free_play_service = FreePlayService()
