"""
Request keys for rate limiting.

- Public webhook routes: slowapi limiter keyed by client address
- Free plays: one counter per user, or per address + user agent for visitors
"""

from typing import Optional
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

USER_AGENT_MAX_LENGTH = 120

# Shared slowapi limiter, registered on the app in main.py
limiter = Limiter(key_func=get_remote_address)


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
        if ip:
            return ip
    return request.client.host if request.client else "unknown_ip"


def get_free_play_key(request: Request, user_id: Optional[str] = None) -> str:
    """
    Generate the free-play counter key based on user or visitor fingerprint.
    """
    if user_id:
        return f"user:{user_id}"

    user_agent = (request.headers.get("user-agent") or "unknown_ua")[:USER_AGENT_MAX_LENGTH]
    return f"anon:{get_client_ip(request)}|{user_agent}"
