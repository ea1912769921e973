"""
Auth utilities for the momentum API.

Authentication happens upstream; the auth proxy forwards the verified user
id in the X-User-Id header. Requests without it are rejected with 401.
"""
from typing import Optional

from fastapi import Header, HTTPException, Request


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None),
) -> str:
    """FastAPI dependency returning the authenticated user id."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    request.state.user_id = user_id
    return user_id
