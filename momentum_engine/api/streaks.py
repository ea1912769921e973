"""
Streak API Endpoints

GET /v1/streaks/current  consecutive active UTC days, from the activity ledger
"""

from fastapi import APIRouter, Depends

from momentum_engine.core.auth import get_current_user_id
from momentum_engine.features.streaks.service import streak_service

router = APIRouter(prefix="/v1/streaks", tags=["streaks"])


@router.get("/current")
def get_current_streak(user_id: str = Depends(get_current_user_id)) -> dict:
    """
    Returns:
        {"data": {"user_id", "current_length", "longest_length",
                  "last_active_date", "active_today", "status"}}
    """
    state = streak_service.get_state(user_id)
    return {"data": state.to_dict()}
