"""
Momentum API Endpoints

GET  /v1/momentum               current momentum plus today's gain vs the daily cap
GET  /v1/momentum/weekly        momentum at the end of each of the last 7 days
POST /v1/momentum/conversations record a completed coaching conversation
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from momentum_engine.core.auth import get_current_user_id
from momentum_engine.features.momentum.service import MomentumService

router = APIRouter(prefix="/v1/momentum", tags=["momentum"])


class ConversationCompletedRequest(BaseModel):
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=200)


@router.get("")
def get_momentum(user_id: str = Depends(get_current_user_id)) -> dict:
    """
    Get current momentum.

    Returns:
        {
            "data": {
                "progress": 35.0,
                "displayProgress": 35,
                "activityCount": 4,
                "baseProgress": 35.0,
                "decay": 0.0,
                "isDecaying": false,
                "hoursUntilNextDecay": 20.5,
                "lastActivityAt": "2025-12-21T10:00:00+00:00",
                "computedAt": "2025-12-21T13:30:00+00:00",
                "dailyGain": 10.0,
                "dailyCap": 25,
                "dailyCapReached": false
            }
        }
    """
    summary = MomentumService.get_daily_summary(user_id)
    return {"data": summary.to_dict()}


@router.get("/weekly")
def get_momentum_weekly(user_id: str = Depends(get_current_user_id)) -> dict:
    """Last 7 days of momentum (most recent first)."""
    states = MomentumService.get_weekly(user_id)
    return {"data": [s.to_dict() for s in states]}


@router.post("/conversations", status_code=201)
def record_conversation(
    payload: ConversationCompletedRequest,
    user_id: str = Depends(get_current_user_id),
) -> dict:
    MomentumService.record_conversation_completed(
        user_id,
        idempotency_key=payload.idempotency_key,
    )
    state = MomentumService.get_momentum(user_id)
    return {"data": state.to_dict()}

