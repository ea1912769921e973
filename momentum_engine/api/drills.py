"""
Drill API Endpoints

GET  /v1/drills/scenarios  today's three scenarios for an artifact
POST /v1/drills/sessions   submit answers; scores, gates and awards momentum
GET  /v1/drills/sessions   recent sessions, newest first
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from momentum_engine.core.auth import get_current_user_id
from momentum_engine.features.drills.service import drill_service
from momentum_engine.models.drill import DrillSubmission

router = APIRouter(prefix="/v1/drills", tags=["drills"])


class SubmitSessionRequest(BaseModel):
    artifact_id: str = Field(..., min_length=1)
    scenario_ids: List[str]
    answers: List[int]
    session_id: Optional[str] = Field(None, min_length=1, max_length=64)
    is_first_play: bool = False


@router.get("/scenarios")
def get_scenarios(
    artifact_id: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
) -> dict:
    scenarios = drill_service.get_scenarios(user_id, artifact_id)
    return {
        "data": [
            {
                "id": s.id,
                "situation": s.situation,
                "currentThought": s.current_thought,
                # Categories and feedback stay server-side until submission
                "options": [o.text for o in s.options],
            }
            for s in scenarios
        ]
    }


@router.post("/sessions")
def submit_session(payload: SubmitSessionRequest, user_id: str = Depends(get_current_user_id)) -> dict:
    """
    Submit a completed drill.

    Returns:
        {
            "data": {
                "sessionId": "...",
                "score": 2,
                "totalQuestions": 3,
                "momentumAwarded": 10,
                "previousMomentum": 0.0,
                "newMomentum": 10.0,
                "milestone": null,
                "noMomentumReason": null,
                "isFirstPlay": false,
                "replayed": false
            }
        }
    """
    submission = DrillSubmission(
        user_id=user_id,
        artifact_id=payload.artifact_id,
        scenario_ids=payload.scenario_ids,
        answers=payload.answers,
        session_id=payload.session_id,
        is_first_play=payload.is_first_play,
    )
    result = drill_service.submit_session(submission)
    return {"data": result.to_dict()}


@router.get("/sessions")
def list_sessions(
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
) -> dict:
    sessions = drill_service.list_sessions(user_id, limit)
    return {"data": [s.to_dict() for s in sessions]}
