"""
Artifact API Endpoints

GET  /v1/artifacts/{artifact_id}      artifact with current power
POST /v1/artifacts/{artifact_id}/use  log a real-world use; raises power
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from momentum_engine.core.auth import get_current_user_id
from momentum_engine.core.errors import NotFoundError, PermissionError
from momentum_engine.features.artifacts.power import ArtifactPowerTracker
from momentum_engine.features.ledger.store import get_store

router = APIRouter(prefix="/v1/artifacts", tags=["artifacts"])


class LogUseRequest(BaseModel):
    delta: Optional[int] = Field(None, ge=0, le=100)
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=200)


@router.get("/{artifact_id}")
def get_artifact(artifact_id: str, user_id: str = Depends(get_current_user_id)) -> dict:
    artifact = get_store().get_artifact(artifact_id)
    if artifact is None:
        raise NotFoundError(f"artifact {artifact_id} not found")
    if not artifact.accessible_by(user_id):
        raise PermissionError("artifact belongs to another user")
    return {"data": artifact.to_dict()}


@router.post("/{artifact_id}/use")
def log_use(
    artifact_id: str,
    payload: Optional[LogUseRequest] = None,
    user_id: str = Depends(get_current_user_id),
) -> dict:
    payload = payload or LogUseRequest()
    artifact = ArtifactPowerTracker(get_store()).log_use(
        user_id,
        artifact_id,
        delta=payload.delta,
        idempotency_key=payload.idempotency_key,
    )
    return {"data": artifact.to_dict()}
