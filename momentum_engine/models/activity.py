"""
ActivityRecord model: the append-only ledger behind momentum.

Activity types:
- conversation_completed: a coaching conversation finished, or a drill
  session that earned momentum (metadata.source == "drill_session")
- artifact_practiced: a drill session was played on an artifact
- artifact_used: the user logged a real-world use of an artifact
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

ActivityType = Literal["conversation_completed", "artifact_practiced", "artifact_used"]

ACCRUAL_ACTIVITY: ActivityType = "conversation_completed"
ACTIVITY_TYPES = ("conversation_completed", "artifact_practiced", "artifact_used")


class ActivityRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    activity_type: ActivityType
    created_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)
    idempotency_key: Optional[str] = None

    @property
    def is_accrual(self) -> bool:
        return self.activity_type == ACCRUAL_ACTIVITY
