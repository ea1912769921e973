from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    onboarding_completed: bool = False
    created_at: Optional[datetime] = None
