from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

MAX_POWER = 100


class Artifact(BaseModel):
    """A user's "cheat code": a named mental technique that gains power with use.

    owner_id is None for shared artifacts. onboarding_catalog_key marks an
    onboarding artifact whose drills come from the built-in catalog.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: Optional[str] = None
    title: str
    power: int = 0
    last_used_at: Optional[datetime] = None
    onboarding_catalog_key: Optional[str] = None

    def accessible_by(self, user_id: str) -> bool:
        return self.owner_id is None or self.owner_id == user_id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "power": self.power,
            "lastUsedAt": self.last_used_at.isoformat() if self.last_used_at else None,
        }
