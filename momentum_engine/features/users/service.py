"""
User profile lookup.
- get_profile(user_id)
- is_onboarded(user_id)
- complete_onboarding(user_id)

Only onboarding status matters here: momentum is not awarded before it.
"""

from datetime import datetime, timezone
from typing import Optional

from momentum_engine.features.ledger.store import get_store
from momentum_engine.models.user import UserProfile


def get_profile(user_id: str, store=None) -> Optional[UserProfile]:
    return (store or get_store()).get_profile(user_id)


def is_onboarded(user_id: str, store=None) -> bool:
    profile = get_profile(user_id, store)
    return bool(profile and profile.onboarding_completed)


def complete_onboarding(user_id: str, now: Optional[datetime] = None, store=None) -> UserProfile:
    store = store or get_store()
    existing = store.get_profile(user_id)
    created_at = existing.created_at if existing and existing.created_at else (now or datetime.now(timezone.utc))
    return store.save_profile(UserProfile(user_id=user_id, onboarding_completed=True, created_at=created_at))
