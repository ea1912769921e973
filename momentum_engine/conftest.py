# momentum_engine/conftest.py
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add repo root to PYTHONPATH so `momentum_engine.*` imports resolve
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from momentum_engine.features.ledger.store import InMemoryLedgerStore, reset_store, set_store
from momentum_engine.models.artifact import Artifact
from momentum_engine.models.drill import DrillOption, DrillScenario
from momentum_engine.models.user import UserProfile


@pytest.fixture(scope="session")
def db_url():
    """
    Provide a database URL for SQL store tests.

    Uses TEST_DATABASE_URL when set, otherwise an in-memory SQLite database.
    """
    return os.getenv("TEST_DATABASE_URL") or "sqlite://"


@pytest.fixture(scope="function", autouse=True)
def store():
    """
    Fresh in-memory ledger for every test.

    Services that call get_store() see this instance, so state never leaks
    between tests.
    """
    ledger = InMemoryLedgerStore()
    set_store(ledger)
    yield ledger
    reset_store()


@pytest.fixture(scope="function")
def sql_store(db_url):
    """
    SQL ledger on a freshly created schema, installed as the active store.
    """
    from momentum_engine.core.database import dispose_engine, drop_all_tables, create_all_tables, init_engine
    from momentum_engine.features.ledger.store_sql import SqlLedgerStore

    init_engine(db_url)
    drop_all_tables()
    create_all_tables()
    ledger = SqlLedgerStore()
    set_store(ledger)
    yield ledger
    drop_all_tables()
    dispose_engine()
    reset_store()


@pytest.fixture
def now():
    return datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_artifact():
    """Save an artifact (and optionally three scenarios) into a store."""

    def _make(
        ledger,
        artifact_id: str = "art-1",
        owner_id="user-1",
        power: int = 0,
        catalog_key=None,
        with_scenarios: bool = True,
    ) -> Artifact:
        artifact = ledger.save_artifact(
            Artifact(
                id=artifact_id,
                owner_id=owner_id,
                title=f"Artifact {artifact_id}",
                power=power,
                onboarding_catalog_key=catalog_key,
            )
        )
        if with_scenarios and catalog_key is None:
            for index in range(1, 4):
                ledger.save_scenario(make_scenario(f"{artifact_id}-s{index}", artifact_id, owner_id))
        return artifact

    return _make


@pytest.fixture
def onboarded():
    """Mark a user as having completed onboarding."""

    def _onboard(ledger, user_id: str = "user-1") -> UserProfile:
        return ledger.save_profile(UserProfile(user_id=user_id, onboarding_completed=True))

    return _onboard


def make_scenario(scenario_id: str, artifact_id: str, owner_id=None) -> DrillScenario:
    """Scenario whose option 0 is optimal, 1 helpful, 2 and 3 negative."""
    return DrillScenario(
        id=scenario_id,
        artifact_id=artifact_id,
        owner_id=owner_id,
        situation=f"Situation {scenario_id}",
        current_thought="Everyone saw that",
        options=(
            DrillOption(text="Next play", category="optimal", feedback="Exactly."),
            DrillOption(text="Breathe and reset", category="helpful", feedback="Close."),
            DrillOption(text="I always choke", category="negative", feedback="Not useful."),
            DrillOption(text="Pass more", category="negative", feedback="Not useful."),
        ),
    )


@pytest.fixture
def scenario_factory():
    return make_scenario
