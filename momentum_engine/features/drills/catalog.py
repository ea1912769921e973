"""
Scenario resolution for drill sessions.

Artifacts with an onboarding catalog key draw from the built-in catalog;
every other artifact uses persisted scenario rows. The ScenarioSource
returned alongside the scenarios records which path was taken.
"""

from datetime import datetime
from functools import lru_cache
from typing import Dict, List, Sequence, Tuple

from momentum_engine.core.errors import NotFoundError, PermissionError, ValidationError
from momentum_engine.features.drills.award_gate import utc_day
from momentum_engine.features.drills.onboarding_scenarios import ONBOARDING_SCENARIOS
from momentum_engine.models.artifact import Artifact
from momentum_engine.models.drill import (
    SCENARIOS_PER_SESSION,
    DrillOption,
    DrillScenario,
    ScenarioSource,
)


@lru_cache(maxsize=None)
def built_in_scenarios(catalog_key: str) -> Tuple[DrillScenario, ...]:
    entries = ONBOARDING_SCENARIOS.get(catalog_key)
    if entries is None:
        raise NotFoundError(f"unknown onboarding catalog {catalog_key}")
    return tuple(
        DrillScenario(
            id=entry["id"],
            artifact_id=catalog_key,
            owner_id=None,
            situation=entry["situation"],
            current_thought=entry["current_thought"],
            options=tuple(
                DrillOption(text=text, category=category, feedback=feedback)
                for text, category, feedback in entry["options"]
            ),
        )
        for entry in entries
    )


class ScenarioCatalog:
    def __init__(self, store):
        self.store = store

    def resolve(
        self, user_id: str, artifact: Artifact, scenario_ids: Sequence[str]
    ) -> Tuple[List[DrillScenario], ScenarioSource]:
        """Load the scenarios a submission refers to, in submission order."""
        if artifact.onboarding_catalog_key:
            key = artifact.onboarding_catalog_key
            by_id = {s.id: s for s in built_in_scenarios(key)}
            missing = [sid for sid in scenario_ids if sid not in by_id]
            if missing:
                raise NotFoundError(f"scenario {missing[0]} not found in onboarding catalog {key}")
            return [by_id[sid] for sid in scenario_ids], ScenarioSource.built_in(key)

        found: Dict[str, DrillScenario] = self.store.get_scenarios(scenario_ids)
        scenarios = []
        for sid in scenario_ids:
            scenario = found.get(sid)
            if scenario is None:
                raise NotFoundError(f"scenario {sid} not found")
            if scenario.artifact_id != artifact.id:
                raise ValidationError(f"scenario {sid} does not belong to artifact {artifact.id}")
            if scenario.owner_id is not None and scenario.owner_id != user_id:
                raise PermissionError("scenario belongs to another user")
            scenarios.append(scenario)
        return scenarios, ScenarioSource.persisted()

    def pick(self, user_id: str, artifact: Artifact, now: datetime) -> List[DrillScenario]:
        """
        Choose the scenarios for the user's next drill on an artifact.

        The choice rotates with the UTC day and with the plays already made
        today, so repeated drills vary without randomness.
        """
        if artifact.onboarding_catalog_key:
            pool = list(built_in_scenarios(artifact.onboarding_catalog_key))
        else:
            pool = [
                s for s in self.store.list_scenarios(artifact.id)
                if s.owner_id is None or s.owner_id == user_id
            ]
        if len(pool) < SCENARIOS_PER_SESSION:
            raise NotFoundError(f"artifact {artifact.id} has fewer than {SCENARIOS_PER_SESSION} scenarios")
        day = utc_day(now)
        plays = self.store.count_sessions(user_id, artifact.id, day)
        offset = (day.toordinal() + plays * SCENARIOS_PER_SESSION) % len(pool)
        rotated = pool[offset:] + pool[:offset]
        return rotated[:SCENARIOS_PER_SESSION]
